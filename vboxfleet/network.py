"""Network adapter configuration."""

from __future__ import annotations

from loguru import logger

from .runner import CommandRunner
from .runtime import vboxmanage_cmd
from .util import shell_join

log = logger


def set_mac_address(
    runner: CommandRunner, uuid: str, mac: str, *, dry_run: bool = False
) -> None:
    # Only adapter 1; VBoxManage itself rejects malformed addresses.
    args = ['modifyvm', uuid, '--macaddress1', mac]
    if dry_run:
        log.info(
            'DRYRUN: {}',
            shell_join(vboxmanage_cmd(*args, executable=runner.executable)),
        )
        return
    log.debug('Setting MAC address of VM {} to {}', uuid, mac)
    runner.execute(*args)
