"""Façade composing the VBoxManage readers and writers for one machine."""

from __future__ import annotations

from typing import Iterable, Optional

from loguru import logger

from . import appliance, forwarding, guest, network, state
from .errors import HypervisorNotDetected, ToolNotFound
from .forwarding import ForwardingRule
from .parsing import iter_vm_list
from .runner import CommandRunner
from .runtime import VBOXMANAGE, vboxmanage_cmd
from .state import VMState
from .util import shell_join
from .version import parse_version_tuple, read_version

log = logger


class VirtualBoxDriver:
    """Drive VirtualBox for the machine identified by ``uuid``.

    The installed VirtualBox version is read once on construction. If the
    management executable cannot be started at all this raises
    :class:`HypervisorNotDetected`. Nothing else is cached: every read
    queries VBoxManage again.

    Example:
        driver = VirtualBoxDriver('0b3c...')
        driver.clear_forwarded_ports()
        driver.forward_ports([ForwardingRule('ssh', 2222, 22)])
    """

    def __init__(
        self,
        uuid: str | None,
        *,
        runner: CommandRunner | None = None,
        executable: str = VBOXMANAGE,
    ):
        self._uuid = uuid
        self.runner = runner if runner is not None else CommandRunner(executable)
        try:
            self._version = read_version(self.runner)
        except ToolNotFound as ex:
            raise HypervisorNotDetected(self.runner.executable) from ex
        log.debug(
            'VirtualBox {} detected via {} for VM {}',
            self._version,
            self.runner.executable,
            uuid or '(none)',
        )

    @property
    def uuid(self) -> str | None:
        return self._uuid

    @property
    def version(self) -> str:
        return self._version

    @property
    def version_tuple(self) -> tuple[int, ...]:
        return parse_version_tuple(self._version)

    def _require_uuid(self) -> str:
        if not self._uuid:
            raise ValueError('This operation needs a driver bound to a VM uuid.')
        return self._uuid

    def list_vms(self) -> list[tuple[str, str]]:
        return list(iter_vm_list(self.runner.execute('list', 'vms')))

    def read_state(self, uuid: str | None = None) -> VMState:
        return state.read_state(self.runner, uuid or self._require_uuid())

    def read_forwarded_ports(
        self, uuid: str | None = None, *, active_only: bool = False
    ) -> list[ForwardingRule]:
        return forwarding.read_forwarded_ports(
            self.runner, uuid or self._require_uuid(), active_only=active_only
        )

    def clear_forwarded_ports(
        self, *, dry_run: bool = False
    ) -> list[ForwardingRule]:
        return forwarding.clear_forwarded_ports(
            self.runner, self._require_uuid(), dry_run=dry_run
        )

    def forward_ports(
        self, ports: Iterable[ForwardingRule], *, dry_run: bool = False
    ) -> None:
        forwarding.forward_ports(
            self.runner, self._require_uuid(), ports, dry_run=dry_run
        )

    def read_used_ports(self) -> set[int]:
        return forwarding.read_used_ports(self.runner)

    def import_(self, ovf: str, name: str) -> Optional[str]:
        return appliance.import_appliance(self.runner, ovf, name)

    def read_guest_additions_version(self) -> Optional[str]:
        return guest.read_guest_additions_version(
            self.runner, self._require_uuid()
        )

    def set_mac_address(self, mac: str, *, dry_run: bool = False) -> None:
        network.set_mac_address(
            self.runner, self._require_uuid(), mac, dry_run=dry_run
        )

    def delete(self, *, dry_run: bool = False) -> None:
        args = ['unregistervm', self._require_uuid(), '--delete']
        if dry_run:
            log.info(
                'DRYRUN: {}',
                shell_join(
                    vboxmanage_cmd(*args, executable=self.runner.executable)
                ),
            )
            return
        log.info('Deleting VM {}', self._uuid)
        self.runner.execute(*args)
