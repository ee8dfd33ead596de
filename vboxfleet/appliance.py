"""Import OVF/OVA appliances as new machines."""

from __future__ import annotations

from typing import Optional

from loguru import logger

from .parsing import iter_vm_list
from .runner import CommandRunner

log = logger


def find_vm_uuid(listing: str, name: str) -> Optional[str]:
    for vm_name, uuid in iter_vm_list(listing):
        if vm_name == name:
            return uuid
    return None


def import_appliance(
    runner: CommandRunner, ovf: str, name: str
) -> Optional[str]:
    """Import ``ovf`` as a VM called ``name`` and return its UUID.

    Returns None when the new machine does not show up in ``list vms``;
    some hosts register the import asynchronously.
    """
    log.info('Importing appliance {} as {}', ovf, name)
    runner.execute('import', str(ovf), '--vsys', '0', '--vmname', name)
    uuid = find_vm_uuid(runner.execute('list', 'vms'), name)
    if uuid is None:
        log.warning('Imported VM {} not found in `list vms` output', name)
    else:
        log.debug('Imported VM {} has uuid {}', name, uuid)
    return uuid
