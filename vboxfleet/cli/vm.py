"""CLI commands for per-VM inspection and reconfiguration."""

from __future__ import annotations

from pathlib import Path

import scriptconfig as scfg

from ._common import (
    _BaseCommand,
    _confirm_destructive,
    _load_cfg,
    _make_driver,
    _require_arg,
)


class VMListCLI(_BaseCommand):
    """List every VM registered with VirtualBox."""

    @classmethod
    def main(cls, argv=True, **kwargs):
        args = cls.cli(argv=argv, data=kwargs)
        driver = _make_driver(_load_cfg(args.config))
        vms = driver.list_vms()
        if not vms:
            print('(none)')
        for name, uuid in vms:
            print(f'{name} {{{uuid}}}')
        return 0


class VMStateCLI(_BaseCommand):
    """Print the lifecycle state of one VM."""

    uuid = scfg.Value('', type=str, position=1, help='VM uuid or name.')

    @classmethod
    def main(cls, argv=True, **kwargs):
        args = cls.cli(argv=argv, data=kwargs)
        uuid = _require_arg(args.uuid, 'uuid')
        driver = _make_driver(_load_cfg(args.config), uuid)
        print(driver.read_state().value)
        return 0


class VMImportCLI(_BaseCommand):
    """Import an OVF/OVA appliance as a new VM."""

    ovf = scfg.Value('', type=str, position=1, help='Path to the appliance file.')
    name = scfg.Value('', type=str, position=2, help='Name of the new VM.')

    @classmethod
    def main(cls, argv=True, **kwargs):
        args = cls.cli(argv=argv, data=kwargs)
        ovf = Path(_require_arg(args.ovf, 'ovf')).expanduser()
        name = _require_arg(args.name, 'name')
        if not ovf.exists():
            raise FileNotFoundError(f'Appliance not found: {ovf}')
        driver = _make_driver(_load_cfg(args.config))
        uuid = driver.import_(str(ovf), name)
        if uuid is None:
            print(
                f'Imported {name}, but it is not listed yet; '
                'check `vboxfleet vm list`.'
            )
            return 1
        print(uuid)
        return 0


class VMDeleteCLI(_BaseCommand):
    """Unregister a VM and delete its files."""

    uuid = scfg.Value('', type=str, position=1, help='VM uuid or name.')
    dry_run = scfg.Value(
        False, isflag=True, help='Print actions without running.'
    )

    @classmethod
    def main(cls, argv=True, **kwargs):
        args = cls.cli(argv=argv, data=kwargs)
        uuid = _require_arg(args.uuid, 'uuid')
        driver = _make_driver(_load_cfg(args.config), uuid)
        _confirm_destructive(
            yes=bool(args.yes) or bool(args.dry_run),
            purpose=f'Unregister VM {uuid} and delete all of its files.',
        )
        driver.delete(dry_run=args.dry_run)
        return 0


class VMSetMacCLI(_BaseCommand):
    """Set the MAC address of network adapter 1."""

    uuid = scfg.Value('', type=str, position=1, help='VM uuid or name.')
    mac = scfg.Value(
        '', type=str, position=2, help='MAC address, e.g. 080027AABBCC or auto.'
    )
    dry_run = scfg.Value(
        False, isflag=True, help='Print actions without running.'
    )

    @classmethod
    def main(cls, argv=True, **kwargs):
        args = cls.cli(argv=argv, data=kwargs)
        uuid = _require_arg(args.uuid, 'uuid')
        mac = _require_arg(args.mac, 'mac')
        driver = _make_driver(_load_cfg(args.config), uuid)
        driver.set_mac_address(mac, dry_run=args.dry_run)
        return 0


class VMGuestAdditionsCLI(_BaseCommand):
    """Print the guest additions version reported by a VM."""

    uuid = scfg.Value('', type=str, position=1, help='VM uuid or name.')

    @classmethod
    def main(cls, argv=True, **kwargs):
        args = cls.cli(argv=argv, data=kwargs)
        uuid = _require_arg(args.uuid, 'uuid')
        driver = _make_driver(_load_cfg(args.config), uuid)
        version = driver.read_guest_additions_version()
        if version is None:
            print('(not installed)')
            return 1
        print(version)
        return 0


class VMModalCLI(scfg.ModalCLI):
    """VM subcommands."""

    list = VMListCLI
    state = VMStateCLI
    import_ = VMImportCLI
    delete = VMDeleteCLI
    set_mac = VMSetMacCLI
    guest_additions = VMGuestAdditionsCLI
