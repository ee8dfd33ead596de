"""CLI commands for creating and inspecting the config file."""

from __future__ import annotations

import sys

import scriptconfig as scfg

from ..config import (
    FleetConfig,
    dump_toml,
    global_config_path,
    resolve_config_path,
    save,
)
from ..util import which
from ._common import _BaseCommand, _cfg_path, _load_cfg


class ConfigInitCLI(_BaseCommand):
    """Write a default config file."""

    force = scfg.Value(
        False, isflag=True, help='Overwrite an existing config file.'
    )
    user = scfg.Value(
        False,
        isflag=True,
        help='Write the per-user config instead of ./.vboxfleet.toml.',
    )

    @classmethod
    def main(cls, argv=True, **kwargs):
        args = cls.cli(argv=argv, data=kwargs)
        path = global_config_path() if args.user else _cfg_path(args.config)
        if path.exists() and not args.force:
            print(f'Config already exists: {path}', file=sys.stderr)
            print('Use --force to overwrite it.', file=sys.stderr)
            return 2
        cfg = FleetConfig()
        exe = which(cfg.vboxmanage.executable)
        if exe:
            cfg.vboxmanage.executable = exe
        save(path, cfg)
        print(f'Wrote config: {path}')
        return 0


class ConfigShowCLI(_BaseCommand):
    """Show the resolved config."""

    @classmethod
    def main(cls, argv=True, **kwargs):
        args = cls.cli(argv=argv, data=kwargs)
        path = resolve_config_path(args.config)
        cfg = _load_cfg(args.config)
        print(f'# Config: {path if path is not None else "(defaults)"}')
        print(dump_toml(cfg), end='')
        return 0


class ConfigModalCLI(scfg.ModalCLI):
    """Config subcommands."""

    init = ConfigInitCLI
    show = ConfigShowCLI
