"""Top-level modal CLI wiring, argv normalization, and logging setup."""

from __future__ import annotations

import os
import sys

import scriptconfig as scfg
from loguru import logger

from ..status import probe_vboxmanage, render_fleet_status, status_line
from ._common import _BaseCommand, _load_cfg, log
from .config import ConfigModalCLI
from .ports import PortsModalCLI
from .vm import VMModalCLI


class DoctorCLI(_BaseCommand):
    """Check that VBoxManage can be launched and report its version."""

    @classmethod
    def main(cls, argv=True, **kwargs):
        args = cls.cli(argv=argv, data=kwargs)
        cfg = _load_cfg(args.config)
        outcome, _ = probe_vboxmanage(cfg)
        print(status_line(outcome.ok, 'VBoxManage', outcome.detail))
        if not outcome.ok:
            if outcome.diag:
                print(outcome.diag)
            print('💡 Install VirtualBox or set [vboxmanage] executable in the config.')
            return 2
        return 0


class StatusCLI(_BaseCommand):
    """Report every VM on this host with its state and forwarded ports."""

    detail = scfg.Value(
        False,
        isflag=True,
        help='Include raw diagnostics.',
    )

    @classmethod
    def main(cls, argv=True, **kwargs):
        args = cls.cli(argv=argv, data=kwargs)
        cfg = _load_cfg(args.config)
        print(render_fleet_status(cfg, detail=bool(args.detail)))
        return 0


class VBoxFleetModalCLI(scfg.ModalCLI):
    """Drive VirtualBox VMs and their NAT port forwards from one host."""

    config = ConfigModalCLI
    doctor = DoctorCLI
    status = StatusCLI
    vm = VMModalCLI
    ports = PortsModalCLI


def main(argv: list[str] | None = None) -> None:
    verbosity = 1
    config_value = None
    if argv is None:
        argv = sys.argv[1:]
    argv = _normalize_argv(argv)
    if '--config' in argv:
        try:
            config_value = argv[argv.index('--config') + 1]
        except IndexError:
            pass
    try:
        verbosity = _load_cfg(config_value).verbosity
    except Exception:
        verbosity = 1

    explicit_verbose = _count_verbose(argv)
    _setup_logging(explicit_verbose, verbosity)

    try:
        rc = VBoxFleetModalCLI.main(argv=argv, _noexit=True)
    except Exception as ex:
        print(f'ERROR: {ex}', file=sys.stderr)
        log.error('Unhandled vboxfleet error: {}', ex)
        sys.exit(2)

    if any(flag in argv for flag in ('-h', '--help')):
        sys.exit(0)
    if isinstance(rc, int):
        sys.exit(rc)
    sys.exit(0)


def _setup_logging(args_verbose: int, cfg_verbosity: int) -> None:
    logger.remove()
    effective_verbosity = args_verbose if args_verbose > 0 else cfg_verbosity
    level = 'WARNING'
    if effective_verbosity == 1:
        level = 'INFO'
    elif effective_verbosity >= 2:
        level = 'DEBUG'
    colorize = sys.stderr.isatty() and os.getenv('NO_COLOR') is None
    logger.add(
        sys.stderr,
        level=level,
        colorize=colorize,
        format='<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>',
    )
    log.debug(
        'Logging configured at {} (effective_verbosity={}, colorize={})',
        level,
        effective_verbosity,
        colorize,
    )


def _normalize_argv(argv: list[str]) -> list[str]:
    """Normalize accepted spellings to scriptconfig command names."""
    if len(argv) >= 1 and argv[0] == 'init':
        return ['config', 'init', *argv[1:]]
    if len(argv) >= 1 and argv[0] in {'ls', 'list'}:
        return ['vm', 'list', *argv[1:]]
    if len(argv) >= 2 and argv[0] == 'vm':
        aliases = {
            'import': 'import_',
            'set-mac': 'set_mac',
            'guest-additions': 'guest_additions',
        }
        if argv[1] in aliases:
            return [argv[0], aliases[argv[1]], *argv[2:]]
    return argv


def _count_verbose(argv: list[str]) -> int:
    count = 0
    for item in argv:
        if item == '--verbose':
            count += 1
        elif item.startswith('-') and not item.startswith('--'):
            short = item[1:]
            if short and set(short) <= {'v'}:
                count += len(short)
    return count
