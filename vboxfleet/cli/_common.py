"""Shared option base, config resolution, and confirmation helpers."""

from __future__ import annotations

import sys
from pathlib import Path

import scriptconfig as scfg
from loguru import logger

from ..config import LOCAL_CONFIG_NAME, FleetConfig, load_config
from ..driver import VirtualBoxDriver

log = logger


class _BaseCommand(scfg.DataConfig):
    """Base options shared by all commands."""

    config = scfg.Value(
        None, help=f'Path to config TOML (default: {LOCAL_CONFIG_NAME}).'
    )
    verbose = scfg.Value(
        0,
        short_alias=['v'],
        isflag='counter',
        help='Increase verbosity (-v, -vv).',
    )
    yes = scfg.Value(
        False,
        isflag=True,
        help='Auto-approve destructive operations.',
    )


def _cfg_path(p: str | None) -> Path:
    return Path(p or LOCAL_CONFIG_NAME).resolve()


def _load_cfg(config_path: str | None) -> FleetConfig:
    return load_config(config_path)


def _make_driver(cfg: FleetConfig, uuid: str | None = None) -> VirtualBoxDriver:
    uuid = str(uuid or '').strip() or None
    return VirtualBoxDriver(uuid, executable=cfg.vboxmanage.executable)


def _require_arg(value, name: str) -> str:
    text = str(value or '').strip()
    if not text:
        raise RuntimeError(f'Missing required argument: {name}')
    return text


def _confirm_destructive(*, yes: bool, purpose: str) -> None:
    if yes:
        return
    if not sys.stdin.isatty():
        raise RuntimeError(
            'Destructive operations require confirmation, but stdin is not interactive. '
            'Re-run with --yes.'
        )
    print('About to run a destructive VirtualBox operation:')
    print(f'  {purpose}')
    ans = input('Continue? [y/N]: ').strip().lower()
    if ans not in {'y', 'yes'}:
        raise RuntimeError('Aborted by user.')
