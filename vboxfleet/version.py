"""Read the installed VirtualBox release."""

from __future__ import annotations

import re

from loguru import logger

from .runner import CommandRunner

log = logger


def parse_version(output: str) -> str:
    # `VBoxManage --version` prints e.g. `6.1.34r150636`.
    return (output or '').strip().split('r')[0].strip()


def parse_version_tuple(version: str) -> tuple[int, ...]:
    """Leading numeric components of a version, e.g. (7, 0, 14)."""
    parts: list[int] = []
    for tok in (version or '').split('.'):
        m = re.match(r'\d+', tok)
        if m is None:
            break
        parts.append(int(m.group(0)))
        if m.group(0) != tok:
            break
    return tuple(parts)


def read_version(runner: CommandRunner) -> str:
    version = parse_version(runner.execute('--version'))
    log.debug('Detected VirtualBox version {}', version or '(empty)')
    return version
