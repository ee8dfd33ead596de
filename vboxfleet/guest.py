"""Guest-reported properties."""

from __future__ import annotations

import re
from typing import Optional

from .runner import CommandRunner
from .runtime import GUEST_ADDITIONS_VERSION_PROP

_VALUE_RE = re.compile(r'^Value: (.+?)$', re.MULTILINE)


def parse_guest_property(output: str) -> Optional[str]:
    m = _VALUE_RE.search(output or '')
    return m.group(1).strip() if m else None


def read_guest_additions_version(
    runner: CommandRunner, uuid: str
) -> Optional[str]:
    # Prints `No value set!` when the additions are not installed.
    output = runner.execute(
        'guestproperty', 'get', uuid, GUEST_ADDITIONS_VERSION_PROP
    )
    return parse_guest_property(output)
