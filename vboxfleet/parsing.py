"""Line-level parsers shared by the VBoxManage output readers."""

from __future__ import annotations

import re
from typing import Iterator, Optional

# `"<name>" {<uuid>}` as printed by `VBoxManage list vms`.
VM_LIST_RE = re.compile(r'^"(?P<name>.+?)" \{(?P<uuid>.+?)\}$')


def _unquote(text: str) -> str:
    if len(text) >= 2 and text[0] == '"' and text[-1] == '"':
        return text[1:-1]
    return text


def split_machinereadable(line: str) -> Optional[tuple[str, str]]:
    """Split one `key="value"` or `key=value` line; None if it is neither."""
    line = line.rstrip('\r\n')
    if '=' not in line:
        return None
    key, val = line.split('=', 1)
    key = _unquote(key.strip())
    if not key:
        return None
    return key, _unquote(val.strip())


def iter_vm_list(text: str) -> Iterator[tuple[str, str]]:
    """Yield `(name, uuid)` pairs from `VBoxManage list vms` output."""
    for line in (text or '').splitlines():
        m = VM_LIST_RE.match(line.strip())
        if m:
            yield m.group('name'), m.group('uuid')
