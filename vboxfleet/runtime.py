"""Runtime helpers for constructing VBoxManage command arguments."""

from __future__ import annotations

VBOXMANAGE = 'VBoxManage'

GUEST_ADDITIONS_VERSION_PROP = '/VirtualBox/GuestAdd/Version'


def vboxmanage_cmd(*args: str, executable: str = VBOXMANAGE) -> list[str]:
    return [executable or VBOXMANAGE, *(str(a) for a in args)]


def natpf_flag(adapter: int) -> str:
    return f'--natpf{int(adapter)}'
