"""Project-specific exception types."""

from __future__ import annotations

from typing import TYPE_CHECKING, Sequence

if TYPE_CHECKING:
    from .util import CmdResult


class VBoxFleetError(RuntimeError):
    """Base error for domain-level vboxfleet failures."""


class ConfigError(VBoxFleetError):
    """Raised when a config file or CLI rule specification is malformed."""


class ToolNotFound(VBoxFleetError):
    """Raised when the management executable cannot be launched at all."""

    def __init__(self, executable: str, reason: str = ''):
        self.executable = executable
        self.reason = reason
        msg = f'Unable to launch {executable!r}'
        if reason:
            msg += f': {reason}'
        super().__init__(msg)


class HypervisorNotDetected(VBoxFleetError):
    """Raised when VirtualBox does not appear to be installed or on PATH."""

    def __init__(self, executable: str = 'VBoxManage'):
        self.executable = executable
        super().__init__(
            f'VirtualBox could not be detected: `{executable}` is not '
            'installed or not on PATH. Install VirtualBox or set '
            '[vboxmanage] executable in the config.'
        )


class CommandFailed(VBoxFleetError):
    """Raised when the executable runs but exits with a non-zero status."""

    def __init__(self, cmd: Sequence[str] | str, result: CmdResult):
        self.cmd = cmd
        self.result = result
        super().__init__(
            f'Command failed (code={result.code}): {cmd}\n{result.stderr}'.strip()
        )

    @property
    def exit_code(self) -> int:
        return self.result.code

    @property
    def stderr(self) -> str:
        return self.result.stderr
