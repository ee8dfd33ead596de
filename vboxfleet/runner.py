"""The single gateway through which every VBoxManage invocation flows."""

from __future__ import annotations

from .runtime import VBOXMANAGE, vboxmanage_cmd
from .util import run_cmd


class CommandRunner:
    """Run VBoxManage subcommands and return their stdout.

    Raises :class:`~vboxfleet.errors.ToolNotFound` if the executable cannot
    be started and :class:`~vboxfleet.errors.CommandFailed` if it exits
    non-zero. Output is only handed back once the exit status is known to be
    zero, so callers never parse a partial result.
    """

    def __init__(self, executable: str = VBOXMANAGE):
        self.executable = executable or VBOXMANAGE

    def __repr__(self) -> str:
        return f'{self.__class__.__name__}({self.executable!r})'

    def execute(self, *command: str) -> str:
        cmd = vboxmanage_cmd(*command, executable=self.executable)
        res = run_cmd(cmd, check=True, capture=True)
        return res.stdout
