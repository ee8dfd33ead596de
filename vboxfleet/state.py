"""Machine lifecycle state as reported by `showvminfo --machinereadable`."""

from __future__ import annotations

from enum import Enum

from loguru import logger

from .parsing import split_machinereadable
from .runner import CommandRunner

log = logger

INACCESSIBLE_NAME = '<inaccessible>'


class VMState(str, Enum):
    RUNNING = 'running'
    POWEROFF = 'poweroff'
    SAVED = 'saved'
    ABORTED = 'aborted'
    PAUSED = 'paused'
    STUCK = 'stuck'
    STARTING = 'starting'
    STOPPING = 'stopping'
    SAVING = 'saving'
    RESTORING = 'restoring'
    TELEPORTING = 'teleporting'
    TELEPORTINGIN = 'teleportingin'
    TELEPORTINGPAUSEDVM = 'teleportingpausedvm'
    LIVESNAPSHOTTING = 'livesnapshotting'
    ONLINESNAPSHOTTING = 'onlinesnapshotting'
    RESTORINGSNAPSHOT = 'restoringsnapshot'
    DELETINGSNAPSHOT = 'deletingsnapshot'
    DELETINGSNAPSHOTLIVE = 'deletingsnapshotlive'
    DELETINGSNAPSHOTPAUSED = 'deletingsnapshotpaused'
    SETTINGUP = 'settingup'
    GURUMEDITATION = 'gurumeditation'
    INACCESSIBLE = 'inaccessible'
    UNKNOWN = 'unknown'

    @classmethod
    def parse(cls, raw: str | None) -> 'VMState':
        value = (raw or '').strip().lower()
        if not value:
            return cls.UNKNOWN
        try:
            return cls(value)
        except ValueError:
            log.debug('Unrecognized VMState value {!r}', raw)
            return cls.UNKNOWN

    @property
    def is_running(self) -> bool:
        return self is VMState.RUNNING

    def __str__(self) -> str:
        return self.value


def parse_state(output: str) -> VMState:
    """Parse machine-readable info output into a :class:`VMState`.

    An inaccessible machine wins over any other field; a missing or
    unparseable state line yields ``VMState.UNKNOWN``.
    """
    found: VMState | None = None
    for line in (output or '').splitlines():
        if line.strip() == f'name="{INACCESSIBLE_NAME}"':
            return VMState.INACCESSIBLE
        if found is not None:
            continue
        kv = split_machinereadable(line)
        if kv is not None and kv[0] == 'VMState' and kv[1]:
            found = VMState.parse(kv[1])
    return found if found is not None else VMState.UNKNOWN


def read_state(runner: CommandRunner, uuid: str) -> VMState:
    output = runner.execute('showvminfo', uuid, '--machinereadable')
    state = parse_state(output)
    log.debug('VM {} state={}', uuid, state.value)
    return state
