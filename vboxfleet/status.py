"""Probe and rendering logic for host and fleet status reporting."""

from __future__ import annotations

from dataclasses import dataclass, field

from loguru import logger

from .config import FleetConfig
from .driver import VirtualBoxDriver
from .errors import CommandFailed, HypervisorNotDetected
from .forwarding import ForwardingRule
from .state import VMState
from .util import which

log = logger


@dataclass(frozen=True)
class ProbeOutcome:
    ok: bool | None
    detail: str
    diag: str = ''


@dataclass
class MachineStatus:
    name: str
    uuid: str
    state: VMState = VMState.UNKNOWN
    rules: list[ForwardingRule] = field(default_factory=list)
    error: str = ''


def status_line(ok: bool | None, label: str, detail: str = '') -> str:
    icon = '✅' if ok is True else ('➖' if ok is None else '❌')
    suffix = f' - {detail}' if detail else ''
    return f'{icon} {label}{suffix}'


def clip(text: str, *, max_lines: int = 60) -> str:
    lines = (text or '').strip().splitlines()
    if len(lines) <= max_lines:
        return '\n'.join(lines)
    keep: list[str] = list(lines[:max_lines])
    keep.append(f'... ({len(lines) - max_lines} more lines)')
    return '\n'.join(keep)


def format_rule(rule: ForwardingRule) -> str:
    return (
        f'{rule.name} {rule.host_port}->{rule.guest_port}/{rule.protocol}'
        f'@nic{rule.adapter}'
    )


def probe_vboxmanage(
    cfg: FleetConfig,
) -> tuple[ProbeOutcome, VirtualBoxDriver | None]:
    exe = cfg.vboxmanage.executable
    path = which(exe)
    try:
        driver = VirtualBoxDriver(None, executable=exe)
    except HypervisorNotDetected as ex:
        return ProbeOutcome(False, f'{exe} not found', str(ex)), None
    except CommandFailed as ex:
        return (
            ProbeOutcome(False, f'{exe} --version failed', clip(ex.stderr)),
            None,
        )
    return ProbeOutcome(True, f'{driver.version} ({path or exe})'), driver


def probe_machine(
    driver: VirtualBoxDriver, name: str, uuid: str
) -> MachineStatus:
    status = MachineStatus(name=name, uuid=uuid)
    try:
        status.state = driver.read_state(uuid)
        if status.state is not VMState.INACCESSIBLE:
            status.rules = driver.read_forwarded_ports(uuid)
    except CommandFailed as ex:
        # The machine may have been unregistered since the listing.
        log.debug('Probe of VM {} failed: {}', uuid, ex)
        msg = (ex.stderr or '').strip().splitlines()
        status.error = msg[0] if msg else f'exit code {ex.exit_code}'
    return status


def _machine_line(status: MachineStatus) -> str:
    label = f'{status.name} {{{status.uuid}}}'
    if status.error:
        return status_line(False, label, status.error)
    ok: bool | None
    if status.state.is_running:
        ok = True
    elif status.state in {VMState.INACCESSIBLE, VMState.UNKNOWN}:
        ok = None
    else:
        ok = False
    detail = status.state.value
    if status.rules:
        detail += ' | ports: ' + ', '.join(format_rule(r) for r in status.rules)
    return status_line(ok, label, detail)


def render_fleet_status(cfg: FleetConfig, *, detail: bool = False) -> str:
    lines = ['🖥️  VirtualBox fleet status', '']
    vbox, driver = probe_vboxmanage(cfg)
    lines.append(status_line(vbox.ok, 'VBoxManage', vbox.detail))
    if detail and vbox.diag:
        lines.append(vbox.diag)
    if driver is None:
        return '\n'.join(lines)

    machines = [probe_machine(driver, n, u) for n, u in driver.list_vms()]
    lines.append('')
    lines.append(f'Machines ({len(machines)})')
    if not machines:
        lines.append('  (none)')
    for status in sorted(machines, key=lambda m: m.name):
        lines.append('  ' + _machine_line(status))

    used = sorted(
        {
            r.host_port
            for m in machines
            if m.state is VMState.RUNNING
            for r in m.rules
        }
    )
    lines.append('')
    lines.append(
        'Host ports in use: ' + (', '.join(str(p) for p in used) or '(none)')
    )
    return '\n'.join(lines)
