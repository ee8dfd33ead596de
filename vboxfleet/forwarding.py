"""NAT port-forwarding rules: read, add, clear, and host-wide port usage."""

from __future__ import annotations

import dataclasses
import re
from dataclasses import dataclass
from typing import Iterable, Optional

from loguru import logger

from .errors import VBoxFleetError
from .parsing import iter_vm_list, split_machinereadable
from .runner import CommandRunner
from .runtime import natpf_flag, vboxmanage_cmd
from .util import shell_join

log = logger

DEFAULT_ADAPTER = 1
DEFAULT_PROTOCOL = 'tcp'

_NIC_KEY_RE = re.compile(r'^nic(\d+)$')


@dataclass(frozen=True)
class ForwardingRule:
    name: str
    host_port: int
    guest_port: int
    adapter: int = DEFAULT_ADAPTER
    protocol: str = DEFAULT_PROTOCOL

    def natpf_spec(self) -> str:
        # name,proto,hostip,hostport,guestip,guestport; blank IPs mean "any".
        return ','.join(
            [
                self.name,
                self.protocol or DEFAULT_PROTOCOL,
                '',
                str(self.host_port),
                '',
                str(self.guest_port),
            ]
        )


def _parse_port(raw: str) -> Optional[int]:
    raw = raw.strip()
    if not raw.isdigit():
        return None
    return int(raw)


def _parse_rule_value(value: str) -> Optional[tuple[str, str, int, int]]:
    parts = value.split(',')
    if len(parts) != 6:
        return None
    name, proto, _host_ip, host_raw, _guest_ip, guest_raw = parts
    if not name or not proto:
        return None
    host_port = _parse_port(host_raw)
    guest_port = _parse_port(guest_raw)
    if host_port is None or guest_port is None:
        return None
    return name, proto, host_port, guest_port


def parse_forwarded_ports(
    output: str, *, active_only: bool = False
) -> list[ForwardingRule]:
    """Scan machine-readable info output for NAT forwarding rules.

    VBoxManage prints each ``nicN=`` declaration before the ``Forwarding``
    lines that belong to it, so the adapter of a rule is whatever adapter
    was declared most recently. With ``active_only`` the scan stops and
    returns nothing as soon as a state line other than ``running`` shows up.
    """
    results: list[ForwardingRule] = []
    current_adapter: int | None = None
    for line in (output or '').splitlines():
        kv = split_machinereadable(line)
        if kv is None:
            continue
        key, value = kv

        m = _NIC_KEY_RE.match(key)
        if m is not None and value:
            current_adapter = int(m.group(1))
            continue

        if active_only and key == 'VMState' and value != 'running':
            return []

        if key.startswith('Forwarding'):
            parsed = _parse_rule_value(value)
            if parsed is None:
                log.debug('Skipping unparseable forwarding line: {}', line)
                continue
            name, proto, host_port, guest_port = parsed
            results.append(
                ForwardingRule(
                    name=name,
                    host_port=host_port,
                    guest_port=guest_port,
                    adapter=(
                        current_adapter
                        if current_adapter is not None
                        else DEFAULT_ADAPTER
                    ),
                    protocol=proto,
                )
            )
    return results


def read_forwarded_ports(
    runner: CommandRunner, uuid: str, *, active_only: bool = False
) -> list[ForwardingRule]:
    output = runner.execute('showvminfo', uuid, '--machinereadable')
    rules = parse_forwarded_ports(output, active_only=active_only)
    log.debug(
        'VM {} has {} forwarded port(s) (active_only={})',
        uuid,
        len(rules),
        active_only,
    )
    return rules


def _modifyvm(
    runner: CommandRunner, uuid: str, args: list[str], *, dry_run: bool
) -> None:
    if dry_run:
        log.info(
            'DRYRUN: {}',
            shell_join(
                vboxmanage_cmd(
                    'modifyvm', uuid, *args, executable=runner.executable
                )
            ),
        )
        return
    runner.execute('modifyvm', uuid, *args)


def clear_forwarded_ports(
    runner: CommandRunner, uuid: str, *, dry_run: bool = False
) -> list[ForwardingRule]:
    """Delete every forwarding rule of a VM in one ``modifyvm`` call.

    Returns the rules that were removed. Nothing is executed when the VM
    has no rules.
    """
    existing = read_forwarded_ports(runner, uuid)
    args: list[str] = []
    for rule in existing:
        args.extend([natpf_flag(rule.adapter), 'delete', rule.name])
    if not args:
        log.debug('No forwarded ports to clear on VM {}', uuid)
        return []
    log.info('Clearing {} forwarded port(s) on VM {}', len(existing), uuid)
    _modifyvm(runner, uuid, args, dry_run=dry_run)
    return existing


def forward_ports(
    runner: CommandRunner,
    uuid: str,
    rules: Iterable[ForwardingRule],
    *,
    dry_run: bool = False,
) -> None:
    """Add forwarding rules to a VM in one ``modifyvm`` call.

    Existing rules are left alone; call :func:`clear_forwarded_ports` first
    if the new set should replace them.
    """
    args: list[str] = []
    count = 0
    for rule in rules:
        args.extend([natpf_flag(rule.adapter), rule.natpf_spec()])
        count += 1
    if not args:
        log.debug('No forwarded ports requested for VM {}', uuid)
        return
    log.info('Forwarding {} port(s) on VM {}', count, uuid)
    _modifyvm(runner, uuid, args, dry_run=dry_run)


def read_used_ports(runner: CommandRunner) -> set[int]:
    """Host ports claimed by forwarding rules of every running VM.

    Each VM is queried separately, so the result is a point-in-time
    approximation when machines change state concurrently.
    """
    ports: set[int] = set()
    listing = runner.execute('list', 'vms')
    for _name, uuid in iter_vm_list(listing):
        for rule in read_forwarded_ports(runner, uuid, active_only=True):
            ports.add(rule.host_port)
    log.debug('Host ports in use by running VMs: {}', sorted(ports))
    return ports


def pick_free_host_port(
    used: Iterable[int], *, start: int, end: int
) -> int:
    taken = set(used)
    for port in range(int(start), int(end) + 1):
        if port not in taken:
            return port
    raise VBoxFleetError(
        f'No free host port in range {start}..{end}; '
        'widen [forwarding] port_range_start/port_range_end.'
    )


def correct_collisions(
    rules: Iterable[ForwardingRule],
    used: Iterable[int],
    *,
    start: int,
    end: int,
) -> list[ForwardingRule]:
    """Move rules whose host port is already taken onto free ports.

    Replacement ports avoid every host port requested elsewhere in the
    batch.
    """
    rules = list(rules)
    taken = set(used)
    requested = {r.host_port for r in rules if r.host_port not in taken}
    out: list[ForwardingRule] = []
    for rule in rules:
        if rule.host_port in taken:
            new_port = pick_free_host_port(
                taken | requested, start=start, end=end
            )
            log.warning(
                'Host port {} for rule {!r} is in use; using {} instead.',
                rule.host_port,
                rule.name,
                new_port,
            )
            rule = dataclasses.replace(rule, host_port=new_port)
        taken.add(rule.host_port)
        out.append(rule)
    return out
