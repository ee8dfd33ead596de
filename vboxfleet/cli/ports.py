"""CLI commands for NAT port-forwarding management."""

from __future__ import annotations

import re

import scriptconfig as scfg

from ..config import FleetConfig
from ..errors import ConfigError
from ..forwarding import ForwardingRule, correct_collisions
from ..status import format_rule
from ._common import (
    _BaseCommand,
    _confirm_destructive,
    _load_cfg,
    _make_driver,
    _require_arg,
    log,
)

_RULE_RE = re.compile(
    r'^(?P<name>[^:,/@\s]+):(?P<host>\d+):(?P<guest>\d+)'
    r'(?:/(?P<proto>tcp|udp))?(?:@(?P<adapter>\d+))?$'
)


def _parse_rules_arg(text: str, cfg: FleetConfig) -> list[ForwardingRule]:
    """Parse `name:host:guest[/proto][@adapter]` items separated by commas."""
    rules: list[ForwardingRule] = []
    seen: set[str] = set()
    for item in (text or '').split(','):
        item = item.strip()
        if not item:
            continue
        m = _RULE_RE.match(item)
        if m is None:
            raise ConfigError(
                f'Invalid rule {item!r}; expected name:host_port:guest_port[/tcp|udp][@adapter]'
            )
        name = m.group('name')
        if name in seen:
            raise ConfigError(f'Duplicate rule name {name!r}')
        seen.add(name)
        host, guest = int(m.group('host')), int(m.group('guest'))
        for port in (host, guest):
            if port < 1 or port > 65535:
                raise ConfigError(
                    f'Invalid port {port} in rule {item!r}; expected range 1..65535.'
                )
        rules.append(
            ForwardingRule(
                name=name,
                host_port=host,
                guest_port=guest,
                adapter=int(m.group('adapter') or cfg.forwarding.default_adapter),
                protocol=m.group('proto') or cfg.forwarding.default_protocol,
            )
        )
    return rules


class PortsListCLI(_BaseCommand):
    """List NAT port-forwarding rules of one VM."""

    uuid = scfg.Value('', type=str, position=1, help='VM uuid or name.')
    active_only = scfg.Value(
        False,
        isflag=True,
        help='Report nothing unless the VM is running.',
    )

    @classmethod
    def main(cls, argv=True, **kwargs):
        args = cls.cli(argv=argv, data=kwargs)
        uuid = _require_arg(args.uuid, 'uuid')
        driver = _make_driver(_load_cfg(args.config), uuid)
        rules = driver.read_forwarded_ports(active_only=bool(args.active_only))
        if not rules:
            print('(none)')
        for rule in rules:
            print(format_rule(rule))
        return 0


class PortsForwardCLI(_BaseCommand):
    """Add NAT port-forwarding rules to one VM."""

    uuid = scfg.Value('', type=str, position=1, help='VM uuid or name.')
    rules = scfg.Value(
        '',
        type=str,
        position=2,
        help='Comma separated name:host_port:guest_port[/tcp|udp][@adapter].',
    )
    replace = scfg.Value(
        False,
        isflag=True,
        help='Clear all existing rules of the VM first.',
    )
    auto_correct = scfg.Value(
        False,
        isflag=True,
        help='Move host ports already used by running VMs into the configured range.',
    )
    dry_run = scfg.Value(
        False, isflag=True, help='Print actions without running.'
    )

    @classmethod
    def main(cls, argv=True, **kwargs):
        args = cls.cli(argv=argv, data=kwargs)
        uuid = _require_arg(args.uuid, 'uuid')
        cfg = _load_cfg(args.config)
        rules = _parse_rules_arg(_require_arg(args.rules, 'rules'), cfg)
        driver = _make_driver(cfg, uuid)
        if args.replace:
            _confirm_destructive(
                yes=bool(args.yes) or bool(args.dry_run),
                purpose=f'Remove all forwarded ports of VM {uuid}.',
            )
            driver.clear_forwarded_ports(dry_run=args.dry_run)
        if args.auto_correct:
            used = driver.read_used_ports()
            if not args.replace:
                # Rules this VM keeps are taken too, even if it is stopped.
                used |= {r.host_port for r in driver.read_forwarded_ports()}
            rules = correct_collisions(
                rules,
                used,
                start=cfg.forwarding.port_range_start,
                end=cfg.forwarding.port_range_end,
            )
        driver.forward_ports(rules, dry_run=args.dry_run)
        for rule in rules:
            print(format_rule(rule))
        return 0


class PortsClearCLI(_BaseCommand):
    """Remove every NAT port-forwarding rule of one VM."""

    uuid = scfg.Value('', type=str, position=1, help='VM uuid or name.')
    dry_run = scfg.Value(
        False, isflag=True, help='Print actions without running.'
    )

    @classmethod
    def main(cls, argv=True, **kwargs):
        args = cls.cli(argv=argv, data=kwargs)
        uuid = _require_arg(args.uuid, 'uuid')
        driver = _make_driver(_load_cfg(args.config), uuid)
        _confirm_destructive(
            yes=bool(args.yes) or bool(args.dry_run),
            purpose=f'Remove all forwarded ports of VM {uuid}.',
        )
        removed = driver.clear_forwarded_ports(dry_run=args.dry_run)
        log.debug('Removed rules: {}', [r.name for r in removed])
        print(f'Removed {len(removed)} rule(s).')
        return 0


class PortsUsedCLI(_BaseCommand):
    """Print host ports claimed by forwarding rules of all running VMs."""

    @classmethod
    def main(cls, argv=True, **kwargs):
        args = cls.cli(argv=argv, data=kwargs)
        driver = _make_driver(_load_cfg(args.config))
        for port in sorted(driver.read_used_ports()):
            print(port)
        return 0


class PortsModalCLI(scfg.ModalCLI):
    """Port-forwarding subcommands."""

    list = PortsListCLI
    forward = PortsForwardCLI
    clear = PortsClearCLI
    used = PortsUsedCLI
