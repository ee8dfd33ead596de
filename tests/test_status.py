"""Tests for fleet status probing and rendering."""

from __future__ import annotations

from vboxfleet.config import FleetConfig
from vboxfleet.driver import VirtualBoxDriver
from vboxfleet.errors import ToolNotFound
from vboxfleet.forwarding import ForwardingRule
from vboxfleet.status import clip, format_rule, render_fleet_status, status_line


def _patch_driver(monkeypatch, runner) -> None:
    monkeypatch.setattr(
        'vboxfleet.status.VirtualBoxDriver',
        lambda uuid, executable='VBoxManage': VirtualBoxDriver(uuid, runner=runner),
    )


def test_status_line_icons() -> None:
    assert status_line(True, 'x') == '✅ x'
    assert status_line(False, 'x', 'bad') == '❌ x - bad'
    assert status_line(None, 'x').startswith('➖')


def test_clip() -> None:
    text = '\n'.join(str(i) for i in range(10))
    assert clip(text, max_lines=3).endswith('... (7 more lines)')


def test_format_rule() -> None:
    rule = ForwardingRule('dns', 5353, 53, adapter=2, protocol='udp')
    assert format_rule(rule) == 'dns 5353->53/udp@nic2'


def test_render_fleet_status(monkeypatch, fake_vbox) -> None:
    up = fake_vbox.add('web', 'uuid-web', state='running')
    up.rules.append((1, 'http', 'tcp', 8080, 80))
    down = fake_vbox.add('db', 'uuid-db', state='poweroff')
    down.rules.append((1, 'pg', 'tcp', 5432, 5432))
    fake_vbox.add('lost', 'uuid-lost', inaccessible=True)
    _patch_driver(monkeypatch, fake_vbox)
    monkeypatch.setattr('vboxfleet.status.which', lambda cmd: '/usr/bin/' + cmd)

    text = render_fleet_status(FleetConfig())
    assert '✅ VBoxManage - 7.0.14 (/usr/bin/VBoxManage)' in text
    assert 'Machines (3)' in text
    assert '✅ web {uuid-web} - running | ports: http 8080->80/tcp@nic1' in text
    assert '❌ db {uuid-db} - poweroff | ports: pg 5432->5432/tcp@nic1' in text
    assert '➖ lost {uuid-lost} - inaccessible' in text
    assert 'Host ports in use: 8080' in text


def test_render_fleet_status_without_vboxmanage(monkeypatch) -> None:
    class Missing:
        executable = 'VBoxManage'

        def execute(self, *command):
            raise ToolNotFound('VBoxManage')

    _patch_driver(monkeypatch, Missing())
    text = render_fleet_status(FleetConfig())
    assert '❌ VBoxManage - VBoxManage not found' in text
    assert 'Machines' not in text
