"""Shared fixtures: an in-memory stand-in for the VBoxManage executable."""

from __future__ import annotations

from dataclasses import dataclass, field

import pytest

from vboxfleet.errors import CommandFailed
from vboxfleet.util import CmdResult


@dataclass
class FakeMachine:
    name: str
    uuid: str
    state: str = 'poweroff'
    nics: dict[int, str] = field(default_factory=lambda: {1: 'nat'})
    # (adapter, name, protocol, host_port, guest_port)
    rules: list[tuple[int, str, str, int, int]] = field(default_factory=list)
    mac: str = '080027000001'
    guest_additions: str | None = None
    inaccessible: bool = False

    def showvminfo(self) -> str:
        if self.inaccessible:
            return (
                'name="<inaccessible>"\n'
                f'UUID="{self.uuid}"\n'
                'VMState="aborted"\n'
            )
        lines = [
            f'name="{self.name}"',
            'groups="/"',
            'ostype="Ubuntu (64-bit)"',
            f'UUID="{self.uuid}"',
            'memory=1024',
            f'VMState="{self.state}"',
            'VMStateChangeTime="2024-05-01T10:00:00.000000000"',
        ]
        for nic in sorted(self.nics):
            lines.append(f'nic{nic}="{self.nics[nic]}"')
            lines.append(f'nictype{nic}="82540EM"')
            lines.append(f'macaddress{nic}="{self.mac}"')
            idx = 0
            for adapter, name, proto, host, guest in self.rules:
                if adapter != nic:
                    continue
                lines.append(f'Forwarding({idx})="{name},{proto},,{host},,{guest}"')
                idx += 1
        lines.append('GuestMemoryBalloon=0')
        return '\n'.join(lines) + '\n'


class FakeVBox:
    """Records every call and answers like a small VirtualBox install."""

    executable = 'VBoxManage'

    def __init__(self, version: str = '7.0.14r161095'):
        self.version = version
        self.machines: dict[str, FakeMachine] = {}
        self.calls: list[tuple[str, ...]] = []

    def add(self, name: str, uuid: str, **kwargs) -> FakeMachine:
        vm = FakeMachine(name=name, uuid=uuid, **kwargs)
        self.machines[uuid] = vm
        return vm

    @property
    def mutating_calls(self) -> list[tuple[str, ...]]:
        return [
            c for c in self.calls if c[0] in {'modifyvm', 'unregistervm', 'import'}
        ]

    def _fail(self, cmd: tuple[str, ...], msg: str) -> CommandFailed:
        return CommandFailed(
            ['VBoxManage', *cmd], CmdResult(1, '', f'VBoxManage: error: {msg}\n')
        )

    def _lookup(self, cmd: tuple[str, ...], key: str) -> FakeMachine:
        for vm in self.machines.values():
            if key in (vm.uuid, vm.name):
                return vm
        raise self._fail(cmd, f'Could not find a registered machine named {key!r}')

    def execute(self, *command: str) -> str:
        cmd = tuple(str(c) for c in command)
        self.calls.append(cmd)
        if cmd == ('--version',):
            return self.version + '\n'
        if cmd == ('list', 'vms'):
            return ''.join(
                f'"{vm.name}" {{{vm.uuid}}}\n' for vm in self.machines.values()
            )
        if cmd[0] == 'showvminfo':
            return self._lookup(cmd, cmd[1]).showvminfo()
        if cmd[0] == 'modifyvm':
            self._modifyvm(cmd)
            return ''
        if cmd[0] == 'guestproperty':
            vm = self._lookup(cmd, cmd[2])
            if vm.guest_additions is None:
                return 'No value set!\n'
            return f'Value: {vm.guest_additions}\n'
        if cmd[0] == 'import':
            name = cmd[cmd.index('--vmname') + 1]
            self.add(name, f'uuid-{name}')
            return '0%...10%...100%\nSuccessfully imported the appliance.\n'
        if cmd[0] == 'unregistervm':
            vm = self._lookup(cmd, cmd[1])
            del self.machines[vm.uuid]
            return ''
        raise self._fail(cmd, f'unhandled command {cmd!r}')

    def _modifyvm(self, cmd: tuple[str, ...]) -> None:
        vm = self._lookup(cmd, cmd[1])
        args = list(cmd[2:])
        if not args:
            raise self._fail(cmd, 'No parameters given')
        i = 0
        while i < len(args):
            flag = args[i]
            if flag.startswith('--natpf'):
                adapter = int(flag[len('--natpf'):])
                if args[i + 1] == 'delete':
                    name = args[i + 2]
                    before = len(vm.rules)
                    vm.rules = [
                        r for r in vm.rules if not (r[0] == adapter and r[1] == name)
                    ]
                    if len(vm.rules) == before:
                        raise self._fail(cmd, f'NAT rule {name!r} not found')
                    i += 3
                    continue
                name, proto, _hip, host, _gip, guest = args[i + 1].split(',')
                if any(r[1] == name for r in vm.rules):
                    raise self._fail(cmd, 'A NAT rule of this name already exists')
                vm.rules.append((adapter, name, proto, int(host), int(guest)))
                i += 2
            elif flag == '--macaddress1':
                mac = args[i + 1]
                if len(mac) != 12 and mac != 'auto':
                    raise self._fail(cmd, f'Invalid MAC address {mac!r}')
                vm.mac = mac
                i += 2
            else:
                raise self._fail(cmd, f'Unknown option: {flag}')


@pytest.fixture
def fake_vbox() -> FakeVBox:
    return FakeVBox()
