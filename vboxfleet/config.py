"""Config dataclasses and TOML load/save helpers."""

from __future__ import annotations

import tomllib
from dataclasses import asdict, dataclass, field
from pathlib import Path

import ubelt as ub

from .errors import ConfigError
from .runtime import VBOXMANAGE
from .util import expand

LOCAL_CONFIG_NAME = '.vboxfleet.toml'


@dataclass
class VBoxManageConfig:
    executable: str = VBOXMANAGE


@dataclass
class ForwardingConfig:
    default_adapter: int = 1
    default_protocol: str = 'tcp'
    port_range_start: int = 2200
    port_range_end: int = 2250


@dataclass
class FleetConfig:
    vboxmanage: VBoxManageConfig = field(default_factory=VBoxManageConfig)
    forwarding: ForwardingConfig = field(default_factory=ForwardingConfig)
    verbosity: int = 1

    def expanded_paths(self) -> 'FleetConfig':
        exe = self.vboxmanage.executable
        # Bare command names are resolved on PATH; only expand real paths.
        if exe and ('/' in exe or exe.startswith('~') or '$' in exe):
            self.vboxmanage.executable = expand(exe)
        return self

    def validate(self) -> 'FleetConfig':
        fwd = self.forwarding
        for key in ('default_adapter', 'port_range_start', 'port_range_end'):
            raw = getattr(fwd, key)
            if isinstance(raw, bool):
                raise ConfigError(
                    f'forwarding.{key} must be an integer, got {raw!r}'
                )
            try:
                setattr(fwd, key, int(raw))
            except (TypeError, ValueError) as ex:
                raise ConfigError(
                    f'forwarding.{key} must be an integer, got {raw!r}'
                ) from ex
        try:
            self.verbosity = int(self.verbosity)
        except (TypeError, ValueError) as ex:
            raise ConfigError(
                f'verbosity must be an integer, got {self.verbosity!r}'
            ) from ex
        if fwd.default_adapter < 1:
            raise ConfigError(
                f'forwarding.default_adapter must be >= 1, got {fwd.default_adapter}'
            )
        start, end = fwd.port_range_start, fwd.port_range_end
        if not (1 <= start <= end <= 65535):
            raise ConfigError(
                'forwarding.port_range_start/port_range_end must satisfy '
                f'1 <= start <= end <= 65535 (got {start}..{end}).'
            )
        if fwd.default_protocol not in {'tcp', 'udp'}:
            raise ConfigError(
                f"forwarding.default_protocol must be 'tcp' or 'udp', got {fwd.default_protocol!r}"
            )
        return self


def global_config_path() -> Path:
    p = ub.Path.appdir('vboxfleet', type='config').ensuredir()
    return Path(p) / 'config.toml'


def _toml_escape(s: str) -> str:
    return s.replace('\\', '\\\\').replace('"', '\\"')


def dump_toml(cfg: FleetConfig) -> str:
    d = asdict(cfg)
    lines: list[str] = []
    # Top-level keys must precede the first table header.
    if d['verbosity'] != 1:
        lines.append(f'verbosity = {d["verbosity"]}')
        lines.append('')
    for section, body in d.items():
        if isinstance(body, dict):
            lines.append(f'[{section}]')
            for k, v in body.items():
                if isinstance(v, int):
                    lines.append(f'{k} = {v}')
                else:
                    lines.append(f'{k} = "{_toml_escape(str(v))}"')
            lines.append('')
    return '\n'.join(lines).rstrip() + '\n'


def load(path: Path) -> FleetConfig:
    try:
        raw = tomllib.loads(path.read_text(encoding='utf-8'))
    except tomllib.TOMLDecodeError as ex:
        raise ConfigError(f'Invalid TOML in {path}: {ex}') from ex
    cfg = FleetConfig()
    for section in ('vboxmanage', 'forwarding'):
        if section in raw and isinstance(raw[section], dict):
            sec = raw[section]
            obj = getattr(cfg, section)
            for k, v in sec.items():
                if hasattr(obj, k):
                    setattr(obj, k, v)
    if 'verbosity' in raw:
        cfg.verbosity = raw['verbosity']
    return cfg


def save(path: Path, cfg: FleetConfig) -> None:
    path.write_text(dump_toml(cfg), encoding='utf-8')


def resolve_config_path(config_opt: str | None) -> Path | None:
    """Explicit path first, then ./.vboxfleet.toml, then the per-user file."""
    if config_opt:
        return Path(config_opt).expanduser().resolve()
    local = Path(LOCAL_CONFIG_NAME).resolve()
    if local.exists():
        return local
    gpath = global_config_path()
    if gpath.exists():
        return gpath
    return None


def load_config(config_opt: str | None) -> FleetConfig:
    path = resolve_config_path(config_opt)
    if path is None:
        return FleetConfig()
    if not path.exists():
        raise FileNotFoundError(
            f'Config not found: {path}. Run: vboxfleet config init --config {path}'
        )
    return load(path).expanded_paths().validate()
