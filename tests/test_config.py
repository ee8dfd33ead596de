"""Tests for config load/save and resolution."""

from __future__ import annotations

from pathlib import Path

import pytest

from vboxfleet.config import (
    FleetConfig,
    dump_toml,
    load,
    load_config,
    resolve_config_path,
    save,
)
from vboxfleet.errors import ConfigError


def test_dump_load_roundtrip(tmp_path: Path) -> None:
    cfg = FleetConfig()
    cfg.vboxmanage.executable = '/opt/"vbox"/VBoxManage'
    cfg.forwarding.port_range_start = 3000
    cfg.forwarding.port_range_end = 3100
    cfg.verbosity = 3
    fpath = tmp_path / '.vboxfleet.toml'
    save(fpath, cfg)

    cfg2 = load(fpath)
    assert cfg2.vboxmanage.executable == cfg.vboxmanage.executable
    assert cfg2.forwarding.port_range_start == 3000
    assert cfg2.forwarding.port_range_end == 3100
    assert cfg2.verbosity == 3


def test_dump_toml_verbosity_default_omitted() -> None:
    text = dump_toml(FleetConfig())
    assert 'verbosity =' not in text
    assert '[forwarding]' in text
    assert 'executable = "VBoxManage"' in text


def test_load_ignores_unknown_keys(tmp_path: Path) -> None:
    fpath = tmp_path / 'cfg.toml'
    fpath.write_text(
        '[forwarding]\ndefault_protocol = "udp"\nbogus = 1\n[other]\nx = 1\n',
        encoding='utf-8',
    )
    cfg = load(fpath)
    assert cfg.forwarding.default_protocol == 'udp'
    assert not hasattr(cfg.forwarding, 'bogus')


def test_load_invalid_toml_raises_config_error(tmp_path: Path) -> None:
    fpath = tmp_path / 'cfg.toml'
    fpath.write_text('[forwarding\n', encoding='utf-8')
    with pytest.raises(ConfigError):
        load(fpath)


def test_validate_rejects_bad_ranges() -> None:
    cfg = FleetConfig()
    cfg.forwarding.port_range_start = 5000
    cfg.forwarding.port_range_end = 4000
    with pytest.raises(ConfigError):
        cfg.validate()
    cfg = FleetConfig()
    cfg.forwarding.default_protocol = 'sctp'
    with pytest.raises(ConfigError):
        cfg.validate()


def test_expanded_paths_only_touches_paths(monkeypatch) -> None:
    monkeypatch.setenv('VBOX_HOME', '/opt/vbox')
    cfg = FleetConfig()
    assert cfg.expanded_paths().vboxmanage.executable == 'VBoxManage'
    cfg.vboxmanage.executable = '$VBOX_HOME/VBoxManage'
    assert cfg.expanded_paths().vboxmanage.executable == '/opt/vbox/VBoxManage'


def test_resolve_prefers_local_file(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(
        'vboxfleet.config.global_config_path', lambda: tmp_path / 'nope.toml'
    )
    assert resolve_config_path(None) is None
    assert load_config(None) == FleetConfig()
    local = tmp_path / '.vboxfleet.toml'
    save(local, FleetConfig())
    assert resolve_config_path(None) == local.resolve()


def test_load_config_missing_explicit_path(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_config(str(tmp_path / 'missing.toml'))


def test_dump_toml_puts_verbosity_before_tables() -> None:
    cfg = FleetConfig()
    cfg.verbosity = 2
    text = dump_toml(cfg)
    assert text.index('verbosity = 2') < text.index('[vboxmanage]')


def test_validate_rejects_non_numeric_values(tmp_path: Path) -> None:
    fpath = tmp_path / 'cfg.toml'
    fpath.write_text('[forwarding]\nport_range_start = "abc"\n', encoding='utf-8')
    with pytest.raises(ConfigError, match='port_range_start'):
        load_config(str(fpath))
    fpath.write_text('verbosity = "loud"\n', encoding='utf-8')
    with pytest.raises(ConfigError, match='verbosity'):
        load_config(str(fpath))


def test_validate_coerces_numeric_strings() -> None:
    cfg = FleetConfig()
    cfg.forwarding.port_range_start = '3000'
    cfg.forwarding.port_range_end = '3010'
    cfg.validate()
    assert cfg.forwarding.port_range_start == 3000
