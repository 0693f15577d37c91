from pathlib import Path

import pytest
import yaml

from kairos_relay.config import RelayConfig, load_relay_config, apply_overrides, read_statsd_config, relay_config_from_mapping


def _write(path: Path, data) -> Path:
    path.write_text(yaml.safe_dump(data), encoding="utf-8")
    return path


def test_missing_config_file(tmp_path: Path):
    with pytest.raises(FileNotFoundError):
        read_statsd_config(tmp_path / "missing.yaml")


def test_config_file_must_be_a_mapping(tmp_path: Path):
    path = tmp_path / "list.yaml"
    path.write_text("- a\n- b\n", encoding="utf-8")
    with pytest.raises(ValueError):
        read_statsd_config(path)


def test_empty_config_file_is_empty_config(tmp_path: Path):
    path = tmp_path / "empty.yaml"
    path.write_text("", encoding="utf-8")
    assert read_statsd_config(path) == {}
    assert load_relay_config(path) == RelayConfig()


def test_overrides_merge_per_section():
    merged = apply_overrides({"kairosdb": {"host": "a", "port": 1}}, {"kairosdb": {"port": 2}})
    assert merged == {"kairosdb": {"host": "a", "port": 2}}


def test_defaults_without_file():
    cfg = load_relay_config()
    assert cfg == RelayConfig()
    assert cfg.host == "127.0.0.1"
    assert cfg.port == 4242
    assert cfg.reconnect_interval_ms == 1000
    assert cfg.debug is False


def test_statsd_style_file(tmp_path: Path):
    path = _write(
        tmp_path / "relay.yaml",
        {
            "debug": True,
            "kairosdb": {"host": "kairos.local", "port": 14242, "reconnectInterval": 250},
            "listen": {"port": 9125},
            "logging": {"dir": str(tmp_path / "logs"), "level": "debug"},
        },
    )
    cfg = load_relay_config(path)
    assert cfg.host == "kairos.local"
    assert cfg.port == 14242
    assert cfg.reconnect_interval_ms == 250
    assert cfg.debug is True
    assert cfg.listen_host == "0.0.0.0"
    assert cfg.listen_port == 9125
    assert cfg.log_dir == tmp_path / "logs"
    assert cfg.log_level == "DEBUG"


def test_falsy_values_fall_back_to_defaults():
    cfg = relay_config_from_mapping({"kairosdb": {"host": "", "port": 0, "reconnectInterval": None}})
    assert cfg.host == "127.0.0.1"
    assert cfg.port == 4242
    assert cfg.reconnect_interval_ms == 1000


def test_overrides_win(tmp_path: Path):
    path = _write(tmp_path / "relay.yaml", {"kairosdb": {"host": "a", "port": 1000}})
    cfg = load_relay_config(path, overrides={"kairosdb": {"port": 2000}})
    assert cfg.host == "a"
    assert cfg.port == 2000


@pytest.mark.parametrize("port", ["abc", 70000, -1])
def test_bad_port_rejected(port):
    with pytest.raises(ValueError):
        relay_config_from_mapping({"kairosdb": {"port": port}})


def test_bad_section_rejected():
    with pytest.raises(ValueError):
        relay_config_from_mapping({"kairosdb": "localhost"})
