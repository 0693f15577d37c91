"""Configuration loading for the relay."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml


DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 4242
DEFAULT_RECONNECT_INTERVAL_MS = 1000
DEFAULT_CONNECT_TIMEOUT_S = 5.0
DEFAULT_LISTEN_HOST = "0.0.0.0"
DEFAULT_LISTEN_PORT = 8125


@dataclass
class RelayConfig:
    """Runtime configuration values for the relay process."""

    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    reconnect_interval_ms: int = DEFAULT_RECONNECT_INTERVAL_MS
    connect_timeout_s: float = DEFAULT_CONNECT_TIMEOUT_S
    debug: bool = False
    listen_host: str = DEFAULT_LISTEN_HOST
    listen_port: int = DEFAULT_LISTEN_PORT
    log_dir: Optional[Path] = None
    log_level: str = "INFO"


def read_statsd_config(path: Path) -> Dict[str, Any]:
    """Read a statsd-style YAML file; an empty file is an empty config."""

    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise FileNotFoundError(f"Relay config file does not exist: {path}") from None
    data = yaml.safe_load(text)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Relay config {path} must hold a mapping at the top level, got {type(data).__name__}")
    return data


def apply_overrides(config: Mapping[str, Any], overrides: Mapping[str, Any]) -> Dict[str, Any]:
    """Return ``config`` with ``overrides`` applied; sections merge key by key."""

    result: Dict[str, Any] = dict(config)
    for name, value in overrides.items():
        current = result.get(name)
        if isinstance(current, Mapping) and isinstance(value, Mapping):
            value = apply_overrides(current, value)
        result[name] = value
    return result


def _section(data: Mapping[str, Any], name: str) -> Mapping[str, Any]:
    section = data.get(name) or {}
    if not isinstance(section, dict):
        raise ValueError(f"Config section '{name}' must be a mapping")
    return section


def _port(value: Any, default: int, name: str) -> int:
    if not value:
        return default
    try:
        port = int(value)
    except (TypeError, ValueError):
        raise ValueError(f"{name} must be an integer, got {value!r}") from None
    if not 0 < port < 65536:
        raise ValueError(f"{name} out of range: {port}")
    return port


def _positive_number(value: Any, default: float, name: str) -> float:
    if not value:
        return default
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValueError(f"{name} must be a number, got {value!r}") from None
    if number <= 0:
        raise ValueError(f"{name} must be positive: {number}")
    return number


def relay_config_from_mapping(data: Mapping[str, Any]) -> RelayConfig:
    """Build a RelayConfig from a statsd-style mapping.

    Missing or falsy values fall back to defaults, the same way statsd backends
    read ``config.kairosdb.host || default``.
    """

    kairosdb = _section(data, "kairosdb")
    listen = _section(data, "listen")
    logging_cfg = _section(data, "logging")

    log_dir = logging_cfg.get("dir")
    return RelayConfig(
        host=str(kairosdb.get("host") or DEFAULT_HOST),
        port=_port(kairosdb.get("port"), DEFAULT_PORT, "kairosdb.port"),
        reconnect_interval_ms=int(
            _positive_number(kairosdb.get("reconnectInterval"), DEFAULT_RECONNECT_INTERVAL_MS, "kairosdb.reconnectInterval")
        ),
        connect_timeout_s=_positive_number(kairosdb.get("connectTimeout"), DEFAULT_CONNECT_TIMEOUT_S, "kairosdb.connectTimeout"),
        debug=bool(data.get("debug", False)),
        listen_host=str(listen.get("host") or DEFAULT_LISTEN_HOST),
        listen_port=_port(listen.get("port"), DEFAULT_LISTEN_PORT, "listen.port"),
        log_dir=Path(log_dir) if log_dir else None,
        log_level=str(logging_cfg.get("level") or "INFO").upper(),
    )


def load_relay_config(path: Optional[Path] = None, overrides: Optional[Mapping[str, Any]] = None) -> RelayConfig:
    data: Dict[str, Any] = read_statsd_config(path) if path is not None else {}
    if overrides:
        data = apply_overrides(data, overrides)
    return relay_config_from_mapping(data)
