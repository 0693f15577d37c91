import asyncio
import logging
import logging.handlers
from pathlib import Path

import yaml

from kairos_relay import cli
from kairos_relay.config import load_relay_config
from kairos_relay.logging_setup import setup_logging


def test_cli_flags_override_yaml(tmp_path: Path):
    path = tmp_path / "relay.yaml"
    path.write_text(yaml.safe_dump({"kairosdb": {"host": "from-file", "port": 1111}}), encoding="utf-8")
    args = cli.parse_args(["--config", str(path), "--port", "2222", "--debug"])
    cfg = load_relay_config(args.config, overrides=cli._cli_overrides(args))
    assert cfg.host == "from-file"
    assert cfg.port == 2222
    assert cfg.debug is True


def test_cli_without_flags_has_no_overrides():
    assert cli._cli_overrides(cli.parse_args([])) == {}


def test_main_rejects_missing_config(tmp_path: Path, monkeypatch):
    monkeypatch.setattr(cli, "setup_logging", lambda *a, **kw: logging.getLogger())
    assert cli.main(["--config", str(tmp_path / "nope.yaml")]) == 2


def test_main_runs_relay_with_merged_config(tmp_path: Path, monkeypatch):
    seen = {}

    async def _fake_run(cfg):
        seen["cfg"] = cfg

    monkeypatch.setattr(cli, "run_relay", _fake_run)
    monkeypatch.setattr(cli, "setup_logging", lambda *a, **kw: logging.getLogger())
    assert cli.main(["--host", "db", "--reconnect-interval", "500", "--listen-port", "9999"]) == 0
    assert seen["cfg"].host == "db"
    assert seen["cfg"].reconnect_interval_ms == 500
    assert seen["cfg"].listen_port == 9999


def test_main_exits_cleanly_on_interrupt(monkeypatch):
    def _interrupt(coro):
        coro.close()
        raise KeyboardInterrupt

    monkeypatch.setattr(cli, "setup_logging", lambda *a, **kw: logging.getLogger())
    monkeypatch.setattr(asyncio, "run", _interrupt)
    assert cli.main([]) == 0


def test_setup_logging_writes_rotating_file(tmp_path: Path):
    root = logging.getLogger()
    before = list(root.handlers)
    level = root.level
    try:
        setup_logging(tmp_path / "logs", "warning")
        setup_logging(tmp_path / "logs", "warning")
        added = [h for h in root.handlers if h not in before]
        assert len([h for h in added if isinstance(h, logging.handlers.RotatingFileHandler)]) == 1
        assert (tmp_path / "logs" / "relay.log").exists()
    finally:
        for handler in root.handlers[:]:
            if handler not in before:
                root.removeHandler(handler)
                handler.close()
        root.setLevel(level)
