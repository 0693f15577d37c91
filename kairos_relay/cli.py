"""CLI entrypoint for the statsd to KairosDB relay."""

from __future__ import annotations

import argparse
import asyncio
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from kairos_relay.config import load_relay_config
from kairos_relay.logging_setup import setup_logging
from kairos_relay.server import run_relay


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="kairos-relay", description="Relay statsd readings to KairosDB")
    parser.add_argument("--config", type=Path, default=None, help="YAML config file")
    parser.add_argument("--host", default=None, help="KairosDB host")
    parser.add_argument("--port", type=int, default=None, help="KairosDB telnet port")
    parser.add_argument("--reconnect-interval", type=int, default=None, help="Reconnect interval (ms)")
    parser.add_argument("--listen-host", default=None)
    parser.add_argument("--listen-port", type=int, default=None)
    parser.add_argument("--debug", action="store_true", default=None, help="Log every outbound line")
    parser.add_argument("--log-dir", type=Path, default=None)
    parser.add_argument("--log-level", default=None)
    return parser.parse_args(argv)


def _cli_overrides(args: argparse.Namespace) -> Dict[str, Any]:
    overrides: Dict[str, Any] = {}
    kairosdb = {
        "host": args.host,
        "port": args.port,
        "reconnectInterval": args.reconnect_interval,
    }
    listen = {"host": args.listen_host, "port": args.listen_port}
    logging_cfg = {"dir": str(args.log_dir) if args.log_dir else None, "level": args.log_level}
    for name, section in (("kairosdb", kairosdb), ("listen", listen), ("logging", logging_cfg)):
        values = {k: v for k, v in section.items() if v is not None}
        if values:
            overrides[name] = values
    if args.debug is not None:
        overrides["debug"] = args.debug
    return overrides


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    try:
        cfg = load_relay_config(args.config, overrides=_cli_overrides(args))
    except (FileNotFoundError, ValueError) as exc:
        setup_logging()
        logging.getLogger(__name__).error("Invalid configuration: %s", exc)
        return 2

    setup_logging(cfg.log_dir, cfg.log_level)
    try:
        asyncio.run(run_relay(cfg))
    except KeyboardInterrupt:
        return 0
    except OSError as exc:
        logging.getLogger(__name__).error("Cannot listen on %s:%s: %s", cfg.listen_host, cfg.listen_port, exc)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
