"""UDP listener that feeds statsd datagrams into the relay."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional

from kairos_relay.config import RelayConfig
from kairos_relay.connection import ConnectionManager
from kairos_relay.forwarder import MetricForwarder
from kairos_relay.relay import Relay


class StatsdDatagramProtocol(asyncio.DatagramProtocol):
    def __init__(self, relay: Relay, logger: Optional[logging.Logger] = None) -> None:
        self.relay = relay
        self.logger = logger or logging.getLogger(__name__)

    def datagram_received(self, data: bytes, addr: Any) -> None:
        self.relay.handle_packet(data, addr)

    def error_received(self, exc: Exception) -> None:
        self.logger.warning("UDP listener error: %s", exc)


def build_relay(cfg: RelayConfig, logger: Optional[logging.Logger] = None) -> Relay:
    connection = ConnectionManager(
        host=cfg.host,
        port=cfg.port,
        reconnect_interval_ms=cfg.reconnect_interval_ms,
        connect_timeout_s=cfg.connect_timeout_s,
        logger=logger,
    )
    forwarder = MetricForwarder(connection, debug=cfg.debug, logger=logger)
    return Relay(connection, forwarder, logger=logger)


async def run_relay(cfg: RelayConfig, stop_event: Optional[asyncio.Event] = None) -> None:
    """Run until ``stop_event`` is set or the task is cancelled."""

    logger = logging.getLogger("kairos_relay")
    relay = build_relay(cfg, logger=logger)

    loop = asyncio.get_running_loop()
    transport, _ = await loop.create_datagram_endpoint(
        lambda: StatsdDatagramProtocol(relay, logger=logger),
        local_addr=(cfg.listen_host, cfg.listen_port),
    )
    logger.info("Listening for statsd on %s:%s", cfg.listen_host, cfg.listen_port)
    relay.connection.connect()

    stop_event = stop_event or asyncio.Event()
    try:
        await stop_event.wait()
    finally:
        transport.close()
        await relay.connection.close()
        logger.info(
            "Relay stopped (forwarded=%d dropped=%d)",
            relay.forwarder.forwarded,
            relay.forwarder.dropped,
        )
