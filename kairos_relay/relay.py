"""Packet event handling: parse, then forward each reading."""

from __future__ import annotations

import logging
from typing import Any, Optional

from kairos_relay.connection import ConnectionManager
from kairos_relay.forwarder import MetricForwarder
from kairos_relay.parser import parse_packet


def client_address(sender: Any) -> str:
    if isinstance(sender, (tuple, list)) and sender:
        return str(sender[0])
    return str(sender)


class Relay:
    def __init__(
        self,
        connection: ConnectionManager,
        forwarder: MetricForwarder,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.connection = connection
        self.forwarder = forwarder
        self.logger = logger or logging.getLogger(__name__)

    def handle_packet(self, payload: bytes, sender: Any) -> int:
        """Process one datagram and return how many metrics were written.

        Nothing raised while handling a packet escapes; the packet is dropped.
        """

        try:
            if not self.connection.connected:
                self.forwarder.notify_disconnected()
                return 0
            client = client_address(sender)
            written = 0
            for reading in parse_packet(payload):
                if reading.issue is not None:
                    self.logger.warning(reading.issue.message)
                    continue
                if reading.metric is not None and self.forwarder.forward(reading.metric, client):
                    written += 1
            return written
        except Exception:  # pylint: disable=broad-except
            self.logger.exception("Failed to process packet from %s", sender)
            return 0
