"""Format metrics as KairosDB telnet ``put`` lines and send them."""

from __future__ import annotations

import logging
import math
import time
from typing import Callable, Optional

from kairos_relay.connection import ConnectionManager, NotConnectedError
from kairos_relay.metrics import Metric, format_value


SOURCE_TAG = "statsd"


def format_put_line(metric: Metric, timestamp: int, client: str) -> str:
    return f"put {metric.key} {timestamp} {format_value(metric.value)} client={client} source={SOURCE_TAG}\n"


class MetricForwarder:
    """Writes each metric as exactly one line; drops it when disconnected."""

    def __init__(
        self,
        connection: ConnectionManager,
        debug: bool = False,
        logger: Optional[logging.Logger] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.connection = connection
        self.debug = bool(debug)
        self.logger = logger or logging.getLogger(__name__)
        self._clock = clock
        self._forwarded = 0
        self._dropped = 0

    @property
    def forwarded(self) -> int:
        return self._forwarded

    @property
    def dropped(self) -> int:
        return self._dropped

    def forward(self, metric: Metric, client_address: str) -> bool:
        line = format_put_line(metric, math.floor(self._clock()), client_address)
        if self.debug:
            self.logger.info(line.rstrip("\n"))
        try:
            self.connection.write(line)
        except NotConnectedError:
            self._dropped += 1
            self.notify_disconnected()
            return False
        self._forwarded += 1
        return True

    def notify_disconnected(self) -> None:
        if self.connection.gate.trip():
            self.logger.warning("Not connected yet.")
