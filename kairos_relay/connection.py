"""Single outbound stream to KairosDB with fixed-interval reconnects."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Optional, Tuple


class RelayError(RuntimeError):
    """Base error for the relay."""


class NotConnectedError(RelayError):
    """Raised by ``write`` when there is no live stream."""


class ConnectionPhase(str, Enum):
    DISCONNECTED = "DISCONNECTED"
    CONNECTING = "CONNECTING"
    CONNECTED = "CONNECTED"


@dataclass
class ConnectionState:
    """Process-wide connectivity state; only ConnectionManager mutates it."""

    phase: ConnectionPhase
    host: str
    port: int
    reconnect_interval_ms: int

    @property
    def address(self) -> str:
        return f"{self.host}:{self.port}"


class NotificationGate:
    """Rate limits the "not connected" warning to once per disconnection."""

    def __init__(self) -> None:
        self._notified = False

    @property
    def notified(self) -> bool:
        return self._notified

    def trip(self) -> bool:
        if self._notified:
            return False
        self._notified = True
        return True

    def reset(self) -> None:
        self._notified = False


OpenConnection = Callable[..., Awaitable[Tuple[asyncio.StreamReader, Any]]]


class ConnectionManager:
    """Owns the lifecycle of the stream: connect, detect failure, reconnect.

    Must be driven from a running event loop. At most one connection attempt is
    in flight and at most one reconnect timer is pending at any time.
    """

    def __init__(
        self,
        host: str,
        port: int,
        reconnect_interval_ms: int = 1000,
        connect_timeout_s: float = 5.0,
        logger: Optional[logging.Logger] = None,
        open_connection: OpenConnection = asyncio.open_connection,
    ) -> None:
        self.state = ConnectionState(
            phase=ConnectionPhase.DISCONNECTED,
            host=host,
            port=port,
            reconnect_interval_ms=reconnect_interval_ms,
        )
        self.gate = NotificationGate()
        self.connect_timeout_s = connect_timeout_s
        self.logger = logger or logging.getLogger(__name__)
        self._open_connection = open_connection
        self._writer: Optional[Any] = None
        self._attempt: Optional[asyncio.Task] = None
        self._watcher: Optional[asyncio.Task] = None
        self._reconnect_handle: Optional[asyncio.TimerHandle] = None
        self._closed = False

    def current_state(self) -> ConnectionState:
        return self.state

    @property
    def connected(self) -> bool:
        return self.state.phase == ConnectionPhase.CONNECTED

    @property
    def reconnect_pending(self) -> bool:
        return self._reconnect_handle is not None

    def connect(self) -> None:
        if self._closed or self.connected:
            return
        if self._attempt is not None and not self._attempt.done():
            return
        if self._reconnect_handle is not None:
            return
        self.state.phase = ConnectionPhase.CONNECTING
        self._attempt = asyncio.get_running_loop().create_task(self._open())

    def write(self, line: str) -> None:
        writer = self._writer
        if not self.connected or writer is None or writer.is_closing():
            raise NotConnectedError(f"Not connected to {self.state.address}")
        writer.write(line.encode("utf-8"))

    async def close(self) -> None:
        self._closed = True
        if self._reconnect_handle is not None:
            self._reconnect_handle.cancel()
            self._reconnect_handle = None
        for task in (self._attempt, self._watcher):
            if task is not None and not task.done() and task is not asyncio.current_task():
                task.cancel()
                try:
                    await task
                except asyncio.CancelledError:
                    pass
        await self._drop_writer()
        self.state.phase = ConnectionPhase.DISCONNECTED

    async def _open(self) -> None:
        try:
            reader, writer = await asyncio.wait_for(
                self._open_connection(self.state.host, self.state.port),
                timeout=self.connect_timeout_s,
            )
        except asyncio.CancelledError:
            raise
        except (OSError, asyncio.TimeoutError) as exc:
            await self._on_error(exc)
            return
        except Exception as exc:  # pylint: disable=broad-except
            # e.g. UnicodeError from IDNA-encoding a malformed host
            await self._on_error(exc)
            return

        self._writer = writer
        self.state.phase = ConnectionPhase.CONNECTED
        self.gate.reset()
        self.logger.info("Connected to %s", self.state.address)
        self._watcher = asyncio.get_running_loop().create_task(self._watch(reader, writer))

    async def _watch(self, reader: asyncio.StreamReader, writer: Any) -> None:
        # KairosDB only answers on errors; anything it sends is logged and discarded.
        try:
            while True:
                data = await reader.read(4096)
                if not data:
                    error: Exception = ConnectionResetError(f"Connection to {self.state.address} closed by peer")
                    break
                self.logger.debug("Downstream said: %r", data)
        except asyncio.CancelledError:
            raise
        except OSError as exc:
            error = exc
        if writer is self._writer:
            await self._on_error(error)

    async def _on_error(self, exc: BaseException) -> None:
        self.logger.warning("Connection error (%s): %s", self.state.address, str(exc) or type(exc).__name__)
        self.state.phase = ConnectionPhase.DISCONNECTED
        await self._drop_writer()
        self._schedule_reconnect()

    def _schedule_reconnect(self) -> None:
        if self._closed or self._reconnect_handle is not None:
            return
        delay = self.state.reconnect_interval_ms / 1000.0
        self._reconnect_handle = asyncio.get_running_loop().call_later(delay, self._fire_reconnect)

    def _fire_reconnect(self) -> None:
        self._reconnect_handle = None
        self.connect()

    async def _drop_writer(self) -> None:
        writer, self._writer = self._writer, None
        if writer is None:
            return
        writer.close()
        try:
            await writer.wait_closed()
        except OSError:
            pass
