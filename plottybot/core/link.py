"""Persistent WebSocket link to one plotter, reconnecting on errors."""

from __future__ import annotations

import json
import logging
import threading
from collections.abc import Callable, Mapping
from typing import Any

from plottybot.core.errors import TransportError
from plottybot.core.model import LinkState, LinkStatus
from plottybot.core.scheduler import ScheduledCall, Scheduler, TimerScheduler
from plottybot.transports.base import ReadyState, Transport, TransportFactory
from plottybot.transports.websocket import WebSocketTransport

DEFAULT_PORT = 8766
DEFAULT_RETRY_DELAY_S = 5.0
LOGGER = logging.getLogger(__name__)

_STATUS_BY_READY_STATE = {
    ReadyState.CONNECTING: LinkStatus.CONNECTING,
    ReadyState.OPEN: LinkStatus.CONNECTED,
    ReadyState.CLOSING: LinkStatus.CLOSING,
    ReadyState.CLOSED: LinkStatus.CLOSED,
}


class _PendingRetry:
    def __init__(self, address: str) -> None:
        self.address = address
        self.call: ScheduledCall | None = None


class DeviceLink:
    """Owns the single transport to the selected plotter.

    ``connect()`` replaces any previous transport, closing it first. A
    transport error moves the link to ``ERRORED`` and schedules one reconnect
    after ``retry_delay_s``; this repeats with the same delay until the socket
    opens or ``disconnect()`` is called. Events from a transport that has
    since been replaced are ignored, and a retry only fires if its address is
    still the link's target.

    Transport callbacks and retry timers arrive on other threads, so every
    state change happens under one re-entrant lock.
    """

    def __init__(
        self,
        *,
        port: int = DEFAULT_PORT,
        retry_delay_s: float = DEFAULT_RETRY_DELAY_S,
        transport_factory: TransportFactory | None = None,
        scheduler: Scheduler | None = None,
        on_open: Callable[[], None] | None = None,
    ) -> None:
        self.port = port
        self.retry_delay_s = retry_delay_s
        self._transport_factory: TransportFactory = transport_factory or WebSocketTransport
        self._scheduler: Scheduler = scheduler or TimerScheduler()
        self._on_open = on_open

        self._lock = threading.RLock()
        self._opened = threading.Condition(self._lock)
        self._state = LinkState.IDLE
        self._address: str | None = None
        self._transport: Transport | None = None
        self._retry: _PendingRetry | None = None

    # ------------------------------------------------------------------
    @property
    def state(self) -> LinkState:
        with self._lock:
            return self._state

    @property
    def address(self) -> str | None:
        with self._lock:
            return self._address

    @property
    def retry_pending(self) -> bool:
        with self._lock:
            return self._retry is not None

    def url_for(self, address: str) -> str:
        return f"ws://{address}:{self.port}"

    # ------------------------------------------------------------------
    def connect(self, address: str) -> None:
        with self._lock:
            self._cancel_retry()
            self._address = address
            self._open(address)

    def disconnect(self) -> None:
        with self._lock:
            self._cancel_retry()
            self._address = None
            if self._transport is not None:
                self._state = LinkState.CLOSING
                LOGGER.info("Disconnecting from %s", self._transport.url)
                self._release_transport()
            if self._state is not LinkState.IDLE:
                self._state = LinkState.CLOSED

    def send(self, message: Mapping[str, Any]) -> bool:
        """Transmit ``message`` as compact JSON if the link is open.

        Returns ``False`` when the message was dropped; nothing is queued.
        """
        payload = json.dumps(message, separators=(",", ":"))
        with self._lock:
            transport = self._transport
            if (
                self._state is not LinkState.OPEN
                or transport is None
                or transport.ready_state is not ReadyState.OPEN
            ):
                LOGGER.debug("Link not open, dropping %s", payload)
                return False
            try:
                transport.send(payload)
            except TransportError as exc:
                LOGGER.warning("Dropping %s: %s", payload, exc)
                return False
        return True

    def status(self) -> LinkStatus:
        with self._lock:
            if self._transport is None:
                return LinkStatus.NOT_CONNECTED
            return _STATUS_BY_READY_STATE.get(self._transport.ready_state, LinkStatus.UNKNOWN)

    def wait_until_open(self, timeout_s: float) -> bool:
        with self._opened:
            return self._opened.wait_for(lambda: self._state is LinkState.OPEN, timeout=timeout_s)

    # Transport callbacks ----------------------------------------------
    def on_open(self, transport: Transport) -> None:
        with self._lock:
            if transport is not self._transport:
                LOGGER.debug("Ignoring open from replaced transport %s", transport.url)
                return
            self._state = LinkState.OPEN
            LOGGER.info("Connected to %s", transport.url)
            self._opened.notify_all()
            if self._on_open is not None:
                self._on_open()

    def on_message(self, transport: Transport, message: str | bytes) -> None:
        LOGGER.info("Message from %s: %r", transport.url, message)

    def on_error(self, transport: Transport, error: Exception) -> None:
        with self._lock:
            if transport is not self._transport:
                LOGGER.debug("Ignoring error from replaced transport %s: %s", transport.url, error)
                return
            LOGGER.warning("Connection to %s failed: %s", transport.url, error)
            self._fail()

    def on_close(self, transport: Transport) -> None:
        with self._lock:
            if transport is not self._transport:
                LOGGER.debug("Ignoring close from replaced transport %s", transport.url)
                return
            if self._state is LinkState.ERRORED:
                LOGGER.debug("%s closed after error, retry stays scheduled", transport.url)
                return
            self._state = LinkState.CLOSED
            LOGGER.info("Connection to %s closed", transport.url)

    # ------------------------------------------------------------------
    def _open(self, address: str) -> None:
        url = self.url_for(address)
        self._release_transport()
        self._state = LinkState.CONNECTING
        LOGGER.info("Connecting to %s", url)
        try:
            self._transport = self._transport_factory(url, self)
        except TransportError as exc:
            LOGGER.warning("Could not open %s: %s", url, exc)
            self._fail()

    def _release_transport(self) -> None:
        old, self._transport = self._transport, None
        if old is None:
            return
        # An errored transport may still hold a live socket; close is idempotent.
        try:
            old.close()
        except TransportError as exc:
            LOGGER.warning("Could not close %s: %s", old.url, exc)

    def _fail(self) -> None:
        self._state = LinkState.ERRORED
        if self._address is None or self._retry is not None:
            return
        pending = _PendingRetry(self._address)
        pending.call = self._scheduler.call_later(self.retry_delay_s, lambda: self._run_retry(pending))
        self._retry = pending
        LOGGER.info("Retrying %s in %.1f s", pending.address, self.retry_delay_s)

    def _run_retry(self, pending: _PendingRetry) -> None:
        with self._lock:
            if self._retry is not pending or self._address != pending.address:
                LOGGER.debug("Skipping superseded retry for %s", pending.address)
                return
            self._retry = None
            self._open(pending.address)

    def _cancel_retry(self) -> None:
        pending, self._retry = self._retry, None
        if pending is not None and pending.call is not None:
            pending.call.cancel()
            LOGGER.debug("Cancelled retry for %s", pending.address)
