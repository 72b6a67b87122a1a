"""Transport interfaces."""

from __future__ import annotations

from enum import IntEnum
from typing import Protocol


class ReadyState(IntEnum):
    """Socket readiness, numbered like the browser WebSocket constants."""

    CONNECTING = 0
    OPEN = 1
    CLOSING = 2
    CLOSED = 3


class TransportListener(Protocol):
    def on_open(self, transport: Transport) -> None:
        """The socket finished its handshake."""

    def on_message(self, transport: Transport, message: str | bytes) -> None:
        """A frame arrived from the device."""

    def on_error(self, transport: Transport, error: Exception) -> None:
        """The socket failed; a close event may follow."""

    def on_close(self, transport: Transport) -> None:
        """The socket is closed."""


class Transport(Protocol):
    url: str

    @property
    def ready_state(self) -> ReadyState: ...

    def send(self, message: str) -> None:
        """Write one text frame."""

    def close(self) -> None:
        """Request the socket to close; completion is reported via ``on_close``."""


class TransportFactory(Protocol):
    def __call__(self, url: str, listener: TransportListener) -> Transport:
        """Start opening ``url`` and report lifecycle events to ``listener``."""
