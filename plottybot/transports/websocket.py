"""WebSocket transport implementation using websocket-client."""

from __future__ import annotations

import threading

import websocket

from plottybot.core.errors import TransportConnectError, TransportSendError
from plottybot.transports.base import ReadyState, TransportListener


class WebSocketTransport:
    """One client socket served by ``WebSocketApp.run_forever`` on a daemon thread.

    websocket-client does not reconnect on its own here; reconnects are the
    link's job. Callbacks run on the socket thread.
    """

    def __init__(self, url: str, listener: TransportListener) -> None:
        self.url = url
        self._listener = listener
        self._ready_state = ReadyState.CONNECTING
        try:
            self._app = websocket.WebSocketApp(
                url,
                on_open=self._handle_open,
                on_message=self._handle_message,
                on_error=self._handle_error,
                on_close=self._handle_close,
            )
        except ValueError as exc:
            raise TransportConnectError(f"Invalid WebSocket URL {url}: {exc}") from exc

        self._thread = threading.Thread(
            target=self._app.run_forever,
            name=f"plottybot-ws-{url}",
            daemon=True,
        )
        self._thread.start()

    @property
    def ready_state(self) -> ReadyState:
        return self._ready_state

    def send(self, message: str) -> None:
        try:
            self._app.send(message)
        except (websocket.WebSocketException, OSError) as exc:
            raise TransportSendError(f"WebSocket send to {self.url} failed: {exc}") from exc

    def close(self) -> None:
        if self._ready_state in (ReadyState.CLOSING, ReadyState.CLOSED):
            return
        self._ready_state = ReadyState.CLOSING
        self._app.close()

    # websocket-client callbacks -----------------------------------------
    def _handle_open(self, _: websocket.WebSocketApp) -> None:
        self._ready_state = ReadyState.OPEN
        self._listener.on_open(self)

    def _handle_message(self, _: websocket.WebSocketApp, message: str | bytes) -> None:
        self._listener.on_message(self, message)

    def _handle_error(self, _: websocket.WebSocketApp, error: Exception) -> None:
        # Also reached for exceptions raised by our own callbacks while the
        # socket stays up; only _handle_close marks it closed.
        self._listener.on_error(self, error)

    def _handle_close(
        self,
        _: websocket.WebSocketApp,
        close_status_code: int | None = None,
        close_msg: str | None = None,
    ) -> None:
        self._ready_state = ReadyState.CLOSED
        self._listener.on_close(self)
