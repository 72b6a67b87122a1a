from __future__ import annotations

from collections.abc import Callable, Iterator
from typing import Any

import pytest

from plottybot.core.preview import PreviewCanvas
from plottybot.core.service import PlottyService
from plottybot.core.settings import Settings
from plottybot.transports.base import ReadyState, TransportListener


class FakeTransport:
    def __init__(self, url: str, listener: TransportListener) -> None:
        self.url = url
        self.listener = listener
        self.ready_state = ReadyState.CONNECTING
        self.sent: list[str] = []
        self.close_requested = False

    def send(self, message: str) -> None:
        self.sent.append(message)

    def close(self) -> None:
        self.close_requested = True
        if self.ready_state is not ReadyState.CLOSED:
            self.ready_state = ReadyState.CLOSING

    # Drive events as the socket thread would.
    def open(self) -> None:
        self.ready_state = ReadyState.OPEN
        self.listener.on_open(self)

    def fail(self, error: Exception | None = None) -> None:
        self.ready_state = ReadyState.CLOSED
        self.listener.on_error(self, error or ConnectionRefusedError("connection refused"))

    def remote_close(self) -> None:
        self.ready_state = ReadyState.CLOSED
        self.listener.on_close(self)

    def callback_error(self, error: Exception) -> None:
        # websocket-client routes exceptions from its callbacks to on_error;
        # the socket itself stays up.
        self.listener.on_error(self, error)


class FakeTransportFactory:
    def __init__(self) -> None:
        self.created: list[FakeTransport] = []

    def __call__(self, url: str, listener: TransportListener) -> FakeTransport:
        transport = FakeTransport(url, listener)
        self.created.append(transport)
        return transport

    @property
    def last(self) -> FakeTransport:
        return self.created[-1]


class FakeCall:
    def __init__(self, due: float, delay_s: float, callback: Callable[[], None]) -> None:
        self.due = due
        self.delay_s = delay_s
        self.callback = callback
        self.cancelled = False
        self.fired = False

    def cancel(self) -> None:
        self.cancelled = True


class FakeScheduler:
    """Manual clock: calls run only when ``advance`` passes their due time."""

    def __init__(self) -> None:
        self.now = 0.0
        self.calls: list[FakeCall] = []

    def call_later(self, delay_s: float, callback: Callable[[], None]) -> FakeCall:
        call = FakeCall(self.now + delay_s, delay_s, callback)
        self.calls.append(call)
        return call

    @property
    def pending(self) -> list[FakeCall]:
        return [c for c in self.calls if not c.cancelled and not c.fired]

    def advance(self, seconds: float) -> None:
        self.now += seconds
        for call in sorted(self.pending, key=lambda c: c.due):
            if call.due <= self.now:
                call.fired = True
                call.callback()


class FakeResponse:
    def __init__(self, status_code: int = 200, body: Any = None, *, invalid_json: bool = False) -> None:
        self.status_code = status_code
        self._body = body
        self._invalid_json = invalid_json

    @property
    def ok(self) -> bool:
        return self.status_code < 400

    def json(self) -> Any:
        if self._invalid_json:
            raise ValueError("Expecting value: line 1 column 1 (char 0)")
        return self._body


class FakeSession:
    def __init__(self, replies: list[Any]) -> None:
        self.replies = replies
        self.requests: list[tuple[str, float]] = []

    def get(self, url: str, timeout: float) -> FakeResponse:
        self.requests.append((url, timeout))
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


@pytest.fixture
def transports() -> FakeTransportFactory:
    return FakeTransportFactory()


@pytest.fixture
def scheduler() -> FakeScheduler:
    return FakeScheduler()


@pytest.fixture
def settings() -> Settings:
    return Settings(discovery_origin="http://discovery.test")


@pytest.fixture
def make_session() -> Callable[..., FakeSession]:
    """Build a session whose successive GETs answer with ``replies``.

    A dict or list is served as a 200 JSON body, an int as a bare status code,
    a str as a 200 body that is not JSON, and an exception is raised.
    """

    def _make(*replies: Any) -> FakeSession:
        built: list[Any] = []
        for reply in replies:
            if isinstance(reply, (dict, list)):
                built.append(FakeResponse(200, reply))
            elif isinstance(reply, int):
                built.append(FakeResponse(reply, None))
            elif isinstance(reply, str):
                built.append(FakeResponse(200, None, invalid_json=True))
            else:
                built.append(reply)
        return FakeSession(built)

    return _make


@pytest.fixture
def canvas() -> PreviewCanvas:
    return PreviewCanvas()


@pytest.fixture
def make_service(
    settings: Settings,
    transports: FakeTransportFactory,
    scheduler: FakeScheduler,
    canvas: PreviewCanvas,
    make_session: Callable[..., FakeSession],
) -> Iterator[Callable[..., PlottyService]]:
    created: list[PlottyService] = []

    def _make(*replies: Any, **kwargs: Any) -> PlottyService:
        service = PlottyService(
            settings=settings,
            renderer=canvas,
            session=make_session(*replies),
            transport_factory=transports,
            scheduler=scheduler,
            **kwargs,
        )
        created.append(service)
        return service

    yield _make
    for service in created:
        service.close()
