"""Stable public API for building tooling on top of plottybot.

This module is the supported integration surface for third-party callers.
Avoid importing from private/internal modules unless intentionally depending on
non-stable internals.
"""

from __future__ import annotations

from dataclasses import dataclass

import requests

from plottybot.core.errors import (
    DiscoveryError,
    PlottybotError,
    SelectionError,
    SettingsError,
    SettingsLoadError,
    SettingsValidationError,
    TransportConnectError,
    TransportError,
    TransportSendError,
)
from plottybot.core.model import (
    CommandKind,
    DeviceEntry,
    LinkState,
    LinkStatus,
    MenuItem,
    MotionCommand,
    MovePayload,
)
from plottybot.core.preview import PreviewCanvas, Renderer
from plottybot.core.scheduler import Scheduler
from plottybot.core.service import PlottyService
from plottybot.core.settings import Settings
from plottybot.core.shapes import Shape
from plottybot.core.turtle import Actor
from plottybot.transports.base import TransportFactory

__all__ = [
    "PlottybotError",
    "DiscoveryError",
    "SelectionError",
    "SettingsError",
    "SettingsLoadError",
    "SettingsValidationError",
    "TransportError",
    "TransportConnectError",
    "TransportSendError",
    "CommandKind",
    "DeviceEntry",
    "LinkState",
    "LinkStatus",
    "MenuItem",
    "MotionCommand",
    "MovePayload",
    "PreviewCanvas",
    "Settings",
    "Shape",
    "Actor",
    "DrawResult",
    "Client",
]


@dataclass(frozen=True)
class DrawResult:
    """Outcome of drawing one shape with a client's turtle."""

    shape: Shape
    size: float
    instructions: int
    end: tuple[float, float]


class Client:
    """Public client for driving a plotter from Python.

    A `Client` owns one turtle actor and wraps device discovery, the
    reconnecting link and the preview canvas behind a small API intended for
    scripts and third-party tools.
    """

    def __init__(
        self,
        *,
        settings: Settings | None = None,
        renderer: Renderer | None = None,
        session: requests.Session | None = None,
        transport_factory: TransportFactory | None = None,
        scheduler: Scheduler | None = None,
        actor_id: str = "turtle",
    ) -> None:
        self.canvas = renderer if renderer is not None else PreviewCanvas()
        self._service = PlottyService(
            settings=settings,
            renderer=self.canvas,
            session=session,
            transport_factory=transport_factory,
            scheduler=scheduler,
        )
        self.actor = Actor(actor_id)

    @property
    def load_warnings(self) -> tuple[str, ...]:
        return self._service.load_warnings

    def list_devices(self) -> list[DeviceEntry]:
        self._service.refresh_devices()
        return self._service.list_devices()

    def connect(self, *, index: int | None = None, name: str | None = None) -> DeviceEntry | None:
        if (index is None) == (name is None):
            raise ValueError("Pass exactly one of index or name")
        if index is not None:
            return self._service.connect_by_index(index)
        return self._service.connect_by_name(name)

    def wait_until_connected(self, timeout_s: float | None = None) -> bool:
        return self._service.wait_until_connected(timeout_s)

    def disconnect(self) -> None:
        self._service.disconnect()

    @property
    def device_name(self) -> str:
        return self._service.device_name()

    @property
    def status(self) -> str:
        return self._service.connection_status()

    def pen_down(self) -> None:
        self._service.turtle.pen_down(self.actor)

    def pen_up(self) -> None:
        self._service.turtle.pen_up(self.actor)

    def move(self, distance: float) -> None:
        self._service.turtle.move_steps(self.actor, distance)

    def turn(self, degrees: float) -> None:
        self._service.turtle.turn(self.actor, degrees)

    def go_to(self, x: float, y: float) -> None:
        self._service.turtle.go_to_xy(self.actor, x, y)

    def draw_shape(self, shape: Shape | str, size: float) -> DrawResult:
        shape = Shape(shape)
        count = self._service.draw_shape(self.actor, shape, size)
        return DrawResult(shape=shape, size=size, instructions=count, end=(self.actor.x, self.actor.y))

    def stop(self) -> bool:
        return self._service.stop()

    def close(self) -> None:
        self._service.close()
