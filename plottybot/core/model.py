"""Core data models shared by the directory, link, encoder and turtle layers."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

NO_DEVICE = "None"


@dataclass(frozen=True)
class DeviceDirectory:
    loaded: bool = False
    entries: dict[str, str] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.entries)


@dataclass(frozen=True)
class DeviceEntry:
    index: int
    name: str
    address: str


@dataclass(frozen=True)
class MenuItem:
    label: str
    value: str


class LinkState(str, Enum):
    IDLE = "Idle"
    CONNECTING = "Connecting"
    OPEN = "Open"
    CLOSING = "Closing"
    CLOSED = "Closed"
    ERRORED = "Errored"


class LinkStatus(str, Enum):
    """Values reported by the connection-status reporter block."""

    NOT_CONNECTED = "Not Connected"
    CONNECTING = "Connecting"
    CONNECTED = "Connected"
    CLOSING = "Closing"
    CLOSED = "Closed"
    UNKNOWN = "Unknown"


class CommandKind(str, Enum):
    PEN_DOWN = "penDown"
    PEN_UP = "penUp"
    PEN_TOGGLE = "penToggle"
    MOVE_TO = "goToXY"
    STOP = "stop"


@dataclass(frozen=True)
class MovePayload:
    x: float
    y: float
    old_x: float
    old_y: float


@dataclass(frozen=True)
class MotionCommand:
    """One plotter instruction. ``actor_id`` is ``None`` only for ``STOP``."""

    kind: CommandKind
    actor_id: str | None = None
    payload: MovePayload | None = None

    @classmethod
    def pen_down(cls, actor_id: str) -> MotionCommand:
        return cls(CommandKind.PEN_DOWN, actor_id)

    @classmethod
    def pen_up(cls, actor_id: str) -> MotionCommand:
        return cls(CommandKind.PEN_UP, actor_id)

    @classmethod
    def pen_toggle(cls, actor_id: str) -> MotionCommand:
        return cls(CommandKind.PEN_TOGGLE, actor_id)

    @classmethod
    def move_to(cls, actor_id: str, x: float, y: float, old_x: float, old_y: float) -> MotionCommand:
        return cls(CommandKind.MOVE_TO, actor_id, MovePayload(x=x, y=y, old_x=old_x, old_y=old_y))

    @classmethod
    def stop(cls) -> MotionCommand:
        return cls(CommandKind.STOP)


@dataclass(frozen=True)
class PenAttributes:
    color4f: tuple[float, float, float, float]
    diameter: float


class ColorParam(str, Enum):
    COLOR = "color"
    SATURATION = "saturation"
    BRIGHTNESS = "brightness"
    TRANSPARENCY = "transparency"


class TurnDirection(str, Enum):
    RIGHT = "right"
    LEFT = "left"
