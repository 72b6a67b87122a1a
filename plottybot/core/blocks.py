"""Block declarations and the opcode dispatch table."""

from __future__ import annotations

import logging
import math
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Protocol

from plottybot.core.model import MenuItem

if TYPE_CHECKING:
    from plottybot.core.turtle import Actor

LOGGER = logging.getLogger(__name__)

Handler = Callable[[Mapping[str, Any], "Actor | None"], Any]
MenuProvider = Callable[[], Iterable[MenuItem]]


class Opcode(str, Enum):
    CONNECT_TO_PLOTTY = "connectToPlotty"
    CONNECT_TO_DEVICE = "connectToDevice"
    REFRESH_DEVICES = "refreshDevices"
    GET_DEVICE_NAME = "getDeviceName"
    GET_CONNECTION_STATUS = "getConnectionStatus"
    DISCONNECT = "disconnectFromPlotty"
    STOP = "stopPlotty"
    CLEAR = "clear"
    PEN_DOWN = "penDown"
    PEN_UP = "penUp"
    PEN_TOGGLE = "penToggle"
    MOVE_STEPS = "moveSteps"
    TURN_RIGHT = "turnRight"
    TURN_LEFT = "turnLeft"
    GO_TO_XY = "goToXY"
    POINT_IN_DIRECTION = "pointInDirection"
    DRAW_SHAPE = "drawShape"
    SET_PEN_COLOR_PARAM = "setPenColorParamTo"
    CHANGE_PEN_COLOR_PARAM = "changePenColorParamBy"
    SET_PEN_SIZE = "setPenSizeTo"
    CHANGE_PEN_SIZE = "changePenSizeBy"
    SET_PEN_SHADE = "setPenShadeToNumber"
    CHANGE_PEN_SHADE = "changePenShadeBy"
    SET_PEN_HUE = "setPenHueToNumber"
    CHANGE_PEN_HUE = "changePenHueBy"


class BlockType(str, Enum):
    COMMAND = "command"
    REPORTER = "reporter"


class ArgumentType(str, Enum):
    NUMBER = "number"
    STRING = "string"


@dataclass(frozen=True)
class ArgumentSpec:
    type: ArgumentType
    default: Any = None
    menu: str | None = None


@dataclass(frozen=True)
class BlockSpec:
    opcode: Opcode
    block_type: BlockType
    text: str
    arguments: dict[str, ArgumentSpec] = field(default_factory=dict)
    sprite_only: bool = False
    hidden: bool = False


def _number(default: float = 0, menu: str | None = None) -> ArgumentSpec:
    return ArgumentSpec(type=ArgumentType.NUMBER, default=default, menu=menu)


def _string(default: str = "", menu: str | None = None) -> ArgumentSpec:
    return ArgumentSpec(type=ArgumentType.STRING, default=default, menu=menu)


BLOCKS: tuple[BlockSpec, ...] = (
    BlockSpec(Opcode.CONNECT_TO_PLOTTY, BlockType.COMMAND, "Connect to Plotty [INDEX]", {"INDEX": _number(1)}),
    BlockSpec(
        Opcode.CONNECT_TO_DEVICE,
        BlockType.COMMAND,
        "Connect to [DEVICE]",
        {"DEVICE": _string(menu="devices")},
    ),
    BlockSpec(Opcode.REFRESH_DEVICES, BlockType.COMMAND, "Refresh device list"),
    BlockSpec(Opcode.GET_DEVICE_NAME, BlockType.REPORTER, "Device name"),
    BlockSpec(Opcode.GET_CONNECTION_STATUS, BlockType.REPORTER, "Connection status"),
    BlockSpec(Opcode.DISCONNECT, BlockType.COMMAND, "Disconnect from Plotty"),
    BlockSpec(Opcode.STOP, BlockType.COMMAND, "Stop Plotty"),
    BlockSpec(Opcode.CLEAR, BlockType.COMMAND, "erase all"),
    BlockSpec(Opcode.PEN_DOWN, BlockType.COMMAND, "pen down", sprite_only=True),
    BlockSpec(Opcode.PEN_UP, BlockType.COMMAND, "pen up", sprite_only=True),
    BlockSpec(Opcode.PEN_TOGGLE, BlockType.COMMAND, "toggle pen", sprite_only=True),
    BlockSpec(Opcode.MOVE_STEPS, BlockType.COMMAND, "move [STEPS] steps", {"STEPS": _number(10)}, sprite_only=True),
    BlockSpec(Opcode.TURN_RIGHT, BlockType.COMMAND, "turn ↻ [DEGREES] degrees", {"DEGREES": _number(15)}, sprite_only=True),
    BlockSpec(Opcode.TURN_LEFT, BlockType.COMMAND, "turn ↺ [DEGREES] degrees", {"DEGREES": _number(15)}, sprite_only=True),
    BlockSpec(Opcode.GO_TO_XY, BlockType.COMMAND, "go to x: [X] y: [Y]", {"X": _number(0), "Y": _number(0)}, sprite_only=True),
    BlockSpec(
        Opcode.POINT_IN_DIRECTION,
        BlockType.COMMAND,
        "point in direction [DIRECTION]",
        {"DIRECTION": _number(90)},
        sprite_only=True,
    ),
    BlockSpec(
        Opcode.DRAW_SHAPE,
        BlockType.COMMAND,
        "draw [SHAPE] of size [SIZE]",
        {"SHAPE": _string("square", menu="shape"), "SIZE": _number(100)},
        sprite_only=True,
    ),
    BlockSpec(
        Opcode.SET_PEN_COLOR_PARAM,
        BlockType.COMMAND,
        "set pen [COLOR_PARAM] to [VALUE]",
        {"COLOR_PARAM": _string("color", menu="colorParam"), "VALUE": _number(50)},
        sprite_only=True,
    ),
    BlockSpec(
        Opcode.CHANGE_PEN_COLOR_PARAM,
        BlockType.COMMAND,
        "change pen [COLOR_PARAM] by [VALUE]",
        {"COLOR_PARAM": _string("color", menu="colorParam"), "VALUE": _number(10)},
        sprite_only=True,
    ),
    BlockSpec(Opcode.SET_PEN_SIZE, BlockType.COMMAND, "set pen size to [SIZE]", {"SIZE": _number(1)}, sprite_only=True),
    BlockSpec(Opcode.CHANGE_PEN_SIZE, BlockType.COMMAND, "change pen size by [SIZE]", {"SIZE": _number(1)}, sprite_only=True),
    BlockSpec(Opcode.SET_PEN_SHADE, BlockType.COMMAND, "set pen shade to [SHADE]", {"SHADE": _number(1)}, sprite_only=True, hidden=True),
    BlockSpec(Opcode.CHANGE_PEN_SHADE, BlockType.COMMAND, "change pen shade by [SHADE]", {"SHADE": _number(1)}, sprite_only=True, hidden=True),
    BlockSpec(Opcode.SET_PEN_HUE, BlockType.COMMAND, "set pen color to [HUE]", {"HUE": _number(1)}, sprite_only=True, hidden=True),
    BlockSpec(Opcode.CHANGE_PEN_HUE, BlockType.COMMAND, "change pen color by [HUE]", {"HUE": _number(1)}, sprite_only=True, hidden=True),
)


def to_number(value: Any) -> float:
    """Cast a block argument to a float; anything unparsable becomes 0."""
    if isinstance(value, bool):
        return 1.0 if value else 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    return 0.0 if math.isnan(number) else number


class BlockRegistry(Protocol):
    def register_block(self, spec: BlockSpec, handler: Handler) -> None: ...

    def register_menu(self, name: str, provider: MenuProvider) -> None: ...


class BlockTable:
    """In-process block registry: an ``Opcode``-keyed table of handlers."""

    def __init__(self) -> None:
        self.specs: dict[Opcode, BlockSpec] = {}
        self.handlers: dict[Opcode, Handler] = {}
        self.menus: dict[str, MenuProvider] = {}

    def register_block(self, spec: BlockSpec, handler: Handler) -> None:
        self.specs[spec.opcode] = spec
        self.handlers[spec.opcode] = handler

    def register_menu(self, name: str, provider: MenuProvider) -> None:
        self.menus[name] = provider

    def menu_items(self, name: str) -> list[MenuItem]:
        return list(self.menus[name]())

    def execute(self, opcode: Opcode | str, args: Mapping[str, Any] | None = None, actor: Actor | None = None) -> Any:
        opcode = Opcode(opcode)
        spec = self.specs.get(opcode)
        handler = self.handlers.get(opcode)
        if spec is None or handler is None:
            raise KeyError(f"No handler registered for {opcode.value}")
        if spec.sprite_only and actor is None:
            LOGGER.warning("%s needs a sprite; ignoring", opcode.value)
            return None
        merged = {name: arg.default for name, arg in spec.arguments.items()}
        merged.update(args or {})
        return handler(merged, actor)
