"""Extension service used by block hosts, the public API and the CLI."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterable, Mapping
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any

import requests

from plottybot.core.blocks import BLOCKS, BlockRegistry, BlockTable, Handler, Opcode, to_number
from plottybot.core.directory import DirectoryClient
from plottybot.core.encoder import CommandEncoder
from plottybot.core.link import DeviceLink
from plottybot.core.model import ColorParam, DeviceEntry, MenuItem, MotionCommand, TurnDirection
from plottybot.core.pen import PenStateRegistry
from plottybot.core.preview import Renderer
from plottybot.core.scheduler import Scheduler
from plottybot.core.settings import Settings, load_settings
from plottybot.core.shapes import Shape, program_for
from plottybot.core.turtle import Actor, TurtleModel
from plottybot.transports.base import TransportFactory

EXTENSION_ID = "plottybot"
EXTENSION_NAME = "Plottybot"
LOGGER = logging.getLogger(__name__)


class PlottyService:
    """One extension instance: directory, link, encoder and turtle model.

    Handlers never raise for device trouble; failures end up in the log and
    in the device-name and connection-status reporters.
    """

    def __init__(
        self,
        *,
        settings: Settings | None = None,
        renderer: Renderer | None = None,
        session: requests.Session | None = None,
        transport_factory: TransportFactory | None = None,
        scheduler: Scheduler | None = None,
        on_connected: Callable[[str], None] | None = None,
    ) -> None:
        if settings is None:
            loaded = load_settings()
            settings = loaded.settings
            self.load_warnings = loaded.warnings
        else:
            self.load_warnings = ()
        self.settings = settings
        self._on_connected = on_connected

        self.directory = DirectoryClient(
            settings.discovery_url,
            session=session,
            timeout_s=settings.discovery_timeout_s,
        )
        self.link = DeviceLink(
            port=settings.device_port,
            retry_delay_s=settings.retry_delay_s,
            transport_factory=transport_factory,
            scheduler=scheduler,
            on_open=self._link_opened,
        )
        self.encoder = CommandEncoder(self.link)
        self.turtle = TurtleModel(self.encoder, PenStateRegistry(), renderer)
        self.blocks = BlockTable()
        self.register(self.blocks)
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="plottybot-discovery")
        self._lifecycle = threading.Lock()
        self._closed = False

    # Registration -----------------------------------------------------
    def register(self, registry: BlockRegistry) -> None:
        handlers = self._handlers()
        for spec in BLOCKS:
            registry.register_block(spec, handlers[spec.opcode])
        registry.register_menu("devices", self.directory.list_for_menu)
        registry.register_menu("shape", _shape_menu)
        registry.register_menu("colorParam", _color_param_menu)

    def execute(self, opcode: Opcode | str, args: Mapping[str, Any] | None = None, actor: Actor | None = None) -> Any:
        return self.blocks.execute(opcode, args, actor)

    # Devices ----------------------------------------------------------
    def refresh_devices(self) -> bool:
        return self.directory.refresh()

    def refresh_devices_async(self) -> Future[bool]:
        return self._executor.submit(self.refresh_devices)

    def list_devices(self) -> list[DeviceEntry]:
        return self.directory.entries()

    def connect_by_index(self, index: Any) -> DeviceEntry | None:
        """Refresh the directory, then connect to the 1-based ``index``.

        A failed refresh aborts the connect; the cached directory may be stale.
        """
        if not self.refresh_devices():
            return None
        return self._connect(lambda: self.directory.resolve_by_index(index))

    def connect_by_name(self, name: str) -> DeviceEntry | None:
        if not self.directory.directory.loaded:
            self.refresh_devices()
        return self._connect(lambda: self.directory.resolve_by_name(name))

    def disconnect(self) -> None:
        self.link.disconnect()

    def device_name(self) -> str:
        return self.directory.selected_device

    def connection_status(self) -> str:
        return self.link.status().value

    def wait_until_connected(self, timeout_s: float | None = None) -> bool:
        return self.link.wait_until_open(self.settings.open_timeout_s if timeout_s is None else timeout_s)

    # Drawing ----------------------------------------------------------
    def stop(self) -> bool:
        return self.encoder.dispatch(MotionCommand.stop())

    def clear(self) -> None:
        self.turtle.clear()

    def draw_shape(self, actor: Actor, shape: Shape | str, size: float) -> int:
        try:
            program = program_for(shape, size)
        except ValueError:
            LOGGER.warning("Unknown shape '%s'", shape)
            return 0
        return self.turtle.run(actor, program)

    # Host lifecycle ---------------------------------------------------
    def on_actor_created(self, actor: Actor, source: Actor | None = None) -> None:
        self.turtle.on_actor_created(actor, source)

    def on_actor_removed(self, actor: Actor) -> None:
        self.turtle.on_actor_removed(actor)

    def on_project_stop_all(self) -> None:
        self.link.disconnect()

    def close(self) -> None:
        with self._lifecycle:
            self._closed = True
            self.link.disconnect()
        self._executor.shutdown(wait=False, cancel_futures=True)

    # ------------------------------------------------------------------
    def _connect(self, resolve: Callable[[], DeviceEntry | None]) -> DeviceEntry | None:
        # Connect tasks may still be running on the executor when close() is called.
        with self._lifecycle:
            if self._closed:
                LOGGER.debug("Service closed, not connecting")
                return None
            entry = resolve()
            if entry is None:
                return None
            LOGGER.info("Connecting to %s at %s", entry.name, entry.address)
            self.link.connect(entry.address)
            return entry

    def _link_opened(self) -> None:
        if self._on_connected is not None:
            self._on_connected(self.device_name())

    def _handlers(self) -> dict[Opcode, Handler]:
        turtle = self.turtle

        def pen(actor: Actor):
            return turtle.pens.get(actor.id)

        return {
            Opcode.CONNECT_TO_PLOTTY: lambda args, actor: self._executor.submit(self.connect_by_index, args["INDEX"]),
            Opcode.CONNECT_TO_DEVICE: lambda args, actor: self._executor.submit(self.connect_by_name, str(args["DEVICE"])),
            Opcode.REFRESH_DEVICES: lambda args, actor: self.refresh_devices_async(),
            Opcode.GET_DEVICE_NAME: lambda args, actor: self.device_name(),
            Opcode.GET_CONNECTION_STATUS: lambda args, actor: self.connection_status(),
            Opcode.DISCONNECT: lambda args, actor: self.disconnect(),
            Opcode.STOP: lambda args, actor: self.stop(),
            Opcode.CLEAR: lambda args, actor: self.clear(),
            Opcode.PEN_DOWN: lambda args, actor: turtle.pen_down(actor),
            Opcode.PEN_UP: lambda args, actor: turtle.pen_up(actor),
            Opcode.PEN_TOGGLE: lambda args, actor: turtle.pen_toggle(actor),
            Opcode.MOVE_STEPS: lambda args, actor: turtle.move_steps(actor, to_number(args["STEPS"])),
            Opcode.TURN_RIGHT: lambda args, actor: turtle.turn(actor, to_number(args["DEGREES"]), TurnDirection.RIGHT),
            Opcode.TURN_LEFT: lambda args, actor: turtle.turn(actor, to_number(args["DEGREES"]), TurnDirection.LEFT),
            Opcode.GO_TO_XY: lambda args, actor: turtle.go_to_xy(actor, to_number(args["X"]), to_number(args["Y"])),
            Opcode.POINT_IN_DIRECTION: lambda args, actor: turtle.point_in_direction(actor, to_number(args["DIRECTION"])),
            Opcode.DRAW_SHAPE: lambda args, actor: self.draw_shape(actor, str(args["SHAPE"]), to_number(args["SIZE"])),
            Opcode.SET_PEN_COLOR_PARAM: lambda args, actor: pen(actor).set_color_param(
                str(args["COLOR_PARAM"]), to_number(args["VALUE"])
            ),
            Opcode.CHANGE_PEN_COLOR_PARAM: lambda args, actor: pen(actor).set_color_param(
                str(args["COLOR_PARAM"]), to_number(args["VALUE"]), change=True
            ),
            Opcode.SET_PEN_SIZE: lambda args, actor: pen(actor).set_size(to_number(args["SIZE"])),
            Opcode.CHANGE_PEN_SIZE: lambda args, actor: pen(actor).set_size(to_number(args["SIZE"]), change=True),
            Opcode.SET_PEN_SHADE: lambda args, actor: pen(actor).set_legacy_shade(to_number(args["SHADE"])),
            Opcode.CHANGE_PEN_SHADE: lambda args, actor: pen(actor).change_legacy_shade(to_number(args["SHADE"])),
            Opcode.SET_PEN_HUE: lambda args, actor: pen(actor).set_legacy_hue(to_number(args["HUE"])),
            Opcode.CHANGE_PEN_HUE: lambda args, actor: pen(actor).change_legacy_hue(to_number(args["HUE"])),
        }


def _shape_menu() -> Iterable[MenuItem]:
    return [MenuItem(label=shape.value, value=shape.value) for shape in Shape]


def _color_param_menu() -> Iterable[MenuItem]:
    return [MenuItem(label=param.value, value=param.value) for param in ColorParam]
