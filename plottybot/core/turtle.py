"""Turtle-style motion for actors, mirrored to the preview and the plotter."""

from __future__ import annotations

import logging
import math
from collections.abc import Callable, Iterable

from plottybot.core.encoder import CommandEncoder
from plottybot.core.model import MotionCommand, TurnDirection
from plottybot.core.pen import ActorPenState, PenStateRegistry
from plottybot.core.preview import Renderer
from plottybot.core.shapes import Instruction, Move, Turn, normalize_heading

LOGGER = logging.getLogger(__name__)

MoveListener = Callable[["Actor", float, float, bool], None]


class Actor:
    """A sprite-like drawable. Heading 0 points up, positive is clockwise."""

    def __init__(self, actor_id: str, x: float = 0.0, y: float = 0.0, heading: float = 90.0) -> None:
        self.id = actor_id
        self.x = x
        self.y = y
        self.heading = heading
        self._move_listeners: list[MoveListener] = []

    def __repr__(self) -> str:
        return f"Actor({self.id!r}, x={self.x:g}, y={self.y:g}, heading={self.heading:g})"

    @property
    def direction(self) -> float:
        return normalize_heading(self.heading)

    def add_move_listener(self, listener: MoveListener) -> None:
        if listener not in self._move_listeners:
            self._move_listeners.append(listener)

    def remove_move_listener(self, listener: MoveListener) -> None:
        if listener in self._move_listeners:
            self._move_listeners.remove(listener)

    def has_move_listener(self, listener: MoveListener) -> bool:
        return listener in self._move_listeners

    def set_xy(self, x: float, y: float, *, force: bool = False) -> None:
        old_x, old_y = self.x, self.y
        self.x, self.y = x, y
        for listener in list(self._move_listeners):
            listener(self, old_x, old_y, force)

    def duplicate(self, new_id: str) -> Actor:
        return Actor(new_id, self.x, self.y, self.heading)


class TurtleModel:
    """Moves actors and mirrors pen-down motion to the preview and the device.

    While an actor's pen is down the model listens to its moves; each
    non-forced move draws a segment on the pen layer and dispatches a
    ``goToXY`` carrying the previous position. Dragged (forced) moves are
    neither drawn nor sent.
    """

    def __init__(
        self,
        encoder: CommandEncoder,
        pens: PenStateRegistry | None = None,
        renderer: Renderer | None = None,
    ) -> None:
        self.encoder = encoder
        self.pens = pens or PenStateRegistry()
        self.renderer = renderer
        self._layer: int | None = None

    def pen_layer(self) -> int | None:
        if self._layer is None and self.renderer is not None:
            self._layer = self.renderer.create_layer()
            self.renderer.create_drawable_on_layer(self._layer)
        return self._layer

    # Motion -----------------------------------------------------------
    def move_steps(self, actor: Actor, distance: float) -> None:
        radians = math.radians(90.0 - actor.heading)
        dx = distance * math.cos(radians)
        dy = distance * math.sin(radians)
        actor.set_xy(actor.x + dx, actor.y + dy)

    def turn(self, actor: Actor, degrees: float, direction: TurnDirection = TurnDirection.RIGHT) -> None:
        if direction is TurnDirection.RIGHT:
            actor.heading += degrees
        else:
            actor.heading -= degrees

    def point_in_direction(self, actor: Actor, heading: float) -> None:
        actor.heading = heading

    def go_to_xy(self, actor: Actor, x: float, y: float) -> None:
        actor.set_xy(x, y)

    def run(self, actor: Actor, program: Iterable[Instruction]) -> int:
        count = 0
        for instruction in program:
            if isinstance(instruction, Move):
                self.move_steps(actor, instruction.distance)
            elif isinstance(instruction, Turn):
                self.turn(actor, instruction.degrees)
            else:
                raise TypeError(f"Unknown shape instruction {instruction!r}")
            count += 1
        return count

    # Pen --------------------------------------------------------------
    def pen_down(self, actor: Actor) -> None:
        state = self.pens.get(actor.id)
        if not state.pen_down:
            state.pen_down = True
            actor.add_move_listener(self._on_actor_moved)
        self._draw_point(actor, state)
        self.encoder.dispatch(MotionCommand.pen_down(actor.id))

    def pen_up(self, actor: Actor) -> None:
        state = self.pens.get(actor.id)
        if state.pen_down:
            state.pen_down = False
            actor.remove_move_listener(self._on_actor_moved)
        self.encoder.dispatch(MotionCommand.pen_up(actor.id))

    def pen_toggle(self, actor: Actor) -> None:
        state = self.pens.get(actor.id)
        state.pen_down = not state.pen_down
        if state.pen_down:
            actor.add_move_listener(self._on_actor_moved)
            self._draw_point(actor, state)
        else:
            actor.remove_move_listener(self._on_actor_moved)
        self.encoder.dispatch(MotionCommand.pen_toggle(actor.id))

    def clear(self) -> None:
        layer = self.pen_layer()
        if layer is not None and self.renderer is not None:
            self.renderer.clear_layer(layer)
            self.renderer.request_redraw()

    # Actor lifecycle --------------------------------------------------
    def on_actor_created(self, actor: Actor, source: Actor | None = None) -> None:
        if source is None:
            return
        state = self.pens.clone(source.id, actor.id)
        if state is None:
            return
        LOGGER.debug("Copied pen state of %s to %s", source.id, actor.id)
        if state.pen_down:
            actor.add_move_listener(self._on_actor_moved)

    def on_actor_removed(self, actor: Actor) -> None:
        actor.remove_move_listener(self._on_actor_moved)
        self.pens.remove(actor.id)

    # ------------------------------------------------------------------
    def _on_actor_moved(self, actor: Actor, old_x: float, old_y: float, force: bool) -> None:
        if force:
            return
        layer = self.pen_layer()
        if layer is not None and self.renderer is not None:
            state = self.pens.get(actor.id)
            self.renderer.draw_segment(layer, state.attributes, old_x, old_y, actor.x, actor.y)
            self.renderer.request_redraw()
        self.encoder.dispatch(MotionCommand.move_to(actor.id, actor.x, actor.y, old_x, old_y))

    def _draw_point(self, actor: Actor, state: ActorPenState) -> None:
        layer = self.pen_layer()
        if layer is not None and self.renderer is not None:
            self.renderer.draw_point(layer, state.attributes, actor.x, actor.y)
            self.renderer.request_redraw()
