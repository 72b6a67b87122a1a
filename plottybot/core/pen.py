"""Per-actor pen state and the registry that owns it."""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace

from plottybot.core.color import RGBA, clamp, legacy_shade_to_hsv, to_rgba, wrap_clamp, wrap_shade
from plottybot.core.model import ColorParam, PenAttributes

PEN_SIZE_MIN = 1.0
PEN_SIZE_MAX = 1200.0
LOGGER = logging.getLogger(__name__)


@dataclass
class ActorPenState:
    pen_down: bool = False
    color: float = 66.66
    saturation: float = 100.0
    brightness: float = 100.0
    transparency: float = 0.0
    shade: float = 50.0  # only read by the legacy shade blocks
    diameter: float = 1.0

    @property
    def color_rgba(self) -> RGBA:
        return to_rgba(self.color, self.saturation, self.brightness, self.transparency)

    @property
    def attributes(self) -> PenAttributes:
        return PenAttributes(color4f=self.color_rgba, diameter=self.diameter)

    def copy(self) -> ActorPenState:
        return replace(self)

    def set_color_param(self, param: ColorParam | str, value: float, *, change: bool = False) -> None:
        try:
            param = ColorParam(param)
        except ValueError:
            LOGGER.warning("Tried to set or change unknown color parameter: %s", param)
            return

        if param is ColorParam.COLOR:
            self.color = wrap_clamp(value + (self.color if change else 0.0), 0.0, 100.0)
        elif param is ColorParam.SATURATION:
            self.saturation = clamp(value + (self.saturation if change else 0.0), 0.0, 100.0)
        elif param is ColorParam.BRIGHTNESS:
            self.brightness = clamp(value + (self.brightness if change else 0.0), 0.0, 100.0)
        else:
            self.transparency = clamp(value + (self.transparency if change else 0.0), 0.0, 100.0)

    def set_size(self, size: float, *, change: bool = False) -> None:
        self.diameter = clamp(size + (self.diameter if change else 0.0), PEN_SIZE_MIN, PEN_SIZE_MAX)

    # Scratch 2 blocks: "hue" is twice the "color" parameter.
    def set_legacy_hue(self, hue: float) -> None:
        self.set_color_param(ColorParam.COLOR, hue / 2.0)
        self.set_color_param(ColorParam.TRANSPARENCY, 0.0)
        self._apply_shade()

    def change_legacy_hue(self, delta: float) -> None:
        self.set_color_param(ColorParam.COLOR, delta / 2.0, change=True)
        self._apply_shade()

    def set_legacy_shade(self, shade: float) -> None:
        self.shade = wrap_shade(shade)
        self._apply_shade()

    def change_legacy_shade(self, delta: float) -> None:
        self.set_legacy_shade(self.shade + delta)

    def _apply_shade(self) -> None:
        self.color, self.saturation, self.brightness = legacy_shade_to_hsv(self.color, self.shade)


class PenStateRegistry:
    """Maps actor ids to their pen state; states are created on first access."""

    def __init__(self) -> None:
        self._states: dict[str, ActorPenState] = {}

    def __contains__(self, actor_id: str) -> bool:
        return actor_id in self._states

    def __len__(self) -> int:
        return len(self._states)

    def get(self, actor_id: str) -> ActorPenState:
        state = self._states.get(actor_id)
        if state is None:
            state = ActorPenState()
            self._states[actor_id] = state
        return state

    def peek(self, actor_id: str) -> ActorPenState | None:
        return self._states.get(actor_id)

    def clone(self, source_id: str, new_id: str) -> ActorPenState | None:
        source = self._states.get(source_id)
        if source is None:
            return None
        state = source.copy()
        self._states[new_id] = state
        return state

    def remove(self, actor_id: str) -> None:
        self._states.pop(actor_id, None)
