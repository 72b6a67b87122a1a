"""Preview renderer interface and an in-memory vector canvas."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol

from plottybot.core.model import PenAttributes

XY = tuple[float, float]


class Renderer(Protocol):
    def create_layer(self) -> int: ...

    def create_drawable_on_layer(self, layer: int) -> int: ...

    def draw_segment(self, layer: int, attrs: PenAttributes, x0: float, y0: float, x1: float, y1: float) -> None: ...

    def draw_point(self, layer: int, attrs: PenAttributes, x: float, y: float) -> None: ...

    def clear_layer(self, layer: int) -> None: ...

    def request_redraw(self) -> None: ...


@dataclass(frozen=True)
class Stroke:
    """A segment, or a dot when ``start == end``."""

    start: XY
    end: XY
    attrs: PenAttributes

    @property
    def is_point(self) -> bool:
        return self.start == self.end


@dataclass
class PreviewCanvas:
    """Records strokes per layer. Coordinates are stage units, +y up."""

    width: float = 480.0
    height: float = 360.0
    layers: dict[int, list[Stroke]] = field(default_factory=dict)
    drawables: dict[int, int] = field(default_factory=dict)
    redraws: int = 0

    def create_layer(self) -> int:
        layer = len(self.layers) + 1
        self.layers[layer] = []
        return layer

    def create_drawable_on_layer(self, layer: int) -> int:
        drawable = len(self.drawables) + 1
        self.drawables[drawable] = layer
        return drawable

    def draw_segment(self, layer: int, attrs: PenAttributes, x0: float, y0: float, x1: float, y1: float) -> None:
        self.layers[layer].append(Stroke(start=(x0, y0), end=(x1, y1), attrs=attrs))

    def draw_point(self, layer: int, attrs: PenAttributes, x: float, y: float) -> None:
        self.layers[layer].append(Stroke(start=(x, y), end=(x, y), attrs=attrs))

    def clear_layer(self, layer: int) -> None:
        self.layers[layer].clear()

    def request_redraw(self) -> None:
        self.redraws += 1

    def strokes(self) -> list[Stroke]:
        return [stroke for layer in sorted(self.layers) for stroke in self.layers[layer]]

    def to_svg(self) -> str:
        half_w = self.width / 2.0
        half_h = self.height / 2.0
        lines = [
            f'<svg xmlns="http://www.w3.org/2000/svg" width="{self.width:g}" height="{self.height:g}" '
            f'viewBox="{-half_w:g} {-half_h:g} {self.width:g} {self.height:g}">'
        ]
        for stroke in self.strokes():
            r, g, b, a = stroke.attrs.color4f
            colour = f"rgb({round(r * 255)},{round(g * 255)},{round(b * 255)})"
            (x0, y0), (x1, y1) = stroke.start, stroke.end
            if stroke.is_point:
                lines.append(
                    f'  <circle cx="{x0:.3f}" cy="{-y0:.3f}" r="{stroke.attrs.diameter / 2:g}" '
                    f'fill="{colour}" fill-opacity="{a:g}"/>'
                )
            else:
                lines.append(
                    f'  <line x1="{x0:.3f}" y1="{-y0:.3f}" x2="{x1:.3f}" y2="{-y1:.3f}" stroke="{colour}" '
                    f'stroke-opacity="{a:g}" stroke-width="{stroke.attrs.diameter:g}" stroke-linecap="round"/>'
                )
        lines.append("</svg>")
        return "\n".join(lines)
