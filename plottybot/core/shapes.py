"""Parametric shape programs made of turtle moves and right turns.

Each generator is a pure function of ``size``. Programs are relative to the
actor, so they draw the same shape from any position and heading. Closed
shapes (everything but spiral and wave) end where they started with the
starting heading (modulo 360).
"""

from __future__ import annotations

import math
from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass
from enum import Enum
from itertools import pairwise


@dataclass(frozen=True)
class Move:
    distance: float


@dataclass(frozen=True)
class Turn:
    """Turn right by ``degrees``; negative turns left."""

    degrees: float


Instruction = Move | Turn
ShapeProgram = Callable[[float], Iterator[Instruction]]


class Shape(str, Enum):
    SQUARE = "square"
    CIRCLE = "circle"
    STAR = "star"
    SPIRAL = "spiral"
    HEART = "heart"
    CURVY_HEART = "curvy heart"
    FLOWER = "flower"
    HEXAGON = "hexagon"
    WAVE = "wave"


def _regular_polygon(sides: int, side: float) -> Iterator[Instruction]:
    exterior = 360.0 / sides
    for _ in range(sides):
        yield Move(side)
        yield Turn(exterior)


def normalize_heading(heading: float) -> float:
    """Map an unbounded heading into (-180, 180]."""
    wrapped = math.fmod(heading, 360.0)
    if wrapped > 180.0:
        wrapped -= 360.0
    elif wrapped <= -180.0:
        wrapped += 360.0
    return wrapped


def _trace(points: Iterable[tuple[float, float]]) -> Iterator[Instruction]:
    # Points are in the actor's frame: +y ahead, +x to the right.
    heading = 0.0
    for (x0, y0), (x1, y1) in pairwise(points):
        dx, dy = x1 - x0, y1 - y0
        distance = math.hypot(dx, dy)
        if distance == 0:
            continue
        target = math.degrees(math.atan2(dx, dy))
        delta = normalize_heading(target - heading)
        if delta:
            yield Turn(delta)
        yield Move(distance)
        heading = target
    if heading:
        yield Turn(normalize_heading(-heading))


def square(size: float) -> Iterator[Instruction]:
    yield from _regular_polygon(4, size)


def hexagon(size: float) -> Iterator[Instruction]:
    yield from _regular_polygon(6, size)


def circle(size: float) -> Iterator[Instruction]:
    """36-gon inscribed in a circle of diameter ``size``."""
    sides = 36
    yield from _regular_polygon(sides, size * math.sin(math.pi / sides))


def star(size: float) -> Iterator[Instruction]:
    for _ in range(5):
        yield Move(size)
        yield Turn(144.0)


def spiral(size: float) -> Iterator[Instruction]:
    segments = 48
    for i in range(1, segments + 1):
        yield Move(size * i / (2 * segments))
        yield Turn(30.0)


def flower(size: float) -> Iterator[Instruction]:
    """Six lens-shaped petals, each two quarter arcs of radius ``size / 2``."""
    chord = 2 * (size / 2) * math.sin(math.radians(5.0))
    for _ in range(6):
        for _ in range(2):
            for _ in range(9):
                yield Move(chord)
                yield Turn(10.0)
            yield Turn(90.0)
        yield Turn(60.0)


def _arc(steps: int, chord: float, degrees: float) -> Iterator[Instruction]:
    # Half turns at both ends keep the chords symmetric about the arc's middle.
    yield Turn(degrees / 2)
    for i in range(steps):
        yield Move(chord)
        yield Turn(degrees if i < steps - 1 else degrees / 2)


def heart(size: float) -> Iterator[Instruction]:
    """Two 200 degree lobes joined by straight sides meeting at the point."""
    chord = 5.0 * size / 100.0
    side = chord * math.sin(math.radians(100.0)) / math.sin(math.radians(2.5))
    yield Turn(-140.0)
    yield Move(side)
    yield from _arc(40, chord, 5.0)
    yield Turn(-120.0)
    yield from _arc(40, chord, 5.0)
    yield Move(side)
    yield Turn(-140.0)


def curvy_heart(size: float) -> Iterator[Instruction]:
    samples = 48
    scale = size / 32.0

    def point(t: float) -> tuple[float, float]:
        x = 16 * math.sin(t) ** 3
        y = 13 * math.cos(t) - 5 * math.cos(2 * t) - 2 * math.cos(3 * t) - math.cos(4 * t)
        return (x * scale, (y - 5) * scale)

    yield from _trace(point(2 * math.pi * k / samples) for k in range(samples + 1))


def wave(size: float) -> Iterator[Instruction]:
    samples = 32
    amplitude = size / 4.0
    yield from _trace(
        (amplitude * math.sin(4 * math.pi * k / samples), size * k / samples)
        for k in range(samples + 1)
    )


SHAPES: dict[Shape, ShapeProgram] = {
    Shape.SQUARE: square,
    Shape.CIRCLE: circle,
    Shape.STAR: star,
    Shape.SPIRAL: spiral,
    Shape.HEART: heart,
    Shape.CURVY_HEART: curvy_heart,
    Shape.FLOWER: flower,
    Shape.HEXAGON: hexagon,
    Shape.WAVE: wave,
}


def program_for(shape: Shape | str, size: float) -> Iterator[Instruction]:
    return SHAPES[Shape(shape)](size)
