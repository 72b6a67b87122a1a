"""Pen color conversions, including the Scratch 2 hue/shade model."""

from __future__ import annotations

import colorsys
import math

RGB = tuple[float, float, float]
RGBA = tuple[float, float, float, float]

RGB_BLACK: RGB = (0.0, 0.0, 0.0)
RGB_WHITE: RGB = (1.0, 1.0, 1.0)


def wrap_clamp(value: float, low: float, high: float) -> float:
    """Wrap into the inclusive range [low, high], as Scratch's MathUtil.wrapClamp does."""
    span = high - low + 1
    return value - math.floor((value - low) / span) * span


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def transparency_to_alpha(transparency: float) -> float:
    return 1.0 - transparency / 100.0


def alpha_to_transparency(alpha: float) -> float:
    return (1.0 - alpha) * 100.0


def to_rgba(color: float, saturation: float, brightness: float, transparency: float) -> RGBA:
    """Convert 0-100 scaled color/saturation/brightness/transparency to RGBA floats."""
    r, g, b = colorsys.hsv_to_rgb(
        (color % 100.0) / 100.0,
        clamp(saturation / 100.0, 0.0, 1.0),
        clamp(brightness / 100.0, 0.0, 1.0),
    )
    return (r, g, b, transparency_to_alpha(transparency))


def from_rgba(rgba: RGBA) -> tuple[float, float, float, float]:
    """Inverse of :func:`to_rgba`. Hue is meaningless when saturation is 0."""
    r, g, b, a = rgba
    h, s, v = colorsys.rgb_to_hsv(r, g, b)
    return (h * 100.0, s * 100.0, v * 100.0, alpha_to_transparency(a))


def mix_rgb(rgb0: RGB, rgb1: RGB, fraction: float) -> RGB:
    if fraction <= 0:
        return rgb0
    if fraction >= 1:
        return rgb1
    keep = 1.0 - fraction
    return (
        keep * rgb0[0] + fraction * rgb1[0],
        keep * rgb0[1] + fraction * rgb1[1],
        keep * rgb0[2] + fraction * rgb1[2],
    )


def wrap_shade(shade: float) -> float:
    return shade % 200.0


def legacy_shade_to_hsv(color: float, shade: float) -> tuple[float, float, float]:
    """Apply a Scratch 2 shade (0-200) to a full-value hue.

    Returns 0-100 scaled ``(color, saturation, brightness)``. Shade cannot be
    recovered from the result, so callers must keep it alongside.
    """
    rgb: RGB = colorsys.hsv_to_rgb((color % 100.0) / 100.0, 1.0, 1.0)
    folded = 200.0 - shade if shade > 100 else shade
    if folded < 50:
        rgb = mix_rgb(RGB_BLACK, rgb, (10.0 + folded) / 60.0)
    else:
        rgb = mix_rgb(rgb, RGB_WHITE, (folded - 50.0) / 60.0)
    h, s, v = colorsys.rgb_to_hsv(*rgb)
    return (h * 100.0, s * 100.0, v * 100.0)
