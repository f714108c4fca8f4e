"""Per-pixel HSLA transforms.

Every transform mutates the image it is given and returns that same object,
so callers that need the untouched input should ``copy()`` it first.
"""

from __future__ import annotations

import logging
import math

from .hsla import HSLAImage

log = logging.getLogger(__name__)

# Spotlight: 0.5% lightness lost per pixel of distance, capped at 80% from
# 160 pixels out.
SPOTLIGHT_FALLOFF_PER_PIXEL = 0.5
SPOTLIGHT_MAX_DECREASE = 80.0
SPOTLIGHT_CAP_DISTANCE = 160.0

ILLINI_ORANGE = 11
ILLINI_BLUE = 216
# Midpoints between orange and blue on the hue circle.
ORANGE_UPPER_HUE = 113.5
ORANGE_LOWER_HUE = 293.5

WATERMARK_STENCIL_LIGHTNESS = 1.0
WATERMARK_LIGHTNESS_BOOST = 0.2


class DimensionMismatchError(ValueError):
    """Raised when two images that must line up pixel-for-pixel do not."""


def grayscale(image: HSLAImage) -> HSLAImage:
    log.debug("Grayscale on %r", image)
    for x, y in image.coordinates():
        image.get_pixel(x, y).s = 0
    return image


def spotlight_decrease(distance: float) -> float:
    """Percentage of lightness removed at ``distance`` pixels from the center."""
    if distance >= SPOTLIGHT_CAP_DISTANCE:
        return SPOTLIGHT_MAX_DECREASE
    return distance * SPOTLIGHT_FALLOFF_PER_PIXEL


def create_spotlight(image: HSLAImage, center_x: int, center_y: int) -> HSLAImage:
    """Darken ``image`` radially around ``(center_x, center_y)``.

    The center may lie outside the image. A pixel ``d`` pixels away keeps
    ``1 - d * 0.5 / 100`` of its lightness, and never less than 20%.
    """
    log.debug("Spotlight on %r centered at (%d, %d)", image, center_x, center_y)
    for x, y in image.coordinates():
        pixel = image.get_pixel(x, y)
        distance = math.sqrt((x - center_x) ** 2 + (y - center_y) ** 2)
        pixel.l = (1 - spotlight_decrease(distance) / 100) * pixel.l
    return image


def illini_hue(hue: float) -> int:
    if (0.0 <= hue <= ORANGE_UPPER_HUE) or (ORANGE_LOWER_HUE <= hue < 360.0):
        return ILLINI_ORANGE
    return ILLINI_BLUE


def illinify(image: HSLAImage) -> HSLAImage:
    """Snap every hue to Illini orange or blue, whichever is closer."""
    log.debug("Illinify on %r", image)
    for x, y in image.coordinates():
        pixel = image.get_pixel(x, y)
        pixel.h = illini_hue(pixel.h)
    return image


def watermark(base: HSLAImage, stencil: HSLAImage) -> HSLAImage:
    """Brighten ``base`` by 0.2 wherever ``stencil`` is pure white.

    The boosted lightness is not clamped and may exceed 1.
    """
    if base.size != stencil.size:
        raise DimensionMismatchError(
            f"Stencil is {stencil.width()}x{stencil.height()}, "
            f"base is {base.width()}x{base.height()}"
        )
    log.debug("Watermark on %r with stencil %r", base, stencil)
    for x, y in base.coordinates():
        if stencil.get_pixel(x, y).l == WATERMARK_STENCIL_LIGHTNESS:
            base.get_pixel(x, y).l += WATERMARK_LIGHTNESS_BOOST
    return base
