from __future__ import annotations

import colorsys
from dataclasses import dataclass, replace
from typing import Iterator, List, Tuple

from PIL import Image


@dataclass
class HSLAPixel:
    """A single pixel in hue/saturation/lightness/alpha form.

    ``h`` is in degrees on ``[0, 360)``; ``s``, ``l`` and ``a`` are fractions on
    ``[0, 1]``. Channels are plain attributes and are never validated, so
    transforms are free to push them outside those ranges.
    """

    h: float = 0.0
    s: float = 0.0
    l: float = 1.0
    a: float = 1.0


def _clamp_unit(value: float) -> float:
    return min(1.0, max(0.0, value))


def rgba_to_hsla(rgba: Tuple[int, int, int, int]) -> HSLAPixel:
    r, g, b, a = rgba
    hue, lightness, saturation = colorsys.rgb_to_hls(r / 255.0, g / 255.0, b / 255.0)
    return HSLAPixel(h=hue * 360.0, s=saturation, l=lightness, a=a / 255.0)


def hsla_to_rgba(pixel: HSLAPixel) -> Tuple[int, int, int, int]:
    # Out-of-range channels (e.g. watermark lightness above 1) are clamped on
    # the way out only.
    hue = (pixel.h % 360.0) / 360.0
    r, g, b = colorsys.hls_to_rgb(hue, _clamp_unit(pixel.l), _clamp_unit(pixel.s))
    return (
        int(round(r * 255)),
        int(round(g * 255)),
        int(round(b * 255)),
        int(round(_clamp_unit(pixel.a) * 255)),
    )


class HSLAImage:
    """A caller-owned ``width x height`` grid of :class:`HSLAPixel`.

    ``get_pixel`` hands out the stored pixel itself, so writing to its
    channels changes the image directly.
    """

    def __init__(self, width: int, height: int) -> None:
        if width < 0 or height < 0:
            raise ValueError(f"Invalid image size: {width}x{height}")
        self._width = width
        self._height = height
        self._pixels: List[HSLAPixel] = [HSLAPixel() for _ in range(width * height)]

    def width(self) -> int:
        return self._width

    def height(self) -> int:
        return self._height

    @property
    def size(self) -> Tuple[int, int]:
        return self._width, self._height

    def get_pixel(self, x: int, y: int) -> HSLAPixel:
        if not (0 <= x < self._width and 0 <= y < self._height):
            raise IndexError(
                f"Pixel ({x}, {y}) outside {self._width}x{self._height} image"
            )
        return self._pixels[y * self._width + x]

    def coordinates(self) -> Iterator[Tuple[int, int]]:
        for y in range(self._height):
            for x in range(self._width):
                yield x, y

    def copy(self) -> "HSLAImage":
        clone = HSLAImage(0, 0)
        clone._width, clone._height = self._width, self._height
        clone._pixels = [replace(pixel) for pixel in self._pixels]
        return clone

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, HSLAImage):
            return NotImplemented
        return self.size == other.size and self._pixels == other._pixels

    def __repr__(self) -> str:
        return f"HSLAImage({self._width}x{self._height})"

    @classmethod
    def from_pil(cls, img: Image.Image) -> "HSLAImage":
        src = img.convert("RGBA")
        width, height = src.size
        out = cls(width, height)
        src_pixels = src.load()
        for y in range(height):
            for x in range(width):
                out._pixels[y * width + x] = rgba_to_hsla(src_pixels[x, y])
        return out

    def to_pil(self) -> Image.Image:
        out = Image.new("RGBA", (self._width, self._height))
        dst_pixels = out.load()
        for x, y in self.coordinates():
            dst_pixels[x, y] = hsla_to_rgba(self.get_pixel(x, y))
        return out
