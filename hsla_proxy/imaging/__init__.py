"""HSLA pixel transforms and the Pillow-facing pipeline around them."""

from .hsla import HSLAImage, HSLAPixel
from .pipeline import (
    TRANSFORMS,
    UnknownTransformError,
    apply_chain,
    apply_transform,
    parse_chain,
    render,
)
from .transforms import (
    DimensionMismatchError,
    create_spotlight,
    grayscale,
    illinify,
    watermark,
)

__all__ = [
    "HSLAImage",
    "HSLAPixel",
    "TRANSFORMS",
    "UnknownTransformError",
    "apply_chain",
    "apply_transform",
    "parse_chain",
    "render",
    "DimensionMismatchError",
    "create_spotlight",
    "grayscale",
    "illinify",
    "watermark",
]
