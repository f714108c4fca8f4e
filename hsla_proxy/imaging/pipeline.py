from __future__ import annotations

import logging
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from PIL import Image

from ..config import SETTINGS, ProxySettings
from .hsla import HSLAImage
from .transforms import create_spotlight, grayscale, illinify, watermark

log = logging.getLogger(__name__)

Center = Tuple[int, int]


class UnknownTransformError(ValueError):
    pass


def _grayscale(image: HSLAImage, center: Center, stencil: Optional[HSLAImage]) -> HSLAImage:
    return grayscale(image)


def _spotlight(image: HSLAImage, center: Center, stencil: Optional[HSLAImage]) -> HSLAImage:
    return create_spotlight(image, center[0], center[1])


def _illinify(image: HSLAImage, center: Center, stencil: Optional[HSLAImage]) -> HSLAImage:
    return illinify(image)


def _watermark(image: HSLAImage, center: Center, stencil: Optional[HSLAImage]) -> HSLAImage:
    if stencil is None:
        raise ValueError("watermark requires a stencil image")
    return watermark(image, stencil)


TRANSFORMS: Dict[str, Callable[[HSLAImage, Center, Optional[HSLAImage]], HSLAImage]] = {
    "grayscale": _grayscale,
    "spotlight": _spotlight,
    "illinify": _illinify,
    "watermark": _watermark,
}


def parse_chain(raw: str) -> List[str]:
    names = [part.strip().lower() for part in (raw or "").split(",") if part.strip()]
    if not names:
        raise ValueError("No transforms requested")
    for name in names:
        if name not in TRANSFORMS:
            raise UnknownTransformError(f"Unknown transform: {name}")
    return names


def apply_transform(
    image: HSLAImage,
    name: str,
    *,
    center: Optional[Center] = None,
    stencil: Optional[HSLAImage] = None,
    settings: ProxySettings = SETTINGS,
) -> HSLAImage:
    try:
        transform = TRANSFORMS[name]
    except KeyError:
        raise UnknownTransformError(f"Unknown transform: {name}") from None
    if center is None:
        center = settings.spotlight_center
    return transform(image, center, stencil)


def apply_chain(
    image: HSLAImage,
    names: Iterable[str],
    *,
    center: Optional[Center] = None,
    stencil: Optional[HSLAImage] = None,
    settings: ProxySettings = SETTINGS,
) -> HSLAImage:
    for name in names:
        image = apply_transform(image, name, center=center, stencil=stencil, settings=settings)
    return image


def render(
    src: Image.Image,
    names: Iterable[str],
    *,
    center: Optional[Center] = None,
    stencil: Optional[Image.Image] = None,
    settings: ProxySettings = SETTINGS,
) -> Image.Image:
    """Run a transform chain over Pillow images and return an RGBA result."""
    names = list(names)
    hsla = HSLAImage.from_pil(src)
    hsla_stencil = HSLAImage.from_pil(stencil) if stencil is not None else None
    log.debug("Rendering %s over %r", ",".join(names), hsla)
    return apply_chain(
        hsla, names, center=center, stencil=hsla_stencil, settings=settings
    ).to_pil()
