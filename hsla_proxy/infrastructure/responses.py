from __future__ import annotations

import io

from flask import send_file
from PIL import Image

from .cache import remember_last_good


def encode_png(img: Image.Image) -> bytes:
    buffer = io.BytesIO()
    img.save(buffer, "PNG", optimize=True)
    return buffer.getvalue()


def send_png_bytes(data: bytes):
    return send_file(io.BytesIO(data), mimetype="image/png")


def send_png(img: Image.Image):
    data = encode_png(img)
    remember_last_good(data)
    return send_png_bytes(data)
