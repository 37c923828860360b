"""Lossless PNG via Pillow (zlib). No quality level."""

from __future__ import annotations

import io

from PIL import Image

from ..codecs import Codec
from . import register_encoder
from .base import ImageEncoder


@register_encoder
class PngEncoder(ImageEncoder):
    codec = Codec.PNG

    def render(self, source: Image.Image, quality: int | None, out: io.BytesIO) -> None:
        source.save(out, format="PNG", optimize=True)
