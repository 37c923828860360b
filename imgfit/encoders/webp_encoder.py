"""Lossy WebP via Pillow (libwebp). Alpha is kept."""

from __future__ import annotations

import io

from PIL import Image

from ..codecs import Codec
from . import register_encoder
from .base import ImageEncoder


@register_encoder
class WebpEncoder(ImageEncoder):
    codec = Codec.WEBP

    def render(self, source: Image.Image, quality: int | None, out: io.BytesIO) -> None:
        source.save(out, format="WEBP", quality=quality, method=4)
