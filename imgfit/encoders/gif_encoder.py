"""Single-frame GIF via Pillow. Pillow quantizes to a 256-colour palette."""

from __future__ import annotations

import io

from PIL import Image

from ..codecs import Codec
from . import register_encoder
from .base import ImageEncoder


@register_encoder
class GifEncoder(ImageEncoder):
    codec = Codec.GIF

    def render(self, source: Image.Image, quality: int | None, out: io.BytesIO) -> None:
        source.save(out, format="GIF", optimize=True)
