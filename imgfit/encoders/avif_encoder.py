"""AVIF via Pillow's native plugin (libavif).

Only present when Pillow was built with libavif; is_available() reflects that.
"""

from __future__ import annotations

import io

from PIL import Image, features

from ..codecs import Codec
from . import register_encoder
from .base import ImageEncoder


@register_encoder
class AvifEncoder(ImageEncoder):
    codec = Codec.AVIF

    def is_available(self) -> bool:
        return bool(features.check("avif")) and super().is_available()

    def render(self, source: Image.Image, quality: int | None, out: io.BytesIO) -> None:
        source.save(out, format="AVIF", quality=quality, speed=6)
