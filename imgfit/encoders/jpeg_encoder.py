"""Baseline JPEG via Pillow (libjpeg/libjpeg-turbo)."""

from __future__ import annotations

import io

from PIL import Image

from ..codecs import Codec
from ..utils.image import flatten_to_rgb
from . import register_encoder
from .base import ImageEncoder


@register_encoder
class JpegEncoder(ImageEncoder):
    codec = Codec.JPEG

    def render(self, source: Image.Image, quality: int | None, out: io.BytesIO) -> None:
        rgb = flatten_to_rgb(source, background_rgb=self.settings.background_rgb)
        rgb.save(out, format="JPEG", quality=quality, optimize=True)
