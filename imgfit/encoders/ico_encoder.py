"""Multi-resolution ICO container.

The source is rendered at every configured square size ("contain" fit on a
transparent canvas) and Pillow packs the renditions as PNG frames of one .ico.
This is a fixed recipe; there is no quality level to tune.
"""

from __future__ import annotations

import io

from PIL import Image

from ..codecs import Codec
from ..errors import EncodeError
from ..utils.image import contain_square
from . import register_encoder
from .base import ImageEncoder

# ICO directory entries store width/height in one byte (0 means 256).
MAX_ICON_SIZE = 256


@register_encoder
class IcoEncoder(ImageEncoder):
    codec = Codec.ICO

    def render(self, source: Image.Image, quality: int | None, out: io.BytesIO) -> None:
        sizes = sorted({int(s) for s in self.settings.icon_sizes if 0 < int(s) <= MAX_ICON_SIZE}, reverse=True)
        if not sizes:
            raise EncodeError(f"no usable icon sizes in {self.settings.icon_sizes!r}", codec=self.codec)

        renditions = [contain_square(source, s) for s in sizes]
        # Pillow skips sizes larger than the base frame, so the largest goes first.
        base, rest = renditions[0], renditions[1:]
        base.save(
            out,
            format="ICO",
            sizes=[(s, s) for s in sizes],
            append_images=rest,
        )
