"""Encoder interface.

An encoder turns a decoded source image into the bytes of one codec at one
quality level. For a fixed codec and source, output size must not decrease as
quality increases; the quality search relies on it.
"""

from __future__ import annotations

import abc
import io
import logging

from PIL import Image

from ..codecs import Codec
from ..config import ConvertConfig
from ..errors import EncodeError

log = logging.getLogger(__name__)


class ImageEncoder(abc.ABC):
    """Abstract base class for encoder plugins."""

    codec: Codec

    def __init__(self, settings: ConvertConfig | None = None) -> None:
        self.settings = settings or ConvertConfig()

    @property
    def supports_quality(self) -> bool:
        return self.codec.is_lossy

    def is_available(self) -> bool:
        """Return True if this Pillow build can write the codec."""

        Image.init()
        return self.codec.pil_format in Image.SAVE

    @abc.abstractmethod
    def render(self, source: Image.Image, quality: int | None, out: io.BytesIO) -> None:
        """Write the encoded image into out."""

    def encode(self, source: Image.Image, quality: int | None = None) -> bytes:
        """Encode source, wrapping encoder failures in EncodeError."""

        q = None
        if self.supports_quality:
            q = self.settings.default_quality if quality is None else quality
        buf = io.BytesIO()
        try:
            self.render(source, q, buf)
        except EncodeError:
            raise
        except (OSError, ValueError, KeyError) as e:
            raise EncodeError(
                f"{self.codec.value} encode failed (quality={q}): {e}", codec=self.codec, quality=q
            ) from e
        data = buf.getvalue()
        if not data:
            raise EncodeError(f"{self.codec.value} encoder produced no output", codec=self.codec, quality=q)
        log.debug("encoded %s q=%s -> %d bytes", self.codec.value, q, len(data))
        return data
