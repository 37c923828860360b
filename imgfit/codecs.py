"""Output codecs and their properties."""

from __future__ import annotations

import math
from enum import Enum


class Codec(str, Enum):
    PNG = "png"
    GIF = "gif"
    JPEG = "jpeg"
    WEBP = "webp"
    AVIF = "avif"
    ICO = "ico"

    @property
    def is_lossy(self) -> bool:
        """True if the codec takes a quality level."""

        return self in _LOSSY

    @property
    def extension(self) -> str:
        return "jpg" if self is Codec.JPEG else self.value

    @property
    def pil_format(self) -> str:
        return self.value.upper()

    @classmethod
    def parse(cls, value: "str | Codec") -> "Codec":
        if isinstance(value, Codec):
            return value
        key = str(value).strip().lower()
        if key == "jpg":
            key = "jpeg"
        try:
            return cls(key)
        except ValueError:
            names = ", ".join(c.value for c in cls)
            raise ValueError(f"unknown codec {value!r} (expected one of: {names})") from None


_LOSSY = frozenset({Codec.JPEG, Codec.WEBP, Codec.AVIF})

QUALITY_MIN = 1
QUALITY_MAX = 100


def clamp_quality(value: float | None, default: int = 80) -> int:
    """Round and clamp a user quality into 1..100; non-finite input gives default."""

    if value is None or not math.isfinite(value):
        return default
    return min(QUALITY_MAX, max(QUALITY_MIN, int(round(value))))
