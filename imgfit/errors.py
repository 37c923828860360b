"""Error taxonomy shared by the conversion engine."""

from __future__ import annotations

from .codecs import Codec


class ConversionError(Exception):
    """Base class for every deliberate conversion failure."""


class UnsupportedInputError(ConversionError):
    """The input cannot be converted as requested. Raised before any encode."""


class EncoderUnavailableError(ConversionError):
    """No encoder for the codec is available in this environment."""

    def __init__(self, codec: Codec, message: str | None = None):
        super().__init__(message or f"no encoder available for {codec.value}")
        self.codec = codec


class EncodeError(ConversionError):
    """An encoder failed to produce output for one probe."""

    def __init__(self, message: str, codec: Codec | None = None, quality: int | None = None):
        super().__init__(message)
        self.codec = codec
        self.quality = quality
