"""Encoder registry and factory.

Encoders register via the @register_encoder decorator, one class per codec.
The factory auto-discovers modules within imgfit.encoders.

Thread-safety note: the factory returns a *new* encoder instance per lookup,
so plugins can stay state-free by default.
"""

from __future__ import annotations

import importlib
import logging
import pkgutil

from ..codecs import Codec
from ..config import ConvertConfig
from ..errors import EncoderUnavailableError

from .base import ImageEncoder

log = logging.getLogger(__name__)

_REGISTRY: dict[Codec, type[ImageEncoder]] = {}


def register_encoder(cls: type[ImageEncoder]) -> type[ImageEncoder]:
    codec = getattr(cls, "codec", None)
    if not isinstance(codec, Codec):
        raise ValueError("Encoder class must define a 'codec' attribute")
    if codec in _REGISTRY:
        raise ValueError(f"Duplicate encoder registration: {codec.value}")
    _REGISTRY[codec] = cls
    return cls


def _auto_import_plugins() -> None:
    # Import all modules in this package except base/__init__.
    pkg_name = __name__
    for m in pkgutil.iter_modules(__path__):  # type: ignore[name-defined]
        if m.ispkg:
            continue
        if m.name in {"base", "__init__"}:
            continue
        importlib.import_module(f"{pkg_name}.{m.name}")


class EncoderFactory:
    """Resolves codecs to available encoder instances.

    Availability is probed once, at construction. A codec whose plugin is
    missing or whose Pillow support is absent stays unavailable for the
    factory's lifetime.
    """

    def __init__(self, settings: ConvertConfig | None = None):
        _auto_import_plugins()
        self._settings = settings or ConvertConfig()
        self._available: dict[Codec, type[ImageEncoder]] = {}
        self._build_available()

    def _build_available(self) -> None:
        for codec, cls in sorted(_REGISTRY.items(), key=lambda kv: kv[0].value):
            enc = cls(self._settings)  # instantiate to check availability
            if not enc.is_available():
                log.debug("encoder for %s is not available in this Pillow build", codec.value)
                continue
            self._available[codec] = cls

    @property
    def available_codecs(self) -> list[Codec]:
        return list(self._available)

    def is_available(self, codec: Codec) -> bool:
        return codec in self._available

    def get_encoder(self, codec: Codec) -> ImageEncoder:
        cls = self._available.get(codec)
        if cls is None:
            raise EncoderUnavailableError(codec, f"no encoder available for {codec.value} in this environment")
        return cls(self._settings)
