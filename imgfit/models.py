"""Requests, probe records and results passed between the engine's stages."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Union

from .codecs import Codec


@dataclass(frozen=True)
class CodecPolicy:
    """Which codecs a target-size request may try.

    keep=None means AutoSmallest: try the configured lossy preference list.
    keep=<codec> means KeepCodec: try exactly that codec.
    """

    keep: Codec | None = None

    @classmethod
    def auto_smallest(cls) -> "CodecPolicy":
        return cls()

    @classmethod
    def keep_codec(cls, codec: Codec | str) -> "CodecPolicy":
        return cls(keep=Codec.parse(codec))

    @property
    def is_auto(self) -> bool:
        return self.keep is None


@dataclass(frozen=True)
class FixedParameterRequest:
    input_path: Path
    codec: Codec
    quality: float | None = None  # ignored for codecs without a quality level

    mode = "fixed"

    def __post_init__(self) -> None:
        object.__setattr__(self, "input_path", Path(self.input_path))
        object.__setattr__(self, "codec", Codec.parse(self.codec))


@dataclass(frozen=True)
class TargetSizeRequest:
    input_path: Path
    target_bytes: int
    policy: CodecPolicy = field(default_factory=CodecPolicy.auto_smallest)

    mode = "target_size"

    def __post_init__(self) -> None:
        object.__setattr__(self, "input_path", Path(self.input_path))
        if isinstance(self.target_bytes, bool) or int(self.target_bytes) != self.target_bytes:
            raise ValueError(f"target_bytes must be an integer, got {self.target_bytes!r}")
        if self.target_bytes <= 0:
            raise ValueError(f"target_bytes must be > 0, got {self.target_bytes}")
        object.__setattr__(self, "target_bytes", int(self.target_bytes))

    @classmethod
    def from_kib(
        cls, input_path: Path | str, target_kb: float, policy: CodecPolicy | None = None
    ) -> "TargetSizeRequest":
        """Build a request from a budget in KiB (rounded to a whole KiB)."""

        if not math.isfinite(target_kb):
            raise ValueError(f"target_kb must be finite, got {target_kb!r}")
        return cls(
            input_path=Path(input_path),
            target_bytes=max(1, int(round(target_kb))) * 1024,
            policy=policy or CodecPolicy.auto_smallest(),
        )


ConversionRequest = Union[FixedParameterRequest, TargetSizeRequest]


@dataclass(frozen=True)
class EncodeAttempt:
    """One probe: the bytes produced for (codec, quality). Lives only in memory."""

    codec: Codec
    quality: int | None
    data: bytes = field(repr=False)

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class SearchResult:
    """Per-codec search outcome.

    under: highest-quality probe that fit the budget.
    over: smallest probe that exceeded it.
    """

    codec: Codec
    under: EncodeAttempt | None
    over: EncodeAttempt | None
    probes: int = 0


@dataclass(frozen=True)
class ConversionOutput:
    output_path: Path
    codec: Codec
    quality: int | None
    size_bytes: int

    @property
    def temp_dir(self) -> Path:
        return self.output_path.parent

    def to_dict(self) -> dict[str, Any]:
        return {
            "output": str(self.output_path),
            "codec": self.codec.value,
            "quality": self.quality,
            "size_bytes": self.size_bytes,
        }
