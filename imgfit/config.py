"""Configuration and defaults.

This module defines:
- Quality search bounds, the probe cap and the target-size floor.
- Fixed-parameter defaults (quality, icon renditions, alpha background).
- Temporary directory naming (the reclaim prefix).
- Optional JSON/YAML config overrides.

Defaults follow what a desktop converter needs in practice:
- Lossy search spans quality 20..95; below 20 artifacts dominate, above 95
  size grows with little visible gain.
- 10 probes bound the encoder calls per codec; a 76-level range converges well
  before the cap.
- AutoSmallest tries the most space-efficient codec first (AVIF, WebP, JPEG).
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field, fields, is_dataclass, replace
from pathlib import Path
from typing import Any

from .codecs import Codec, QUALITY_MAX, QUALITY_MIN


@dataclass(frozen=True)
class SearchConfig:
    min_quality: int = 20
    max_quality: int = 95

    # Per-codec overrides, e.g. {"avif": (30, 90)}
    quality_ranges: dict[str, tuple[int, int]] = field(default_factory=dict)

    max_probes: int = 10
    min_target_bytes: int = 10 * 1024
    auto_codecs: tuple[str, ...] = ("avif", "webp", "jpeg")
    parallel_codecs: bool = False

    def __post_init__(self) -> None:
        _check_range(self.min_quality, self.max_quality)
        for name, (lo, hi) in self.quality_ranges.items():
            Codec.parse(name)
            _check_range(lo, hi)
        if self.max_probes < 1:
            raise ValueError("max_probes must be >= 1")
        if self.min_target_bytes < 1:
            raise ValueError("min_target_bytes must be >= 1")
        for name in self.auto_codecs:
            if not Codec.parse(name).is_lossy:
                raise ValueError(f"auto_codecs may only list lossy codecs, got {name!r}")

    def quality_range(self, codec: Codec) -> tuple[int, int]:
        return tuple(self.quality_ranges.get(codec.value, (self.min_quality, self.max_quality)))  # type: ignore[return-value]

    def auto_candidates(self) -> list[Codec]:
        return [Codec.parse(name) for name in self.auto_codecs]


@dataclass(frozen=True)
class ConvertConfig:
    default_quality: int = 80
    icon_sizes: tuple[int, ...] = (16, 32, 48, 64, 128, 256)
    # JPEG has no alpha; transparent pixels are composited onto this colour.
    background_rgb: tuple[int, int, int] = (255, 255, 255)


@dataclass(frozen=True)
class TempConfig:
    app_tag: str = "toolsx-"
    operation_tag: str = "imgc"
    root: Path | None = None  # None => tempfile.gettempdir()

    def __post_init__(self) -> None:
        if not self.app_tag:
            raise ValueError("app_tag must be non-empty")


@dataclass(frozen=True)
class AppConfig:
    search: SearchConfig = field(default_factory=SearchConfig)
    convert: ConvertConfig = field(default_factory=ConvertConfig)
    temp: TempConfig = field(default_factory=TempConfig)
    jobs: int = 0  # batch worker threads, 0 => auto


def _check_range(lo: int, hi: int) -> None:
    if not (QUALITY_MIN <= lo <= QUALITY_MAX) or not (QUALITY_MIN <= hi <= QUALITY_MAX):
        raise ValueError(f"quality must be in {QUALITY_MIN}..{QUALITY_MAX}, got {lo}..{hi}")
    if lo > hi:
        raise ValueError(f"min quality must be <= max quality, got {lo}..{hi}")


def _coerce(current: Any, raw_value: Any) -> Any:
    if isinstance(current, bool):
        return bool(raw_value)
    if isinstance(current, int):
        return int(raw_value)
    if isinstance(current, float):
        return float(raw_value)
    if isinstance(current, tuple) and isinstance(raw_value, (list, tuple)):
        if current and isinstance(current[0], int):
            return tuple(int(v) for v in raw_value)
        return tuple(str(v) for v in raw_value)
    if isinstance(current, Path) or (current is None and isinstance(raw_value, str)):
        return Path(raw_value).expanduser()
    return raw_value


def apply_overrides(base: Any, overrides: dict[str, Any]) -> Any:
    """Return a copy of base with overrides applied for matching dataclass fields."""

    if not (is_dataclass(base) and isinstance(overrides, dict)):
        return base

    updates: dict[str, Any] = {}
    for f in fields(base):
        if f.name not in overrides:
            continue
        raw_value = overrides[f.name]
        current = getattr(base, f.name)
        if is_dataclass(current) and isinstance(raw_value, dict):
            updates[f.name] = apply_overrides(current, raw_value)
        elif isinstance(current, dict) and isinstance(raw_value, dict):
            merged = dict(current)
            for key, value in raw_value.items():
                if isinstance(value, (list, tuple)):
                    merged[str(key)] = tuple(int(v) for v in value)
                else:
                    merged[str(key)] = value
            updates[f.name] = merged
        else:
            updates[f.name] = _coerce(current, raw_value)

    return replace(base, **updates)


def load_config(path: Path | None) -> AppConfig:
    """Load optional config overrides.

    Supports JSON by default.
    YAML is supported if PyYAML is installed and the file extension is .yml/.yaml.

    Schema (all keys optional):
    {
      "search": {
        "min_quality": 20,
        "max_quality": 95,
        "quality_ranges": {"avif": [30, 90]},
        "max_probes": 10,
        "min_target_bytes": 10240,
        "auto_codecs": ["avif", "webp", "jpeg"],
        "parallel_codecs": false
      },
      "convert": {
        "default_quality": 80,
        "icon_sizes": [16, 32, 48, 64, 128, 256],
        "background_rgb": [255, 255, 255]
      },
      "temp": {"app_tag": "toolsx-", "operation_tag": "imgc", "root": "/tmp"},
      "jobs": 0
    }
    """

    if path is None:
        return AppConfig()

    path = path.expanduser().resolve()
    if not path.exists() or not path.is_file():
        raise FileNotFoundError(f"config file not found: {path}")

    raw: dict[str, Any]
    if path.suffix.lower() in {".yml", ".yaml"}:
        try:
            import yaml  # type: ignore
        except Exception as e:  # pragma: no cover
            raise RuntimeError(
                "YAML config requested but PyYAML is not installed. Install with: pip install pyyaml"
            ) from e
        with path.open("r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
    else:
        with path.open("r", encoding="utf-8") as f:
            raw = json.load(f) or {}

    if not isinstance(raw, dict):
        raise ValueError(f"config root must be a mapping: {path}")

    return apply_overrides(AppConfig(), raw)
