from __future__ import annotations

import io
from pathlib import Path
from typing import Callable

import pytest
from PIL import Image

from imgfit.codecs import Codec
from imgfit.config import AppConfig, TempConfig
from imgfit.encoders.base import ImageEncoder
from imgfit.errors import EncoderUnavailableError
from imgfit.service import ConversionService
from imgfit.tempstore import TempArtifactStore

KIB = 1024


class StubEncoder(ImageEncoder):
    """Deterministic encoder whose output size is size_fn(quality)."""

    def __init__(self, codec: Codec, size_fn: Callable[[int | None], int], fail: bool = False):
        super().__init__()
        self.codec = codec
        self.size_fn = size_fn
        self.fail = fail
        self.calls: list[int | None] = []

    def render(self, source, quality, out: io.BytesIO) -> None:
        self.calls.append(quality)
        if self.fail:
            raise OSError("broken codec")
        out.write(b"x" * self.size_fn(quality))


class StubFactory:
    """Stands in for EncoderFactory with a fixed codec -> encoder map."""

    def __init__(self, encoders: dict[Codec, ImageEncoder]):
        self.encoders = encoders

    @property
    def available_codecs(self) -> list[Codec]:
        return list(self.encoders)

    def is_available(self, codec: Codec) -> bool:
        return codec in self.encoders

    def get_encoder(self, codec: Codec) -> ImageEncoder:
        if codec not in self.encoders:
            raise EncoderUnavailableError(codec)
        return self.encoders[codec]


@pytest.fixture
def temp_root(tmp_path: Path) -> Path:
    root = tmp_path / "tmproot"
    root.mkdir()
    return root


@pytest.fixture
def app_config(temp_root: Path) -> AppConfig:
    return AppConfig(temp=TempConfig(app_tag="app-", operation_tag="imgc", root=temp_root))


@pytest.fixture
def store(app_config: AppConfig) -> TempArtifactStore:
    return TempArtifactStore(app_config.temp)


@pytest.fixture
def service(app_config: AppConfig) -> ConversionService:
    return ConversionService(app_config)


def tagged_dirs(root: Path, tag: str = "app-") -> list[Path]:
    return sorted(p for p in root.iterdir() if p.name.startswith(tag))


def make_image(path: Path, size: tuple[int, int] = (96, 64), mode: str = "RGB") -> Path:
    """Write a gradient test image (with a transparent band in RGBA mode)."""

    w, h = size
    im = Image.new(mode, size)
    px = im.load()
    for y in range(h):
        for x in range(w):
            r, g, b = (x * 255) // max(1, w - 1), (y * 255) // max(1, h - 1), ((x ^ y) * 7) % 256
            if mode == "RGBA":
                px[x, y] = (r, g, b, 0 if y < h // 4 else 255)
            else:
                px[x, y] = (r, g, b)
    fmt = {".jpg": "JPEG", ".jpeg": "JPEG"}.get(path.suffix.lower())
    im.save(path, format=fmt)
    return path


@pytest.fixture
def png_path(tmp_path: Path) -> Path:
    return make_image(tmp_path / "input.png")


@pytest.fixture
def source_image() -> Image.Image:
    return Image.new("RGB", (8, 8), (10, 20, 30))
