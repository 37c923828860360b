"""Input discovery, output naming and atomic writes."""

from __future__ import annotations

import os
import tempfile
from dataclasses import dataclass
from pathlib import Path

from ..codecs import Codec

IMAGE_SUFFIXES = frozenset(
    {".png", ".jpg", ".jpeg", ".webp", ".avif", ".gif", ".bmp", ".tif", ".tiff", ".ico"}
)


@dataclass(frozen=True)
class DiscoveredFile:
    input_path: Path
    rel_path: Path  # path relative to the chosen source root


def is_icon_path(path: Path) -> bool:
    return Path(path).suffix.lower() == ".ico"


def iter_image_files(src_dir: Path, recursive: bool) -> list[DiscoveredFile]:
    """Return image files under src_dir.

    The returned list is sorted by relative path to stabilize processing order.
    """

    src_dir = src_dir.resolve()
    if not src_dir.exists() or not src_dir.is_dir():
        raise FileNotFoundError(f"src_dir does not exist or is not a directory: {src_dir}")

    pattern = "**/*" if recursive else "*"
    files: list[DiscoveredFile] = []

    for p in src_dir.glob(pattern):
        if not p.is_file():
            continue
        if p.suffix.lower() not in IMAGE_SUFFIXES:
            continue
        rel = p.resolve().relative_to(src_dir)
        files.append(DiscoveredFile(input_path=p.resolve(), rel_path=rel))

    files.sort(key=lambda f: f.rel_path.as_posix())
    return files


def output_filename(codec: Codec, stem: str = "out") -> str:
    return f"{stem}.{codec.extension}"


def atomic_write_bytes(path: Path, data: bytes) -> None:
    """Write data to path so readers see either nothing or the complete file."""

    with tempfile.NamedTemporaryFile("wb", delete=False, dir=path.parent, prefix=".part-") as tmp:
        try:
            tmp.write(data)
            tmp.flush()
            os.fsync(tmp.fileno())
        except BaseException:
            tmp.close()
            os.unlink(tmp.name)
            raise
    os.replace(tmp.name, path)


def plan_output_stems(files: list[DiscoveredFile], mirror_subdirs: bool) -> dict[Path, Path]:
    """Map each rel_path to a unique output path without suffix.

    - If mirror_subdirs is True, preserve subdirectories under the output root.
    - Inputs that would share an output name (x.png and x.jpg, or a/x.png and
      b/x.png when flattened) keep the name for the first one in order; later
      ones get "-1", "-2", ... appended. Matching is case-insensitive.
    """

    def natural(rel: Path) -> Path:
        return rel.parent / rel.stem if mirror_subdirs else Path(rel.stem)

    def key(p: Path) -> str:
        return p.as_posix().lower()

    taken_naturally = {key(natural(f.rel_path)) for f in files}
    claimed: set[str] = set()
    plan: dict[Path, Path] = {}

    for f in files:
        stem = natural(f.rel_path)
        if key(stem) in claimed:
            n = 1
            while True:
                candidate = stem.with_name(f"{stem.name}-{n}")
                k = key(candidate)
                if k not in claimed and k not in taken_naturally:
                    stem = candidate
                    break
                n += 1
        claimed.add(key(stem))
        plan[f.rel_path] = stem
    return plan


def with_extension(stem: Path, codec: Codec) -> Path:
    return stem.with_name(f"{stem.name}.{codec.extension}")
