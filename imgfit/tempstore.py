"""Per-operation temporary directories and their safe reclamation.

Every directory this store creates sits directly under the temp root and its
name starts with the application tag. ``is_reclaimable`` checks exactly that,
lexically and without touching the filesystem, and it is the only gate in
front of every recursive delete.
"""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
from pathlib import Path, PurePath
from typing import Iterable

from .config import TempConfig
from .utils.files import atomic_write_bytes

log = logging.getLogger(__name__)


def is_reclaimable(path: str | os.PathLike[str], temp_root: str | os.PathLike[str], prefix: str) -> bool:
    """True iff path is a direct child of temp_root whose name starts with prefix.

    Pure: no I/O and no cwd lookups. Relative paths and any path containing a
    ".." component are rejected outright.
    """

    if not prefix:
        return False
    raw = os.fspath(path)
    root_raw = os.fspath(temp_root)
    if not raw or not root_raw:
        return False

    candidate = PurePath(raw)
    root = PurePath(os.path.normpath(root_raw))
    if not candidate.is_absolute() or not root.is_absolute():
        return False
    if ".." in candidate.parts:
        return False

    candidate = PurePath(os.path.normpath(raw))
    return candidate.parent == root and candidate.name.startswith(prefix)


class TempArtifactStore:
    """Allocates, fills and reclaims tagged temp directories.

    Safe for concurrent callers without locking: names come from
    tempfile.mkdtemp, which creates the directory atomically.
    """

    def __init__(self, config: TempConfig | None = None):
        self._config = config or TempConfig()
        root = self._config.root if self._config.root is not None else Path(tempfile.gettempdir())
        self.root = Path(os.path.abspath(root))
        self.app_tag = self._config.app_tag

    def allocate(self, operation: str | None = None) -> Path:
        """Create a fresh, uniquely named directory and return its path."""

        op = operation or self._config.operation_tag
        path = Path(tempfile.mkdtemp(prefix=f"{self.app_tag}{op}-", dir=self.root))
        log.debug("Allocated temp dir %s", path)
        return path

    def write(self, directory: Path, filename: str, data: bytes) -> Path:
        """Write one complete file into an allocated directory."""

        directory = Path(directory)
        if not self.is_reclaimable(directory):
            raise ValueError(f"not a directory allocated by this store: {directory}")
        if not filename or PurePath(filename).name != filename or filename in {".", ".."}:
            raise ValueError(f"filename must be a plain file name, got {filename!r}")
        if not directory.is_dir():
            raise FileNotFoundError(f"temp dir does not exist: {directory}")

        out = directory / filename
        atomic_write_bytes(out, data)
        return out

    def is_reclaimable(self, path: str | os.PathLike[str]) -> bool:
        return is_reclaimable(path, self.root, self.app_tag)

    def _remove(self, path: Path) -> bool:
        # rmtree refuses symlinks, so a tagged link never leads outside the root.
        if path.is_symlink() or not path.is_dir():
            log.debug("Not a directory, leaving in place: %s", path)
            return False
        try:
            shutil.rmtree(path)
        except OSError as e:
            log.warning("Could not remove temp dir %s: %s", path, e)
            return False
        return True

    def cleanup(self, explicit_dirs: Iterable[str | os.PathLike[str]] | None = None) -> int:
        """Delete reclaimable directories and return how many were removed.

        With explicit_dirs, each entry is re-validated and non-reclaimable ones
        are skipped silently. Without it, every tagged entry directly under the
        root is swept. Individual failures never abort the call.
        """

        if explicit_dirs is not None:
            targets: list[Path] = []
            for d in explicit_dirs:
                if not self.is_reclaimable(d):
                    log.debug("Refusing to reclaim %s", d)
                    continue
                targets.append(Path(os.path.normpath(os.fspath(d))))
        else:
            try:
                entries = list(self.root.iterdir())
            except OSError as e:
                log.warning("Could not list temp root %s: %s", self.root, e)
                return 0
            targets = [p for p in entries if self.is_reclaimable(p)]

        deleted = 0
        for path in targets:
            if self._remove(path):
                deleted += 1
        log.info("Removed %d temp dir(s)", deleted)
        return deleted
