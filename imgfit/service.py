"""Caller-facing conversion operations."""

from __future__ import annotations

import logging
import os
import shutil
from pathlib import Path
from typing import Iterable

from .codecs import Codec, clamp_quality
from .config import AppConfig
from .encoders import EncoderFactory
from .errors import UnsupportedInputError
from .models import ConversionOutput, ConversionRequest, EncodeAttempt, FixedParameterRequest, TargetSizeRequest
from .selection import candidate_codecs, resolve_encoders, select_best
from .tempstore import TempArtifactStore
from .utils.files import is_icon_path, output_filename
from .utils.image import load_source

log = logging.getLogger(__name__)


def _check_icon_input(input_path: Path, targets: Iterable[Codec]) -> None:
    if not is_icon_path(input_path):
        return
    if any(c is not Codec.ICO for c in targets):
        raise UnsupportedInputError(
            "Converting an ICO input to other formats is not supported (ICO is output-only). "
            "Use a PNG/JPEG/WebP source instead, or export the icon to PNG with another tool first."
        )


class ConversionService:
    """Runs conversion requests and owns the temp store they write into.

    The encoder factory and store are injected or built from config once;
    requests share nothing else, so one service can serve concurrent callers.
    """

    def __init__(
        self,
        config: AppConfig | None = None,
        *,
        factory: EncoderFactory | None = None,
        store: TempArtifactStore | None = None,
    ):
        self.config = config or AppConfig()
        self.factory = factory or EncoderFactory(self.config.convert)
        self.store = store or TempArtifactStore(self.config.temp)

    def convert(self, request: ConversionRequest) -> ConversionOutput:
        if isinstance(request, TargetSizeRequest):
            return self.convert_to_target(request)
        if isinstance(request, FixedParameterRequest):
            return self.convert_fixed(request)
        raise TypeError(f"unsupported request type: {type(request).__name__}")

    def convert_fixed(self, request: FixedParameterRequest) -> ConversionOutput:
        codec = request.codec
        _check_icon_input(request.input_path, [codec])

        encoder = self.factory.get_encoder(codec)
        quality = None
        if codec.is_lossy:
            quality = clamp_quality(request.quality, self.config.convert.default_quality)

        source = load_source(request.input_path)
        attempt = EncodeAttempt(codec=codec, quality=quality, data=encoder.encode(source, quality))
        return self._persist(attempt)

    def convert_to_target(self, request: TargetSizeRequest) -> ConversionOutput:
        search = self.config.search
        _check_icon_input(request.input_path, candidate_codecs(request.policy, search))

        target = max(request.target_bytes, search.min_target_bytes)
        if target != request.target_bytes:
            log.debug("Raised target from %d to minimum %d bytes", request.target_bytes, target)

        encoders = resolve_encoders(request.policy, search, self.factory)
        source = load_source(request.input_path)
        winner = select_best(encoders, source, target, search)
        return self._persist(winner)

    def cleanup_temporaries(self, explicit_dirs: Iterable[str | os.PathLike[str]] | None = None) -> int:
        return self.store.cleanup(explicit_dirs)

    def _persist(self, attempt: EncodeAttempt) -> ConversionOutput:
        tmp_dir = self.store.allocate()
        try:
            out_path = self.store.write(tmp_dir, output_filename(attempt.codec), attempt.data)
        except BaseException:
            self.store.cleanup([tmp_dir])
            raise
        log.info("Wrote %s (%d bytes)", out_path, attempt.size)
        return ConversionOutput(
            output_path=out_path,
            codec=attempt.codec,
            quality=attempt.quality if attempt.codec.is_lossy else None,
            size_bytes=attempt.size,
        )


def export_output(service: ConversionService, output: ConversionOutput, destination: Path) -> Path:
    """Copy a produced file to its final destination and reclaim its temp dir."""

    destination = Path(destination).expanduser()
    destination.parent.mkdir(parents=True, exist_ok=True)
    shutil.copyfile(output.output_path, destination)
    service.cleanup_temporaries([output.temp_dir])
    return destination
