"""Batch conversion pipeline (file iteration, concurrent requests, manifest writing)."""

from __future__ import annotations

import json
import logging
import os
import shutil
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from .codecs import Codec
from .config import AppConfig
from .models import CodecPolicy, ConversionRequest, FixedParameterRequest, TargetSizeRequest
from .service import ConversionService
from .utils.files import DiscoveredFile, iter_image_files, plan_output_stems, with_extension

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class BatchArgs:
    src_dir: Path
    dst_dir: Path
    codec: Codec | None = None  # fixed-parameter mode
    quality: float | None = None
    target_kb: float | None = None  # target-size mode
    keep_codec: Codec | None = None
    recursive: bool = False
    mirror_subdirs: bool = False
    jobs: int = 0  # 0 => config, then auto
    manifest_path: Path | None = None
    continue_on_error: bool = False
    overwrite: bool = False

    def __post_init__(self) -> None:
        if (self.codec is None) == (self.target_kb is None):
            raise ValueError("exactly one of codec (fixed mode) or target_kb (target-size mode) is required")


@dataclass
class BatchItemResult:
    manifest: dict[str, Any]
    ok: bool


def _write_jsonl_line(fp, obj: dict[str, Any]) -> None:
    fp.write(json.dumps(obj, ensure_ascii=False) + "\n")


def _effective_jobs(requested: int, configured: int) -> int:
    for n in (requested, configured):
        if n and n > 0:
            return n
    return max(1, (os.cpu_count() or 4))


def _build_request(args: BatchArgs, input_path: Path) -> ConversionRequest:
    if args.target_kb is not None:
        policy = CodecPolicy.keep_codec(args.keep_codec) if args.keep_codec else CodecPolicy.auto_smallest()
        return TargetSizeRequest.from_kib(input_path, args.target_kb, policy)
    if args.codec is None:
        raise ValueError("fixed-parameter batch needs a codec")
    return FixedParameterRequest(input_path=input_path, codec=args.codec, quality=args.quality)


def run_batch(args: BatchArgs, config: AppConfig, service: ConversionService | None = None) -> Path:
    """Convert every image under src_dir into dst_dir.

    Returns the manifest path.
    """

    src = args.src_dir.expanduser().resolve()
    dst = args.dst_dir.expanduser().resolve()
    dst.mkdir(parents=True, exist_ok=True)

    manifest_path = args.manifest_path or (dst / "conversion_manifest.jsonl")

    files = iter_image_files(src, args.recursive)
    if not files:
        raise RuntimeError(f"No image files found in: {src}")

    stems = plan_output_stems(files, args.mirror_subdirs)

    service = service or ConversionService(config)
    jobs = _effective_jobs(args.jobs, config.jobs)

    log.info("Found %d image files", len(files))
    log.info("Available codecs: %s", ", ".join(c.value for c in service.factory.available_codecs))

    def work(item: DiscoveredFile) -> BatchItemResult:
        manifest: dict[str, Any] = {"input": str(item.input_path)}
        try:
            output = service.convert(_build_request(args, item.input_path))
        except Exception as e:
            manifest["error"] = str(e)
            return BatchItemResult(manifest=manifest, ok=False)

        try:
            out_path = dst / with_extension(stems[item.rel_path], output.codec)
            manifest.update(output.to_dict())
            manifest["output"] = str(out_path)
            if out_path.exists() and not args.overwrite:
                manifest["skipped_existing"] = True
            else:
                out_path.parent.mkdir(parents=True, exist_ok=True)
                shutil.copyfile(output.output_path, out_path)
        finally:
            # The temp copy is no longer needed once exported (or skipped).
            service.cleanup_temporaries([output.temp_dir])
        return BatchItemResult(manifest=manifest, ok=True)

    failures = 0
    with manifest_path.open("w", encoding="utf-8") as fp:
        with ThreadPoolExecutor(max_workers=jobs) as ex:
            futs = [ex.submit(work, f) for f in files]

            for fut in as_completed(futs):
                result = fut.result()
                _write_jsonl_line(fp, result.manifest)

                if not result.ok:
                    failures += 1
                    log.warning("Failed: %s: %s", result.manifest["input"], result.manifest["error"])
                    if not args.continue_on_error:
                        for f in futs:
                            f.cancel()
                        raise RuntimeError(result.manifest.get("error", "conversion failed"))

    if failures:
        log.warning("Completed with %d failures. See manifest: %s", failures, manifest_path)
    else:
        log.info("Completed successfully. Manifest: %s", manifest_path)

    return manifest_path
