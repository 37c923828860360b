"""Command line interface for imgfit."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from .codecs import Codec
from .config import load_config
from .models import CodecPolicy, ConversionOutput, FixedParameterRequest, TargetSizeRequest
from .pipeline import BatchArgs, run_batch
from .service import ConversionService, export_output

CODEC_CHOICES = [c.value for c in Codec] + ["jpg"]


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="imgfit",
        description=(
            "Convert images between formats, or search encoder quality across\n"
            "codecs so the output fits a target size."
        ),
    )
    p.add_argument("--config", type=Path, default=None, help="Optional JSON/YAML config override")
    p.add_argument("--verbose", action="store_true", help="Enable verbose logging")
    sub = p.add_subparsers(dest="command", required=True)

    c = sub.add_parser("convert", help="Encode at an explicit format and quality")
    c.add_argument("input", type=Path, help="Source image")
    c.add_argument("--format", required=True, choices=CODEC_CHOICES, help="Output format")
    c.add_argument("--quality", type=float, default=None, help="Quality 1..100 (lossy formats only)")
    c.add_argument("--output", type=Path, default=None, help="Copy the result here and drop the temp dir")

    f = sub.add_parser("fit", help="Fit an image under a target size")
    f.add_argument("input", type=Path, help="Source image")
    f.add_argument("--target-kb", type=float, required=True, help="Size budget in KiB (minimum 10)")
    f.add_argument("--keep-format", choices=CODEC_CHOICES, default=None, help="Only try this format")
    f.add_argument("--output", type=Path, default=None, help="Copy the result here and drop the temp dir")

    b = sub.add_parser("batch", help="Convert every image in a directory")
    b.add_argument("src_dir", type=Path, help="Directory containing images")
    b.add_argument("dst_dir", type=Path, help="Output directory")
    mode = b.add_mutually_exclusive_group(required=True)
    mode.add_argument("--format", choices=CODEC_CHOICES, default=None, help="Fixed output format")
    mode.add_argument("--target-kb", type=float, default=None, help="Size budget in KiB per image")
    b.add_argument("--quality", type=float, default=None, help="Quality for --format (lossy formats only)")
    b.add_argument("--keep-format", choices=CODEC_CHOICES, default=None, help="With --target-kb, only try this format")
    b.add_argument("--recursive", action="store_true", help="Recurse into subdirectories")
    b.add_argument(
        "--mirror-subdirs",
        action="store_true",
        help="When --recursive, mirror source subdirectories under dst_dir",
    )
    b.add_argument("--jobs", type=int, default=0, help="Parallel worker threads (0=auto)")
    b.add_argument(
        "--manifest",
        type=Path,
        default=None,
        help="Path for JSONL manifest (default: dst_dir/conversion_manifest.jsonl)",
    )
    b.add_argument("--continue-on-error", action="store_true", help="Log failures and continue")
    b.add_argument("--overwrite", action="store_true", help="Overwrite existing outputs")

    k = sub.add_parser("cleanup", help="Remove temporary output directories")
    k.add_argument("dirs", nargs="*", type=Path, help="Specific directories (default: sweep the temp root)")
    return p


def _report(output: ConversionOutput, path: Path) -> None:
    quality = "-" if output.quality is None else str(output.quality)
    print(f"{path}\t{output.codec.value}\tq={quality}\t{output.size_bytes} bytes")


def main(argv: list[str] | None = None) -> int:
    argv = argv if argv is not None else sys.argv[1:]
    parser = _build_parser()
    ns = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if ns.verbose else logging.INFO,
        format="[%(levelname)s] %(message)s",
    )

    try:
        config = load_config(ns.config)

        if ns.command == "batch":
            args = BatchArgs(
                src_dir=ns.src_dir,
                dst_dir=ns.dst_dir,
                codec=Codec.parse(ns.format) if ns.format else None,
                quality=ns.quality,
                target_kb=ns.target_kb,
                keep_codec=Codec.parse(ns.keep_format) if ns.keep_format else None,
                recursive=ns.recursive,
                mirror_subdirs=bool(ns.mirror_subdirs),
                jobs=ns.jobs,
                manifest_path=ns.manifest,
                continue_on_error=bool(ns.continue_on_error),
                overwrite=bool(ns.overwrite),
            )
            print(run_batch(args, config))
            return 0

        service = ConversionService(config)

        if ns.command == "cleanup":
            count = service.cleanup_temporaries(ns.dirs or None)
            print(f"deleted {count}")
            return 0

        if ns.command == "convert":
            request = FixedParameterRequest(input_path=ns.input, codec=Codec.parse(ns.format), quality=ns.quality)
        else:
            policy = CodecPolicy.keep_codec(ns.keep_format) if ns.keep_format else CodecPolicy.auto_smallest()
            request = TargetSizeRequest.from_kib(ns.input, ns.target_kb, policy)

        output = service.convert(request)
        path = output.output_path
        if ns.output is not None:
            path = export_output(service, output, ns.output)
        _report(output, path)
        return 0
    except Exception as e:
        logging.getLogger(__name__).error(str(e))
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
