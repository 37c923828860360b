"""imgfit

Image conversion with a target-size optimizer: encode an image at an explicit
codec/quality, or search encoder quality across candidate codecs so the output
fits a byte budget. Results land in per-operation temporary directories that
can later be reclaimed safely.

Primary entrypoints:
- imgfit.service.ConversionService
- python -m imgfit.cli
- console script: imgfit
"""

from __future__ import annotations

__all__ = ["__version__"]

__version__ = "0.1.0"
