"""Per-codec quality search.

Binary search over integer quality for the highest level whose encoded size
still fits the byte budget. Encoded size is assumed non-decreasing in quality
for a fixed codec and source.

The search stops after ``max_probes`` encodes even if the interval has not
collapsed. With a range of W levels and a cap of N probes, the returned
"under" quality is at most ceil(W / 2**N) levels below the true optimum; the
default 20..95 range (W=76) converges in 7 probes, so the cap only matters
for wide custom ranges or small caps.
"""

from __future__ import annotations

import logging

from PIL import Image

from .encoders.base import ImageEncoder
from .models import EncodeAttempt, SearchResult

log = logging.getLogger(__name__)


def search_quality(
    encoder: ImageEncoder,
    source: Image.Image,
    target_bytes: int,
    min_quality: int,
    max_quality: int,
    *,
    max_probes: int = 10,
) -> SearchResult:
    """Search one codec for the best quality under target_bytes.

    Codecs without a quality level are probed exactly once. Encoder errors
    propagate and abort the search. At least one of under/over is set on
    return.
    """

    if target_bytes <= 0:
        raise ValueError("target_bytes must be > 0")
    if min_quality > max_quality:
        raise ValueError(f"min_quality must be <= max_quality, got {min_quality}..{max_quality}")
    if max_probes < 1:
        raise ValueError("max_probes must be >= 1")

    codec = encoder.codec

    if not encoder.supports_quality:
        attempt = EncodeAttempt(codec=codec, quality=None, data=encoder.encode(source, None))
        fits = attempt.size <= target_bytes
        log.debug("probe %s size=%d %s", codec.value, attempt.size, "under" if fits else "over")
        return SearchResult(
            codec=codec,
            under=attempt if fits else None,
            over=None if fits else attempt,
            probes=1,
        )

    lo, hi = min_quality, max_quality
    under: EncodeAttempt | None = None
    over: EncodeAttempt | None = None
    probes = 0

    while probes < max_probes and lo <= hi:
        mid = (lo + hi) // 2
        attempt = EncodeAttempt(codec=codec, quality=mid, data=encoder.encode(source, mid))
        probes += 1

        if attempt.size <= target_bytes:
            log.debug("probe %s q=%d size=%d under", codec.value, mid, attempt.size)
            # lo only moves up, so a later under-probe has the higher quality.
            under = attempt
            lo = mid + 1
        else:
            log.debug("probe %s q=%d size=%d over", codec.value, mid, attempt.size)
            if over is None or attempt.size < over.size:
                over = attempt
            hi = mid - 1

    return SearchResult(codec=codec, under=under, over=over, probes=probes)
