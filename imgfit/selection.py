"""Cross-codec candidate selection for target-size requests.

Codecs do not share a quality scale, so byte size is the only signal compared
across them:

1. the smallest "under" result wins;
2. with no "under" result anywhere, the smallest "over" result wins;
3. ties go to the codec listed first in preference order.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Iterable, Sequence

from PIL import Image

from .codecs import Codec
from .config import SearchConfig
from .encoders import EncoderFactory
from .encoders.base import ImageEncoder
from .errors import EncodeError, EncoderUnavailableError
from .models import CodecPolicy, EncodeAttempt, SearchResult
from .search import search_quality

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class CodecOutcome:
    """Search result or encode failure for one candidate codec."""

    codec: Codec
    result: SearchResult | None = None
    error: EncodeError | None = None


def candidate_codecs(policy: CodecPolicy, search: SearchConfig) -> list[Codec]:
    if policy.keep is not None:
        return [policy.keep]
    return search.auto_candidates()


def resolve_encoders(policy: CodecPolicy, search: SearchConfig, factory: EncoderFactory) -> list[ImageEncoder]:
    """Instantiate encoders for the policy's candidates, in preference order.

    AutoSmallest skips codecs this environment cannot write; KeepCodec does not.
    """

    codecs = candidate_codecs(policy, search)
    if not policy.is_auto:
        return [factory.get_encoder(codecs[0])]

    encoders: list[ImageEncoder] = []
    for codec in codecs:
        if not factory.is_available(codec):
            log.warning("Skipping %s: no encoder available", codec.value)
            continue
        encoders.append(factory.get_encoder(codec))
    if not encoders:
        raise EncoderUnavailableError(
            codecs[0], "none of the candidate codecs can be encoded here: " + ", ".join(c.value for c in codecs)
        )
    return encoders


def pick_winner(results: Iterable[SearchResult]) -> EncodeAttempt | None:
    """Aggregate per-codec results; results must be in preference order."""

    best_under: EncodeAttempt | None = None
    best_over: EncodeAttempt | None = None
    for r in results:
        if r.under is not None and (best_under is None or r.under.size < best_under.size):
            best_under = r.under
        if r.over is not None and (best_over is None or r.over.size < best_over.size):
            best_over = r.over
    return best_under if best_under is not None else best_over


def _search_one(
    encoder: ImageEncoder, source: Image.Image, target_bytes: int, search: SearchConfig
) -> CodecOutcome:
    lo, hi = search.quality_range(encoder.codec)
    try:
        result = search_quality(encoder, source, target_bytes, lo, hi, max_probes=search.max_probes)
    except EncodeError as e:
        log.warning("Candidate %s failed: %s", encoder.codec.value, e)
        return CodecOutcome(codec=encoder.codec, error=e)
    return CodecOutcome(codec=encoder.codec, result=result)


def run_candidates(
    encoders: Sequence[ImageEncoder],
    source: Image.Image,
    target_bytes: int,
    search: SearchConfig,
) -> list[CodecOutcome]:
    """Search every candidate; outcomes come back in the encoders' order.

    Pillow keeps save parameters on the image object, so concurrent searches
    each get their own copy of source.
    """

    if search.parallel_codecs and len(encoders) > 1:
        with ThreadPoolExecutor(max_workers=len(encoders)) as ex:
            futs = [ex.submit(_search_one, enc, source.copy(), target_bytes, search) for enc in encoders]
            # Waits for every codec before aggregation.
            return [f.result() for f in futs]
    return [_search_one(enc, source, target_bytes, search) for enc in encoders]


def select_best(
    encoders: Sequence[ImageEncoder],
    source: Image.Image,
    target_bytes: int,
    search: SearchConfig,
) -> EncodeAttempt:
    """Run the candidates and return the winning attempt.

    Raises EncodeError only when no codec produced any usable attempt.
    """

    outcomes = run_candidates(encoders, source, target_bytes, search)
    winner = pick_winner(o.result for o in outcomes if o.result is not None)
    if winner is None:
        details = "; ".join(f"{o.codec.value}: {o.error}" for o in outcomes if o.error is not None)
        raise EncodeError("image compression failed: no candidate produced output" + (f" ({details})" if details else ""))

    where = "under" if winner.size <= target_bytes else "over"
    log.info(
        "Selected %s q=%s size=%d (%s budget %d)",
        winner.codec.value,
        winner.quality,
        winner.size,
        where,
        target_bytes,
    )
    return winner
