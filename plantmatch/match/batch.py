"""Batch matching for bulk imports.

Each term runs the full retrieve/score/rank pipeline on its own. Terms are
spread over a small thread pool; results come back as one block per
non-blank term, in input order.
"""
import logging
import threading
from concurrent.futures import ThreadPoolExecutor

from plantmatch.match.exceptions import StoreUnavailable
from plantmatch.match.models import BatchResult, TermResult

logger = logging.getLogger(__name__)

DEFAULT_BATCH_WORKERS = 4


def _is_blank(term) -> bool:
    return term is None or not str(term).strip()


def _run_term(match_fn, term: str, per_term_limit: int, stop: threading.Event | None):
    if stop is not None and stop.is_set():
        return None
    try:
        matches = match_fn(term, per_term_limit)
    except StoreUnavailable as e:
        logger.warning("Lookup failed for %r: %s", term, e)
        return TermResult(term=term, matches=[], error=str(e))
    return TermResult(term=term, matches=matches)


def match_batch(
    match_fn,
    terms: list[str],
    per_term_limit: int,
    max_workers: int = DEFAULT_BATCH_WORKERS,
    stop: threading.Event | None = None,
) -> BatchResult:
    """Run ``match_fn(term, per_term_limit)`` for every non-blank term.

    Blank and whitespace-only terms are skipped and produce no block. A
    StoreUnavailable on one term is recorded on that term's block and the
    batch continues. Setting ``stop`` ends the batch between terms: blocks
    finished so far are kept (a prefix of the input order), pending terms are
    cancelled and ``completed`` is False.
    """
    work = [t for t in terms if not _is_blank(t)]
    result = BatchResult()
    if not work:
        return result

    workers = max(1, min(max_workers, len(work)))
    with ThreadPoolExecutor(max_workers=workers) as pool:
        futures = [pool.submit(_run_term, match_fn, t, per_term_limit, stop) for t in work]
        for i, future in enumerate(futures):
            if stop is not None and stop.is_set():
                for pending in futures[i:]:
                    pending.cancel()
            block = None if future.cancelled() else future.result()
            if block is None:
                result.completed = False
                logger.info("Batch stopped after %d/%d terms", len(result.blocks), len(work))
                break
            result.blocks.append(block)
            if (i + 1) % 500 == 0:
                logger.info("Progress: %d/%d terms matched", i + 1, len(work))

    return result
