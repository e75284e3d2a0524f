"""Public matching entry point: retrieve, score, rank."""
import logging
import threading

from plantmatch.config import MatchConfig
from plantmatch.match import batch
from plantmatch.match.models import BatchResult, ScoredMatch
from plantmatch.match.ranker import rank_matches
from plantmatch.match.retriever import MAX_RETRIEVAL_LIMIT, retrieve_candidates
from plantmatch.match.scorer import score_candidates
from plantmatch.match.store import CatalogStore

logger = logging.getLogger(__name__)


def clamp_result_limit(limit: int) -> int:
    return max(1, min(MAX_RETRIEVAL_LIMIT, int(limit)))


class PlantMatcher:
    """Fuzzy plant-name matcher over a read-only catalog store.

    ``store`` is anything with ``fetch_candidates(normalized_term,
    overfetch_limit)``; CatalogStore is the SQLite implementation.
    """

    def __init__(self, store, config: MatchConfig | None = None):
        self._store = store
        self.config = config or MatchConfig()

    @classmethod
    def from_config(cls, config: MatchConfig | None = None) -> "PlantMatcher":
        config = config or MatchConfig.from_env()
        store = CatalogStore(config.db_path, max_concurrent_reads=config.max_concurrent_reads)
        return cls(store, config)

    @property
    def store(self):
        return self._store

    def match(
        self,
        term: str,
        limit: int | None = None,
        min_score: float | None = None,
    ) -> list[ScoredMatch]:
        """Return up to ``limit`` catalog entries plausibly naming ``term``.

        A blank term returns ``[]``. StoreUnavailable propagates.
        """
        limit = clamp_result_limit(limit if limit is not None else self.config.default_limit)
        min_score = self.config.min_score if min_score is None else min_score

        candidates = retrieve_candidates(self._store, term, limit)
        if not candidates:
            return []
        scored = score_candidates(term, candidates)
        if min_score > 0:
            scored = [m for m in scored if m.similarity_score >= min_score]
        ranked = rank_matches(scored, limit)
        logger.debug(
            "Matched %r: %d candidates, %d results", term, len(candidates), len(ranked)
        )
        return ranked

    def match_batch(
        self,
        terms: list[str],
        per_term_limit: int | None = None,
        stop: threading.Event | None = None,
    ) -> BatchResult:
        """Match every non-blank term; one block per term, in input order."""
        limit = clamp_result_limit(
            per_term_limit if per_term_limit is not None else self.config.batch_limit
        )
        return batch.match_batch(
            self.match,
            terms,
            limit,
            max_workers=self.config.batch_workers,
            stop=stop,
        )

    def find_duplicates(self, name: str, threshold: float | None = None) -> list[ScoredMatch]:
        """Existing canonical entries that ``name`` would duplicate.

        Used before adding a catalog entry: anything scoring at or above
        ``threshold`` (default ``config.duplicate_threshold``) is reported.
        """
        threshold = self.config.duplicate_threshold if threshold is None else threshold
        matches = self.match(name, self.config.default_limit)
        return [m for m in matches if m.similarity_score >= threshold]

    def close(self) -> None:
        close = getattr(self._store, "close", None)
        if close is not None:
            close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()
