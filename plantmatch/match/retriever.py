"""Candidate retrieval: the cheap, deliberately loose first matching phase."""
import logging

from plantmatch.data.normalize import normalize_plant_name, split_synonyms
from plantmatch.match.exceptions import MalformedCandidate
from plantmatch.match.models import CatalogEntry, MatchCandidate

logger = logging.getLogger(__name__)

MIN_RETRIEVAL_LIMIT = 10
MAX_RETRIEVAL_LIMIT = 100
DEFAULT_RETRIEVAL_LIMIT = 50
OVERFETCH_FACTOR = 2


def clamp_retrieval_limit(limit: int | None) -> int:
    """Clamp a caller-supplied limit into [10, 100] to bound worst-case cost."""
    if limit is None:
        return DEFAULT_RETRIEVAL_LIMIT
    return max(MIN_RETRIEVAL_LIMIT, min(MAX_RETRIEVAL_LIMIT, int(limit)))


def _optional_int(value) -> int | None:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def row_to_entry(row: dict) -> CatalogEntry:
    """Convert a store row into a CatalogEntry.

    Synonym names and ids are stored as parallel pipe-separated lists; they
    are paired by position before blank names are dropped so the ids stay
    aligned. Raises MalformedCandidate when the id or name is missing.
    """
    row_id = row.get("id")
    if row_id is None:
        raise MalformedCandidate(None, "id")
    name = (row.get("name") or "").strip()
    if not name:
        raise MalformedCandidate(row_id, "name")

    synonym_names = split_synonyms(row.get("has_synonyms"), keep_empty=True)
    synonym_ids = split_synonyms(row.get("has_synonyms_id"), keep_empty=True)
    pairs = [
        (syn, synonym_ids[i] if i < len(synonym_ids) else "")
        for i, syn in enumerate(synonym_names)
        if syn
    ]
    common_name = (row.get("sv_name") or "").strip() or None

    return CatalogEntry(
        id=int(row_id),
        name=name,
        common_name=common_name,
        plant_type=row.get("plant_type") or None,
        synonym_names=tuple(p[0] for p in pairs),
        synonym_ids=tuple(p[1] for p in pairs),
        is_user_submitted=bool(row.get("user_submitted")),
        submitter_id=_optional_int(row.get("created_by")),
    )


def retrieve_candidates(store, term: str, limit: int | None = None) -> list[MatchCandidate]:
    """Fetch an over-sized, pre-sorted candidate set for ``term``.

    Returns at most ``2 * clamp_retrieval_limit(limit)`` candidates in store
    order (db_score desc, name length asc, name asc). An empty normalized term
    yields ``[]``. StoreUnavailable from the store propagates unchanged;
    malformed rows are skipped with a warning.
    """
    normalized = normalize_plant_name(term)
    if not normalized:
        return []

    fetch_limit = clamp_retrieval_limit(limit) * OVERFETCH_FACTOR
    rows = store.fetch_candidates(normalized, fetch_limit)

    candidates = []
    for row in rows:
        try:
            entry = row_to_entry(row)
        except MalformedCandidate as e:
            logger.warning("Skipping malformed candidate for %r: %s", normalized, e)
            continue
        candidates.append(MatchCandidate(entry=entry, db_score=float(row.get("db_score") or 0.0)))
    return candidates[:fetch_limit]
