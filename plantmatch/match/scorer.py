"""Similarity scoring of retrieved candidates against the query term.

Every candidate is compared on its scientific name, its common name and each
of its synonyms. For one comparison several signals are computed and the
strongest one decides; they are never summed, so no score leaves [0, 1].

    exact           normalized strings equal                 1.0
    prefix          one is a prefix of the other             0.75 + 0.2 * short/long
    contains        one contains the other                   0.6 + 0.25 * short/long
    word_order      token-sorted ratio (multi-word only)     0.95 * ratio
    edit_distance   1 - levenshtein / len(longer)            0 .. <1

Scientific names (the entry name and its synonyms) also get a name-part
signal from the parsed raw names, see component_score. It is mixed in with
max like the others and stays below 1.0.

The best comparison target wins. Equal scores prefer the scientific name,
then the common name, then synonyms in list order.
"""
from rapidfuzz import fuzz
from rapidfuzz.distance import Levenshtein

from plantmatch.data.normalize import PlantNameParts, normalize_plant_name, parse_plant_name
from plantmatch.match.models import (
    SIGNAL_COMPONENT,
    SIGNAL_CONTAINS,
    SIGNAL_EDIT_DISTANCE,
    SIGNAL_EXACT,
    SIGNAL_NONE,
    SIGNAL_PREFIX,
    SIGNAL_WORD_ORDER,
    TARGET_COMMON_NAME,
    TARGET_NAME,
    TARGET_NONE,
    TARGET_SYNONYM,
    CatalogEntry,
    MatchCandidate,
    MatchDetails,
    ScoredMatch,
)

PREFIX_BASE = 0.75
PREFIX_SPAN = 0.2
CONTAINS_BASE = 0.6
CONTAINS_SPAN = 0.25
WORD_ORDER_WEIGHT = 0.95
COMPONENT_WEIGHT = 0.85

_SIGNAL_RANK = {
    SIGNAL_EXACT: 0,
    SIGNAL_PREFIX: 1,
    SIGNAL_CONTAINS: 2,
    SIGNAL_WORD_ORDER: 3,
    SIGNAL_COMPONENT: 4,
    SIGNAL_EDIT_DISTANCE: 5,
    SIGNAL_NONE: 6,
}
_TARGET_RANK = {TARGET_NAME: 0, TARGET_COMMON_NAME: 1, TARGET_SYNONYM: 2, TARGET_NONE: 3}

_SIGNAL_LABELS = {
    SIGNAL_EXACT: "exact match",
    SIGNAL_PREFIX: "prefix match",
    SIGNAL_CONTAINS: "partial match",
    SIGNAL_WORD_ORDER: "reordered match",
    SIGNAL_COMPONENT: "name-part match",
    SIGNAL_EDIT_DISTANCE: "near match",
}
_TARGET_LABELS = {
    TARGET_NAME: "on scientific name",
    TARGET_COMMON_NAME: "on common name",
    TARGET_SYNONYM: "via synonym",
}


def signal_scores(query: str, target: str) -> dict[str, float]:
    """Score every applicable signal for two normalized strings."""
    if not query or not target:
        return {}
    if query == target:
        return {SIGNAL_EXACT: 1.0}

    short, long = (query, target) if len(query) <= len(target) else (target, query)
    coverage = len(short) / len(long)
    scores = {SIGNAL_EDIT_DISTANCE: Levenshtein.normalized_similarity(query, target)}
    if long.startswith(short):
        scores[SIGNAL_PREFIX] = PREFIX_BASE + PREFIX_SPAN * coverage
    elif short in long:
        scores[SIGNAL_CONTAINS] = CONTAINS_BASE + CONTAINS_SPAN * coverage
    if " " in query or " " in target:
        scores[SIGNAL_WORD_ORDER] = fuzz.token_sort_ratio(query, target) / 100.0 * WORD_ORDER_WEIGHT
    return scores


def component_score(query: PlantNameParts, target: PlantNameParts) -> float | None:
    """Compare two parsed names part by part.

    The genus similarity scales the best epithet comparison. When both names
    carry a cultivar or trade name, those decide, compared across kinds so
    that a quoted cultivar on one side matches a trade name on the other.
    Otherwise the species are compared. Returns None when either genus is
    missing or there is no epithet pair to compare.
    """
    if not query.genus or not target.genus:
        return None
    query_names = [v for v in (query.cultivar, query.trade_name) if v]
    target_names = [v for v in (target.cultivar, target.trade_name) if v]
    if query_names and target_names:
        epithet = max(
            Levenshtein.normalized_similarity(q, t) for q in query_names for t in target_names
        )
    elif query.species and target.species:
        epithet = Levenshtein.normalized_similarity(query.species, target.species)
    else:
        return None
    genus = Levenshtein.normalized_similarity(query.genus, target.genus)
    return COMPONENT_WEIGHT * genus * epithet


def best_signal(query: str, target: str) -> tuple[str, float]:
    scores = signal_scores(query, target)
    if not scores:
        return SIGNAL_NONE, 0.0
    return min(scores.items(), key=lambda kv: (-kv[1], _SIGNAL_RANK[kv[0]]))


def suggested_reason(target: str, signal: str) -> str:
    if target == TARGET_NONE or signal == SIGNAL_NONE:
        return "no comparable name"
    if target == TARGET_SYNONYM and signal == SIGNAL_EXACT:
        return "matched via synonym"
    return f"{_SIGNAL_LABELS[signal]} {_TARGET_LABELS[target]}"


def _comparison_targets(entry: CatalogEntry):
    yield TARGET_NAME, entry.name, None
    if entry.common_name:
        yield TARGET_COMMON_NAME, entry.common_name, None
    for i, synonym in enumerate(entry.synonym_names):
        yield TARGET_SYNONYM, synonym, i


def _score_normalized(
    query: str, query_parts: PlantNameParts, entry: CatalogEntry, db_score: float
) -> ScoredMatch:
    best = None  # (rank_key, details, score)
    for target, raw_value, synonym_index in _comparison_targets(entry):
        value = normalize_plant_name(raw_value)
        signal, score = best_signal(query, value)
        parts_score = None
        if target != TARGET_COMMON_NAME and value:
            parts_score = component_score(query_parts, parse_plant_name(raw_value))
            if parts_score is not None and parts_score > score:
                signal, score = SIGNAL_COMPONENT, parts_score
        if signal == SIGNAL_NONE:
            continue
        rank_key = (-score, _TARGET_RANK[target], _SIGNAL_RANK[signal])
        if best is not None and rank_key >= best[0]:
            continue
        synonym_id = None
        if synonym_index is not None and synonym_index < len(entry.synonym_ids):
            synonym_id = entry.synonym_ids[synonym_index] or None
        details = MatchDetails(
            target=target,
            signal=signal,
            matched_value=raw_value,
            query_length=len(query),
            target_length=len(value),
            matched_synonym_name=raw_value if synonym_index is not None else None,
            matched_synonym_id=synonym_id,
            component_score=parts_score,
        )
        best = (rank_key, details, score)

    if best is None:
        details = MatchDetails(query_length=len(query))
        return ScoredMatch(
            entry=entry,
            similarity_score=0.0,
            match_details=details,
            suggested_reason=suggested_reason(TARGET_NONE, SIGNAL_NONE),
            db_score=db_score,
        )

    _, details, score = best
    return ScoredMatch(
        entry=entry,
        similarity_score=min(1.0, max(0.0, float(score))),
        match_details=details,
        suggested_reason=suggested_reason(details.target, details.signal),
        db_score=db_score,
    )


def score_candidate(term: str, candidate: CatalogEntry | MatchCandidate) -> ScoredMatch:
    """Score one candidate (a CatalogEntry or a MatchCandidate) against ``term``."""
    if isinstance(candidate, MatchCandidate):
        entry, db_score = candidate.entry, candidate.db_score
    else:
        entry, db_score = candidate, 0.0
    return _score_normalized(normalize_plant_name(term), parse_plant_name(term), entry, db_score)


def score_candidates(term: str, candidates: list[MatchCandidate]) -> list[ScoredMatch]:
    """Score a whole candidate set, normalizing and parsing the term once."""
    query = normalize_plant_name(term)
    query_parts = parse_plant_name(term)
    return [_score_normalized(query, query_parts, c.entry, c.db_score) for c in candidates]
