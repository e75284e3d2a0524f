"""Deduplicate, order and truncate scored matches."""
from plantmatch.match.models import ScoredMatch


def match_sort_key(match: ScoredMatch) -> tuple:
    """Score descending, then shorter names, then name, then id.

    Shorter names win ties because they are the more specific catalog entry
    ("Pinus cembra" before "Pinus cembra 'Stricta'"). The id makes the order
    total even if two entries share a name.
    """
    return (-match.similarity_score, len(match.entry.name), match.entry.name, match.entry.id)


def rank_matches(scored: list[ScoredMatch], limit: int) -> list[ScoredMatch]:
    """Keep the best-scored occurrence per entry id, sort, and cut to ``limit``."""
    if limit <= 0:
        return []
    best: dict[int, ScoredMatch] = {}
    for match in scored:
        current = best.get(match.entry.id)
        if current is None or match_sort_key(match) < match_sort_key(current):
            best[match.entry.id] = match
    return sorted(best.values(), key=match_sort_key)[:limit]
