"""Plant catalog deduplication using fuzzy string matching.

Uses union-find clustering with rapidfuzz to group canonical entries whose
normalized names are near-identical, then merges each cluster by keeping the
"richest" entry (most synonyms, curated before user-submitted) as canonical
and linking the others to it as synonyms.
"""
import logging
import re
import sqlite3

from rapidfuzz import fuzz, process

from plantmatch.data.catalog import link_synonym
from plantmatch.data.normalize import parse_plant_name, split_synonyms

logger = logging.getLogger(__name__)

_DIGITS_RE = re.compile(r"\d+")


def _find_root(parent: dict[int, int], node: int) -> int:
    """Find root of union-find tree with path compression."""
    while parent[node] != node:
        parent[node] = parent[parent[node]]
        node = parent[node]
    return node


def _union(parent: dict[int, int], rank: dict[int, int], a: int, b: int) -> None:
    """Union two sets by rank."""
    ra, rb = _find_root(parent, a), _find_root(parent, b)
    if ra == rb:
        return
    if rank[ra] < rank[rb]:
        ra, rb = rb, ra
    parent[rb] = ra
    if rank[ra] == rank[rb]:
        rank[ra] += 1


def _same_numbers(a: str, b: str) -> bool:
    # "Clematis 'Nr 1'" and "Clematis 'Nr 7'" are different plants
    return _DIGITS_RE.findall(a) == _DIGITS_RE.findall(b)


def find_duplicate_clusters(
    conn: sqlite3.Connection,
    threshold: int = 92,
    limit_per_query: int = 5,
) -> list[list[int]]:
    """Find clusters of duplicate canonical entries using fuzzy matching.

    Names are only compared within the same genus (first word of the parsed
    name), which keeps the comparison count manageable on large catalogs.
    Within a genus each normalized name is matched against the later ones
    using process.extract with the fuzz.ratio scorer.

    Args:
        conn: SQLite database connection.
        threshold: Minimum similarity score (0-100) to consider a match.
        limit_per_query: Max number of matches to return per name from
            process.extract.

    Returns:
        List of clusters, each a sorted list of 2 or more plant ids.
    """
    rows = conn.execute(
        "SELECT id, name, normalized_name FROM plants "
        "WHERE synonym_to_id IS NULL AND (synonym_to IS NULL OR trim(synonym_to) = '') "
        "AND normalized_name != '' ORDER BY id"
    ).fetchall()

    if len(rows) < 2:
        return []

    by_genus: dict[str, list[tuple[int, str]]] = {}
    for plant_id, name, normalized in rows:
        genus = parse_plant_name(name).genus or normalized.split(" ")[0]
        by_genus.setdefault(genus, []).append((plant_id, normalized))

    # Initialize union-find
    parent = {r[0]: r[0] for r in rows}
    rank = {r[0]: 0 for r in rows}

    for members in by_genus.values():
        for i, (plant_id, normalized) in enumerate(members):
            # Only later members, to avoid self-match and repeated pairs
            choices = {pid: norm for pid, norm in members[i + 1 :]}
            if not choices:
                continue

            matches = process.extract(
                normalized,
                choices,
                scorer=fuzz.ratio,
                score_cutoff=threshold,
                limit=limit_per_query,
            )

            for match_name, score, match_id in matches:
                if _same_numbers(normalized, match_name):
                    _union(parent, rank, plant_id, match_id)

    clusters: dict[int, list[int]] = {}
    for plant_id in parent:
        clusters.setdefault(_find_root(parent, plant_id), []).append(plant_id)

    return [sorted(c) for c in clusters.values() if len(c) >= 2]


def merge_plant_cluster(
    conn: sqlite3.Connection,
    cluster: list[int],
) -> int | None:
    """Merge a cluster of duplicate entries into one canonical entry.

    The entry with the most synonyms wins; ties go to curated entries over
    user-submitted ones, then to the lowest id. Every other member is linked
    to it as a synonym.

    Returns:
        The id of the canonical entry, or None for an empty cluster.
    """
    if not cluster:
        return None

    placeholders = ",".join("?" * len(cluster))
    rows = conn.execute(
        f"SELECT id, has_synonyms, user_submitted FROM plants WHERE id IN ({placeholders})",
        list(cluster),
    ).fetchall()
    if not rows:
        return None

    ranked = sorted(rows, key=lambda r: (-len(split_synonyms(r[1])), r[2] or 0, r[0]))
    canonical_id = ranked[0][0]

    for plant_id, _syns, _user in ranked[1:]:
        link_synonym(conn, plant_id, canonical_id, commit=False)

    conn.commit()
    logger.info("Merged %d entries into plant %d", len(ranked) - 1, canonical_id)
    return canonical_id


def run_deduplication(
    conn: sqlite3.Connection,
    threshold: int = 92,
) -> dict:
    """Orchestrate full deduplication: find clusters, merge each.

    Args:
        conn: Connection from ``schema.connect`` or ``schema.init_db``.
        threshold: Minimum similarity score for clustering.

    Returns:
        Stats dict with clusters_found and synonyms_linked.
    """
    clusters = find_duplicate_clusters(conn, threshold=threshold)

    linked = 0
    for cluster in clusters:
        merge_plant_cluster(conn, cluster)
        linked += len(cluster) - 1

    return {
        "clusters_found": len(clusters),
        "synonyms_linked": linked,
    }
