"""Catalog writes: adding entries, renaming them and linking synonyms.

Connections passed here must come from ``schema.connect`` / ``schema.init_db``
so the normalization triggers can call the registered SQL functions.
"""
import logging
import sqlite3

from plantmatch.data.normalize import join_synonyms, split_synonyms

logger = logging.getLogger(__name__)

PLANT_COLUMNS = (
    "id", "name", "normalized_name", "sv_name", "normalized_sv_name", "plant_type",
    "grupp", "serie", "has_synonyms", "has_synonyms_id", "normalized_synonyms",
    "synonym_to", "synonym_to_id", "user_submitted", "created_by", "source",
    "created_at", "last_edited",
)


def add_plant(
    conn: sqlite3.Connection,
    name: str,
    sv_name: str | None = None,
    plant_type: str = "",
    user_submitted: bool = False,
    created_by: int | None = None,
    source: str = "",
    commit: bool = True,
) -> int:
    """Insert a canonical catalog entry and return its id."""
    cur = conn.execute(
        "INSERT INTO plants (name, sv_name, plant_type, user_submitted, created_by, source) "
        "VALUES (?, ?, ?, ?, ?, ?)",
        (name, sv_name, plant_type or "", int(bool(user_submitted)), created_by, source or ""),
    )
    if commit:
        conn.commit()
    return cur.lastrowid


def get_plant(conn: sqlite3.Connection, plant_id: int) -> dict | None:
    row = conn.execute(
        f"SELECT {', '.join(PLANT_COLUMNS)} FROM plants WHERE id = ?", (plant_id,)
    ).fetchone()
    if row is None:
        return None
    return dict(zip(PLANT_COLUMNS, row))


def update_plant_names(
    conn: sqlite3.Connection,
    plant_id: int,
    name: str | None = None,
    sv_name: str | None = None,
) -> bool:
    """Change the scientific and/or common name of an entry.

    The normalized columns follow through the update trigger. Returns False
    when the id does not exist.
    """
    assignments = []
    params: list = []
    if name is not None:
        assignments.append("name = ?")
        params.append(name)
    if sv_name is not None:
        assignments.append("sv_name = ?")
        params.append(sv_name)
    if not assignments:
        return get_plant(conn, plant_id) is not None
    assignments.append("last_edited = CURRENT_TIMESTAMP")
    cur = conn.execute(
        f"UPDATE plants SET {', '.join(assignments)} WHERE id = ?", params + [plant_id]
    )
    conn.commit()
    return cur.rowcount > 0


def _synonym_pairs(plant: dict) -> list[tuple[str, str]]:
    names = split_synonyms(plant["has_synonyms"], keep_empty=True)
    ids = split_synonyms(plant["has_synonyms_id"], keep_empty=True)
    return [(n, ids[i] if i < len(ids) else "") for i, n in enumerate(names) if n]


def link_synonym(
    conn: sqlite3.Connection,
    synonym_id: int,
    canonical_id: int,
    commit: bool = True,
) -> None:
    """Turn entry ``synonym_id`` into a synonym of ``canonical_id``.

    The synonym record points at the canonical entry and stops being a match
    candidate. Its name is appended to the canonical entry's synonym list,
    together with any synonyms it carried itself; records that pointed at it
    are re-pointed at the canonical entry.

    Raises ValueError for unknown ids, self links, or a canonical id that is
    itself a synonym record.
    """
    if synonym_id == canonical_id:
        raise ValueError(f"Cannot link plant {synonym_id} to itself")
    synonym = get_plant(conn, synonym_id)
    canonical = get_plant(conn, canonical_id)
    if synonym is None:
        raise ValueError(f"Unknown plant id {synonym_id}")
    if canonical is None:
        raise ValueError(f"Unknown plant id {canonical_id}")
    if canonical["synonym_to_id"] is not None:
        raise ValueError(
            f"Plant {canonical_id} is a synonym of {canonical['synonym_to_id']}, not canonical"
        )

    pairs = _synonym_pairs(canonical)
    known_ids = {pid for _, pid in pairs if pid}
    incoming = [(synonym["name"] or "", str(synonym_id))] + _synonym_pairs(synonym)
    for syn_name, syn_id in incoming:
        if not syn_name or (syn_id and syn_id in known_ids):
            continue
        pairs.append((syn_name, syn_id))
        if syn_id:
            known_ids.add(syn_id)

    conn.execute(
        "UPDATE plants SET has_synonyms = ?, has_synonyms_id = ?, "
        "last_edited = CURRENT_TIMESTAMP WHERE id = ?",
        (join_synonyms(n for n, _ in pairs), join_synonyms(i for _, i in pairs), canonical_id),
    )
    conn.execute(
        "UPDATE plants SET synonym_to = ?, synonym_to_id = ? WHERE synonym_to_id = ?",
        (canonical["name"], canonical_id, synonym_id),
    )
    conn.execute(
        "UPDATE plants SET synonym_to = ?, synonym_to_id = ?, has_synonyms = '', "
        "has_synonyms_id = '', last_edited = CURRENT_TIMESTAMP WHERE id = ?",
        (canonical["name"], canonical_id, synonym_id),
    )
    if commit:
        conn.commit()
    logger.info("Linked plant %d (%s) as synonym of %d", synonym_id, synonym["name"], canonical_id)
