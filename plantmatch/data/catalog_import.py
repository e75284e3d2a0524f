"""Import a plant catalog CSV into the plants table."""
import logging
import sqlite3

import pandas as pd

from plantmatch.data.catalog import add_plant, link_synonym
from plantmatch.data.normalize import normalize_plant_name

logger = logging.getLogger(__name__)


def _cell(row, column: str) -> str:
    value = row.get(column, "")
    if pd.isna(value):
        return ""
    return str(value).strip()


def _find_canonical_id(conn: sqlite3.Connection, normalized: str) -> int | None:
    row = conn.execute(
        "SELECT id FROM plants WHERE normalized_name = ? AND synonym_to_id IS NULL "
        "ORDER BY id LIMIT 1",
        (normalized,),
    ).fetchone()
    return row[0] if row else None


def import_catalog_csv(
    conn: sqlite3.Connection,
    csv_path: str,
    source: str = "csv",
    chunk_size: int = 5000,
) -> dict:
    """Import catalog rows from CSV, skipping names already in the catalog.

    Rows with a ``synonym_to`` value are inserted and linked as synonyms of
    the entry whose normalized name matches it. Targets that appear later in
    the file are resolved after all rows are read. Reads CSV in chunks for
    memory efficiency. Returns stats dict.
    """
    stats = {
        "rows_processed": 0,
        "rows_skipped": 0,
        "duplicates_skipped": 0,
        "plants_inserted": 0,
        "synonyms_linked": 0,
        "synonyms_unresolved": 0,
    }

    conn.execute(
        "INSERT OR IGNORE INTO data_sources (name, source_type, url) VALUES (?, ?, ?)",
        (source, "csv", str(csv_path)),
    )

    pending: list[tuple[int, str]] = []  # (plant id, synonym_to text)
    chunks = pd.read_csv(csv_path, chunksize=chunk_size, dtype=str, keep_default_na=False)
    for chunk in chunks:
        for _, row in chunk.iterrows():
            stats["rows_processed"] += 1
            name = _cell(row, "name")
            normalized = normalize_plant_name(name)
            if not normalized:
                stats["rows_skipped"] += 1
                continue
            if conn.execute(
                "SELECT 1 FROM plants WHERE normalized_name = ? LIMIT 1", (normalized,)
            ).fetchone():
                stats["duplicates_skipped"] += 1
                continue

            plant_id = add_plant(
                conn,
                name,
                sv_name=_cell(row, "sv_name") or None,
                plant_type=_cell(row, "plant_type"),
                source=source,
                commit=False,
            )
            stats["plants_inserted"] += 1
            synonym_to = _cell(row, "synonym_to")
            if synonym_to:
                pending.append((plant_id, synonym_to))

        conn.commit()
        logger.info("Imported %d rows from %s", stats["rows_processed"], csv_path)

    for plant_id, synonym_to in pending:
        canonical_id = _find_canonical_id(conn, normalize_plant_name(synonym_to))
        if canonical_id is None or canonical_id == plant_id:
            logger.warning("No canonical entry %r for plant %d", synonym_to, plant_id)
            stats["synonyms_unresolved"] += 1
            continue
        link_synonym(conn, plant_id, canonical_id, commit=False)
        stats["synonyms_linked"] += 1

    conn.execute(
        "UPDATE data_sources SET record_count = record_count + ?, "
        "last_updated = CURRENT_TIMESTAMP WHERE name = ?",
        (stats["plants_inserted"], source),
    )
    conn.commit()
    return stats
