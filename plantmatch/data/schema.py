"""Catalog database schema definition and initialization."""
import sqlite3
from pathlib import Path

from plantmatch.data.normalize import normalize_plant_name, normalize_synonym_list

DB_TABLES = [
    "plants",
    "data_sources",
]

SCHEMA_SQL = """
-- Plant catalog: canonical entries and the synonym records pointing at them
CREATE TABLE IF NOT EXISTS plants (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT,
    normalized_name TEXT NOT NULL DEFAULT '',
    sv_name TEXT,
    normalized_sv_name TEXT NOT NULL DEFAULT '',
    plant_type TEXT DEFAULT '',
    grupp TEXT DEFAULT '',
    serie TEXT DEFAULT '',
    has_synonyms TEXT DEFAULT '',
    has_synonyms_id TEXT DEFAULT '',
    normalized_synonyms TEXT NOT NULL DEFAULT '',
    synonym_to TEXT,
    synonym_to_id INTEGER REFERENCES plants(id),
    user_submitted INTEGER NOT NULL DEFAULT 0,
    created_by INTEGER,
    source TEXT DEFAULT '',
    created_at DATETIME DEFAULT CURRENT_TIMESTAMP,
    last_edited DATETIME
);

-- Data source provenance tracking
CREATE TABLE IF NOT EXISTS data_sources (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT UNIQUE NOT NULL,
    source_type TEXT DEFAULT '',
    url TEXT DEFAULT '',
    last_updated DATETIME,
    record_count INTEGER DEFAULT 0,
    notes TEXT DEFAULT ''
);

-- Normalized columns are derived from the raw ones and rebuilt whenever a
-- name, common name or synonym list changes.
CREATE TRIGGER IF NOT EXISTS plants_normalize_insert
AFTER INSERT ON plants
BEGIN
    UPDATE plants SET
        normalized_name = sanitize_plant_name(NEW.name),
        normalized_sv_name = sanitize_plant_name(NEW.sv_name),
        normalized_synonyms = sanitize_synonym_list(NEW.has_synonyms)
    WHERE id = NEW.id;
END;

CREATE TRIGGER IF NOT EXISTS plants_normalize_update
AFTER UPDATE OF name, sv_name, has_synonyms ON plants
BEGIN
    UPDATE plants SET
        normalized_name = sanitize_plant_name(NEW.name),
        normalized_sv_name = sanitize_plant_name(NEW.sv_name),
        normalized_synonyms = sanitize_synonym_list(NEW.has_synonyms)
    WHERE id = NEW.id;
END;

-- Indexes for performance
CREATE INDEX IF NOT EXISTS idx_plants_normalized_name ON plants(normalized_name);
CREATE INDEX IF NOT EXISTS idx_plants_normalized_sv_name ON plants(normalized_sv_name);
CREATE INDEX IF NOT EXISTS idx_plants_synonym_to_id ON plants(synonym_to_id);
"""


def register_functions(conn: sqlite3.Connection) -> None:
    """Expose the Python normalizer to SQL so index-time and query-time agree."""
    conn.create_function("sanitize_plant_name", 1, normalize_plant_name, deterministic=True)
    conn.create_function("sanitize_synonym_list", 1, normalize_synonym_list, deterministic=True)


def connect(db_path: str) -> sqlite3.Connection:
    """Open a writable connection with the normalization functions registered."""
    conn = sqlite3.connect(str(db_path))
    register_functions(conn)
    conn.execute("PRAGMA foreign_keys=ON")
    return conn


def init_db(db_path: str) -> sqlite3.Connection:
    """Initialize the database with the schema. Idempotent."""
    if db_path != ":memory:":
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    conn = connect(db_path)
    conn.execute("PRAGMA journal_mode=WAL")
    conn.executescript(SCHEMA_SQL)
    conn.commit()
    return conn
