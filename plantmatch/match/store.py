"""Read-only access to the plant catalog for candidate retrieval."""
import logging
import sqlite3
import threading
from pathlib import Path

from plantmatch.data.schema import register_functions
from plantmatch.match.exceptions import DatabaseNotFound, StoreUnavailable

logger = logging.getLogger(__name__)

CANDIDATE_COLUMNS = (
    "id", "name", "sv_name", "plant_type", "has_synonyms", "has_synonyms_id",
    "user_submitted", "created_by",
)

# Fallback rows only need a genus stem this long to be considered.
GENUS_STEM_LENGTH = 3
SHORT_TERM_LENGTH = 4
MIN_EXTRA_WORD_LENGTH = 4


def build_candidate_query(term: str, fetch_limit: int) -> tuple[str, dict]:
    """Build the candidate SELECT for an already-normalized, non-empty term.

    A row qualifies when its normalized name, common name or synonym list
    contains the term. Multi-word terms also admit names containing the first
    word, names starting with the first word's genus stem and names containing
    any later word of four or more characters. Terms of four characters or
    fewer admit names starting with the term.

    ``db_score`` is ordinal and only used to pre-sort and cap the result:
    exact name 1.0, name prefix 0.9, name contains 0.8, common name prefix
    0.75, common name contains 0.7, synonym contains 0.65, fallback 0.5-0.6
    graded by the share of term words present in the name.
    """
    words = list(dict.fromkeys(term.split(" ")))
    first_word = words[0]
    params: dict = {"term": term, "fetch_limit": fetch_limit}

    predicates = [
        "instr(normalized_name, :term) > 0",
        "instr(normalized_sv_name, :term) > 0",
        "instr(normalized_synonyms, :term) > 0",
    ]
    if len(words) > 1:
        params["first_word"] = first_word
        predicates.append("instr(normalized_name, :first_word) > 0")
        if len(first_word) >= GENUS_STEM_LENGTH:
            params["stem"] = first_word[:GENUS_STEM_LENGTH]
            predicates.append(f"substr(normalized_name, 1, {GENUS_STEM_LENGTH}) = :stem")
        extra = [w for w in words[1:] if len(w) >= MIN_EXTRA_WORD_LENGTH]
        for i, word in enumerate(extra):
            params[f"extra{i}"] = word
            predicates.append(f"instr(normalized_name, :extra{i}) > 0")
    if len(term) <= SHORT_TERM_LENGTH:
        predicates.append("substr(normalized_name, 1, length(:term)) = :term")

    hits = []
    for i, word in enumerate(words):
        params[f"word{i}"] = word
        hits.append(f"(instr(normalized_name, :word{i}) > 0)")
    fallback_score = f"0.5 + 0.1 * ({' + '.join(hits)}) / {len(words)}.0"

    sql = f"""
        SELECT {', '.join(CANDIDATE_COLUMNS)},
            CASE
                WHEN normalized_name = :term THEN 1.0
                WHEN substr(normalized_name, 1, length(:term)) = :term THEN 0.9
                WHEN instr(normalized_name, :term) > 0 THEN 0.8
                WHEN substr(normalized_sv_name, 1, length(:term)) = :term THEN 0.75
                WHEN instr(normalized_sv_name, :term) > 0 THEN 0.7
                WHEN instr(normalized_synonyms, :term) > 0 THEN 0.65
                ELSE {fallback_score}
            END AS db_score
        FROM plants
        WHERE synonym_to_id IS NULL
          AND (synonym_to IS NULL OR trim(synonym_to) = '')
          AND ({' OR '.join(predicates)})
        ORDER BY db_score DESC, length(name) ASC, name ASC, id ASC
        LIMIT :fetch_limit
    """
    return sql, params


class CatalogStore:
    """Read-only catalog store over a small pool of SQLite connections.

    SQLite in WAL mode supports concurrent readers. The number of reads in
    flight at once is capped by ``max_concurrent_reads`` so a large batch
    import cannot flood the database. A read checks a connection out of the
    pool while it holds a read slot, so the pool never grows past
    ``max_concurrent_reads`` connections however many threads call in.
    """

    def __init__(self, db_path: str, max_concurrent_reads: int = 4):
        self._path = Path(db_path)
        if not self._path.is_file():
            raise DatabaseNotFound(str(self._path))
        self._read_slots = threading.BoundedSemaphore(max(1, max_concurrent_reads))
        self._connections: list[sqlite3.Connection] = []
        self._idle: list[sqlite3.Connection] = []
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self._path

    @property
    def open_connections(self) -> int:
        with self._lock:
            return len(self._connections)

    def _open(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._path), check_same_thread=False)
        conn.row_factory = sqlite3.Row
        register_functions(conn)
        conn.execute("PRAGMA query_only = ON")
        return conn

    def _checkout(self) -> sqlite3.Connection:
        with self._lock:
            if self._idle:
                return self._idle.pop()
        conn = self._open()
        with self._lock:
            self._connections.append(conn)
        return conn

    def _checkin(self, conn: sqlite3.Connection) -> None:
        with self._lock:
            # Connections closed by close() while checked out are not reused.
            if any(c is conn for c in self._connections):
                self._idle.append(conn)

    def _read(self, sql: str, params) -> list[sqlite3.Row]:
        with self._read_slots:
            try:
                conn = self._checkout()
            except sqlite3.Error as e:
                logger.error("Could not open catalog %s: %s", self._path, e)
                raise StoreUnavailable(str(self._path), str(e)) from e
            try:
                return conn.execute(sql, params).fetchall()
            except sqlite3.Error as e:
                logger.error("Catalog read failed on %s: %s", self._path, e)
                raise StoreUnavailable(str(self._path), str(e)) from e
            finally:
                self._checkin(conn)

    def fetch_candidates(self, normalized_term: str, overfetch_limit: int) -> list[dict]:
        """Return candidate rows (with ``db_score``) for a normalized term."""
        if not normalized_term:
            return []
        sql, params = build_candidate_query(normalized_term, overfetch_limit)
        rows = self._read(sql, params)
        logger.debug(
            "Fetched %d candidates for %r (limit %d)", len(rows), normalized_term, overfetch_limit
        )
        return [dict(row) for row in rows]

    def count_plants(self) -> int:
        rows = self._read(
            "SELECT COUNT(*) FROM plants WHERE synonym_to_id IS NULL "
            "AND (synonym_to IS NULL OR trim(synonym_to) = '')",
            (),
        )
        return rows[0][0]

    def health_check(self) -> dict:
        """Report whether the catalog can be read."""
        try:
            canonical = self.count_plants()
        except StoreUnavailable as e:
            return {"healthy": False, "catalog": str(e)}
        return {"healthy": True, "catalog": "ok", "canonical_plants": canonical}

    def close(self) -> None:
        with self._lock:
            for conn in self._connections:
                conn.close()
            self._connections.clear()
            self._idle.clear()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()
