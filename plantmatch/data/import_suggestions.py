"""Bulk import review: suggest catalog matches for every row of an import file.

Reads the plant names of an import CSV, runs them through batch matching and
writes one suggestion row per (term, match) so a reviewer can confirm or
reject them.

Usage:
    python -m plantmatch.data.import_suggestions --db data/processed/plantmatch.db \
        --input rows.csv --output suggestions.csv
"""
import argparse
import logging

import pandas as pd

from plantmatch.config import MatchConfig
from plantmatch.match.matcher import PlantMatcher
from plantmatch.match.models import BatchResult

logger = logging.getLogger(__name__)

SUGGESTION_COLUMNS = [
    "term", "rank", "plant_id", "name", "common_name", "similarity_score",
    "is_strict_match", "suggested_reason", "matched_synonym_name", "error",
]


def load_import_terms(path: str, column: str = "name") -> list[str]:
    """Read the term column of an import CSV, in file order."""
    df = pd.read_csv(path, dtype=str, keep_default_na=False)
    if column not in df.columns:
        raise ValueError(f"Column {column!r} not found in {path}")
    return df[column].tolist()


def suggestions_frame(result: BatchResult) -> pd.DataFrame:
    """Flatten a batch result into one row per suggestion.

    Terms without any match still get a row (empty match fields) so nothing
    silently drops out of the review.
    """
    records = []
    for block in result:
        if not block.matches:
            records.append({
                "term": block.term, "rank": 0, "plant_id": None, "name": "",
                "common_name": "", "similarity_score": 0.0,
                "is_strict_match": False, "suggested_reason": "",
                "matched_synonym_name": "", "error": block.error or "",
            })
            continue
        for rank, m in enumerate(block.matches, start=1):
            records.append({
                "term": block.term,
                "rank": rank,
                "plant_id": m.entry.id,
                "name": m.entry.name,
                "common_name": m.entry.common_name or "",
                "similarity_score": round(m.similarity_score, 4),
                "is_strict_match": m.is_strict_match,
                "suggested_reason": m.suggested_reason,
                "matched_synonym_name": m.match_details.matched_synonym_name or "",
                "error": "",
            })
    frame = pd.DataFrame(records, columns=SUGGESTION_COLUMNS)
    frame["plant_id"] = frame["plant_id"].astype("Int64")
    return frame


def run_import_review(
    db_path: str,
    input_path: str,
    output_path: str | None = None,
    column: str = "name",
    per_term_limit: int | None = None,
) -> dict:
    """Match every term of ``input_path`` and optionally write the suggestions CSV.

    Returns stats dict.
    """
    terms = load_import_terms(input_path, column)
    config = MatchConfig.from_env()
    config.db_path = db_path

    with PlantMatcher.from_config(config) as matcher:
        result = matcher.match_batch(terms, per_term_limit=per_term_limit)

    frame = suggestions_frame(result)
    if output_path:
        frame.to_csv(output_path, index=False)
        logger.info("Wrote %d suggestions to %s", len(frame), output_path)

    return {
        "rows": len(terms),
        "terms_matched": len(result),
        "strict_matches": sum(1 for b in result if b.has_strict_match),
        "no_match": sum(1 for b in result if not b.matches and not b.error),
        "errors": sum(1 for b in result if b.error),
        "suggestions": int((frame["rank"] > 0).sum()) if len(frame) else 0,
    }


def main():
    """CLI entry point for the import review."""
    parser = argparse.ArgumentParser(
        description="Suggest catalog matches for the plant names in an import file"
    )
    parser.add_argument("--db", required=True, help="Path to SQLite catalog database")
    parser.add_argument("--input", required=True, help="Import CSV with plant names")
    parser.add_argument("--output", default=None, help="Where to write the suggestions CSV")
    parser.add_argument(
        "--column", default="name", help="CSV column holding the plant name (default: name)"
    )
    parser.add_argument(
        "--limit",
        type=int,
        default=None,
        help="Max suggestions per term (default: PLANTMATCH_BATCH_LIMIT or 25)",
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    stats = run_import_review(args.db, args.input, args.output, args.column, args.limit)
    print(f"\nImport review complete:")
    print(f"  Rows read:        {stats['rows']}")
    print(f"  Terms matched:    {stats['terms_matched']}")
    print(f"  Strict matches:   {stats['strict_matches']}")
    print(f"  Without a match:  {stats['no_match']}")
    print(f"  Lookup errors:    {stats['errors']}")
    print(f"  Suggestions:      {stats['suggestions']}")


if __name__ == "__main__":
    main()
