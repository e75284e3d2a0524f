"""Matching configuration: defaults plus PLANTMATCH_* environment overrides."""
import logging
import os
from dataclasses import dataclass

logger = logging.getLogger(__name__)

DEFAULT_DB_PATH = "data/processed/plantmatch.db"


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "")
    if not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("Ignoring %s=%r (not an integer), using %d", name, raw, default)
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name, "")
    if not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning("Ignoring %s=%r (not a number), using %s", name, raw, default)
        return default


@dataclass
class MatchConfig:
    db_path: str = DEFAULT_DB_PATH
    default_limit: int = 10
    batch_limit: int = 25
    batch_workers: int = 4
    max_concurrent_reads: int = 4
    min_score: float = 0.0
    duplicate_threshold: float = 0.9

    @classmethod
    def from_env(cls) -> "MatchConfig":
        """Create from environment variables, falling back to the defaults."""
        return cls(
            db_path=os.environ.get("PLANTMATCH_DB_PATH", DEFAULT_DB_PATH),
            default_limit=_env_int("PLANTMATCH_DEFAULT_LIMIT", cls.default_limit),
            batch_limit=_env_int("PLANTMATCH_BATCH_LIMIT", cls.batch_limit),
            batch_workers=_env_int("PLANTMATCH_BATCH_WORKERS", cls.batch_workers),
            max_concurrent_reads=_env_int("PLANTMATCH_MAX_READS", cls.max_concurrent_reads),
            min_score=_env_float("PLANTMATCH_MIN_SCORE", cls.min_score),
            duplicate_threshold=_env_float(
                "PLANTMATCH_DUPLICATE_THRESHOLD", cls.duplicate_threshold
            ),
        )
