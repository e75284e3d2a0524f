"""Value types passed between the matching stages."""
from dataclasses import dataclass, field

TARGET_NAME = "name"
TARGET_COMMON_NAME = "common_name"
TARGET_SYNONYM = "synonym"
TARGET_NONE = "none"

SIGNAL_EXACT = "exact"
SIGNAL_PREFIX = "prefix"
SIGNAL_CONTAINS = "contains"
SIGNAL_WORD_ORDER = "word_order"
SIGNAL_COMPONENT = "component"
SIGNAL_EDIT_DISTANCE = "edit_distance"
SIGNAL_NONE = "none"


@dataclass(frozen=True)
class CatalogEntry:
    """Read-only projection of a canonical catalog row."""
    id: int
    name: str
    common_name: str | None = None
    plant_type: str | None = None
    synonym_names: tuple[str, ...] = ()
    synonym_ids: tuple[str, ...] = ()
    is_user_submitted: bool = False
    submitter_id: int | None = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "common_name": self.common_name,
            "plant_type": self.plant_type,
            "synonym_names": list(self.synonym_names),
            "synonym_ids": list(self.synonym_ids),
            "is_user_submitted": self.is_user_submitted,
            "submitter_id": self.submitter_id,
        }


@dataclass(frozen=True)
class MatchCandidate:
    entry: CatalogEntry
    db_score: float


@dataclass(frozen=True)
class MatchDetails:
    """Which comparison target and signal produced a similarity score."""
    target: str = TARGET_NONE
    signal: str = SIGNAL_NONE
    matched_value: str = ""
    query_length: int = 0
    target_length: int = 0
    matched_synonym_name: str | None = None
    matched_synonym_id: str | None = None
    component_score: float | None = None

    def to_dict(self) -> dict:
        return {
            "target": self.target,
            "signal": self.signal,
            "matched_value": self.matched_value,
            "query_length": self.query_length,
            "target_length": self.target_length,
            "matched_synonym_name": self.matched_synonym_name,
            "matched_synonym_id": self.matched_synonym_id,
            "component_score": (
                None if self.component_score is None else round(self.component_score, 4)
            ),
        }


@dataclass(frozen=True)
class ScoredMatch:
    entry: CatalogEntry
    similarity_score: float
    match_details: MatchDetails
    suggested_reason: str
    db_score: float = 0.0

    @property
    def is_strict_match(self) -> bool:
        return self.similarity_score >= 1.0

    def to_dict(self) -> dict:
        return {
            **self.entry.to_dict(),
            "similarity_score": round(self.similarity_score, 4),
            "db_score": self.db_score,
            "is_strict_match": self.is_strict_match,
            "suggested_reason": self.suggested_reason,
            "match_details": self.match_details.to_dict(),
        }


@dataclass
class TermResult:
    """Matches for one batch term. ``error`` is set when its lookup failed."""
    term: str
    matches: list[ScoredMatch] = field(default_factory=list)
    error: str | None = None

    @property
    def has_strict_match(self) -> bool:
        return any(m.is_strict_match for m in self.matches)

    def to_dict(self) -> dict:
        return {
            "term": self.term,
            "matches": [m.to_dict() for m in self.matches],
            "count": len(self.matches),
            "has_strict_match": self.has_strict_match,
            "error": self.error,
        }


@dataclass
class BatchResult:
    blocks: list[TermResult] = field(default_factory=list)
    completed: bool = True

    def __iter__(self):
        return iter(self.blocks)

    def __len__(self) -> int:
        return len(self.blocks)

    @property
    def terms(self) -> list[str]:
        return [b.term for b in self.blocks]

    def to_dict(self) -> dict:
        return {
            "results": [b.to_dict() for b in self.blocks],
            "count": len(self.blocks),
            "completed": self.completed,
        }
