"""Plantmatch API.

FastAPI app serving fuzzy plant-name lookups against the plant catalog.

Usage:
    uvicorn plantmatch.api.app:app --host 0.0.0.0 --port 8422

Endpoints:
    GET  /match          Ranked catalog matches for one free-text term
    POST /match/batch    Matches for a list of terms (bulk import review)
    POST /plants/check   Likely duplicates of a name about to be added
    GET  /health         Health check
"""
import logging
import threading
from typing import Optional

from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from plantmatch.config import MatchConfig
from plantmatch.data.normalize import normalize_plant_name
from plantmatch.match.exceptions import PlantMatchError
from plantmatch.match.matcher import PlantMatcher
from plantmatch.match.retriever import MAX_RETRIEVAL_LIMIT

logger = logging.getLogger(__name__)

DB_PATH: str | None = None  # overrides PLANTMATCH_DB_PATH when set

app = FastAPI(
    title="Plantmatch",
    description="Fuzzy matching of free-text plant names against a plant catalog",
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

# --- Globals (lazy-loaded) ---
_matcher: PlantMatcher | None = None
_matcher_lock = threading.Lock()


def _get_matcher() -> PlantMatcher:
    global _matcher
    if _matcher is None:
        with _matcher_lock:
            if _matcher is None:
                config = MatchConfig.from_env()
                if DB_PATH:
                    config.db_path = DB_PATH
                _matcher = PlantMatcher.from_config(config)
                logger.info("Opened plant catalog at %s", config.db_path)
    return _matcher


# --- Pydantic models ---

class BatchRequest(BaseModel):
    """Request body for batch matching."""
    terms: list[str]
    per_term_limit: Optional[int] = Field(None, ge=1, le=MAX_RETRIEVAL_LIMIT)


class DuplicateCheckRequest(BaseModel):
    """Request body for the pre-insert duplicate check."""
    name: str = Field(..., min_length=1)
    threshold: Optional[float] = Field(None, ge=0.0, le=1.0)


@app.get("/health")
def health_check():
    """Health check endpoint."""
    try:
        status = _get_matcher().store.health_check()
    except PlantMatchError as e:
        raise HTTPException(status_code=503, detail=str(e))
    if not status["healthy"]:
        raise HTTPException(status_code=503, detail=status["catalog"])
    return {"status": "healthy", "canonical_plants": status["canonical_plants"]}


@app.get("/match")
def match_term(
    q: str = Query("", description="Free-text plant name"),
    limit: int = Query(10, ge=1, le=MAX_RETRIEVAL_LIMIT, description="Max results"),
    min_score: float = Query(0.0, ge=0.0, le=1.0, description="Minimum similarity"),
):
    """Ranked catalog matches for a single term."""
    try:
        matches = _get_matcher().match(q, limit=limit, min_score=min_score)
    except PlantMatchError as e:
        raise HTTPException(status_code=503, detail=str(e))
    return {
        "query": q,
        "normalized": normalize_plant_name(q),
        "matches": [m.to_dict() for m in matches],
        "count": len(matches),
        "has_strict_match": any(m.is_strict_match for m in matches),
    }


@app.post("/match/batch")
def match_batch(request: BatchRequest):
    """Match many terms at once; one result block per non-blank term."""
    try:
        result = _get_matcher().match_batch(request.terms, per_term_limit=request.per_term_limit)
    except PlantMatchError as e:
        raise HTTPException(status_code=503, detail=str(e))
    return result.to_dict()


@app.post("/plants/check")
def check_duplicates(request: DuplicateCheckRequest):
    """Report existing entries that a new catalog name would duplicate."""
    try:
        duplicates = _get_matcher().find_duplicates(request.name, request.threshold)
    except PlantMatchError as e:
        raise HTTPException(status_code=503, detail=str(e))
    return {
        "name": request.name,
        "is_duplicate": bool(duplicates),
        "duplicates": [m.to_dict() for m in duplicates],
    }
