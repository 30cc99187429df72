"""
RentMatch: Matching API

Endpoints for a tenant's ranked property matches, high-scoring
recommendations, a single listing's score breakdown, and stateless scoring of
caller-supplied data.
"""

from __future__ import annotations

import uuid
from typing import Optional

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.schemas.match import (
    MatchDetailResponse,
    MatchListResponse,
    ScoreRequest,
    ScoreResponse,
    SortDirection,
    SortKey,
)
from app.services.match_cache import MatchCache
from app.services.matching_service import MatchingService

logger = structlog.get_logger("rentmatch.api.matching")

router = APIRouter()


# ── Dependencies ─────────────────────────────────────────────────────────────

def get_matching_service() -> MatchingService:
    return MatchingService()


def get_match_cache() -> MatchCache:
    return MatchCache()


# ──────────────────────────────────────────────────────────────────────────────
# POST /score: Stateless scoring
# ──────────────────────────────────────────────────────────────────────────────

@router.post(
    "/score",
    response_model=ScoreResponse,
    summary="Score and rank supplied listings against supplied preferences",
)
async def score_properties(
    payload: ScoreRequest,
    service: MatchingService = Depends(get_matching_service),
) -> ScoreResponse:
    """Run the matching pipeline on the request body alone (no database)."""
    logger.info(
        "score_properties",
        candidates=len(payload.properties),
        sort_by=payload.sort_by,
        direction=payload.direction,
    )
    try:
        outcome = service.match_properties(
            payload.preferences,
            payload.properties,
            sort_by=payload.sort_by,
            direction=payload.direction,
        )
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))

    return ScoreResponse.model_validate(outcome)


# ──────────────────────────────────────────────────────────────────────────────
# GET /{user_id}: Ranked matches
# ──────────────────────────────────────────────────────────────────────────────

@router.get(
    "/{user_id}",
    response_model=MatchListResponse,
    summary="Ranked property matches for a tenant",
)
async def list_matches(
    user_id: uuid.UUID,
    sort_by: SortKey = Query("score"),
    direction: SortDirection = Query("desc"),
    limit: int = Query(20, ge=1, le=100, description="Max matches to return"),
    min_score: int = Query(0, ge=0, le=100, description="Drop matches scoring below this"),
    search: Optional[str] = Query(None, max_length=200, description="Free-text filter on title and address"),
    db: AsyncSession = Depends(get_db),
    service: MatchingService = Depends(get_matching_service),
    cache: MatchCache = Depends(get_match_cache),
) -> MatchListResponse:
    """Score the available catalog against the tenant's preferences.

    Until all essential preferences are set the catalog is returned unscored
    (``scored = false``) so the client can prompt for the missing fields.
    """
    log = logger.bind(user_id=str(user_id))

    prefs = await service.load_preferences(user_id, db)
    key = cache.build_key(
        user_id,
        prefs.version if prefs is not None else None,
        sort_by=sort_by,
        direction=direction,
        limit=limit,
        min_score=min_score,
        search=search,
    )
    cached = await cache.get(key)
    if cached is not None:
        log.info("list_matches_cache_hit")
        return MatchListResponse.model_validate(cached)

    try:
        outcome = await service.get_matches_for(
            prefs,
            db,
            sort_by=sort_by,
            direction=direction,
            limit=limit,
            min_score=min_score,
            search=search,
        )
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))

    response = MatchListResponse.model_validate(
        {**outcome, "sort_by": sort_by, "direction": direction}
    )
    await cache.set(key, response.model_dump(mode="json", by_alias=True))

    log.info("list_matches_complete", total=response.total, scored=response.scored)
    return response


# ──────────────────────────────────────────────────────────────────────────────
# GET /{user_id}/recommendations: High-scoring matches only
# ──────────────────────────────────────────────────────────────────────────────

@router.get(
    "/{user_id}/recommendations",
    response_model=MatchListResponse,
    summary="Recommended properties for a tenant",
)
async def list_recommendations(
    user_id: uuid.UUID,
    limit: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    service: MatchingService = Depends(get_matching_service),
) -> MatchListResponse:
    logger.info("list_recommendations", user_id=str(user_id), limit=limit)

    outcome = await service.get_recommendations(user_id, db, limit=limit)
    return MatchListResponse.model_validate(
        {**outcome, "sort_by": "score", "direction": "desc"}
    )


# ──────────────────────────────────────────────────────────────────────────────
# GET /{user_id}/property/{property_id}: Single listing breakdown
# ──────────────────────────────────────────────────────────────────────────────

@router.get(
    "/{user_id}/property/{property_id}",
    response_model=MatchDetailResponse,
    summary="Category-by-category match breakdown for one listing",
)
async def get_property_match(
    user_id: uuid.UUID,
    property_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    service: MatchingService = Depends(get_matching_service),
) -> MatchDetailResponse:
    match = await service.get_property_match(user_id, property_id, db)
    if match is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Property {property_id} not found.",
        )
    return MatchDetailResponse.model_validate(match)
