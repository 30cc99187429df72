"""
RentMatch: Preferences API

Endpoints for reading and saving a tenant's rental preferences, and for the
completeness badge shown on the dashboard.
"""

from __future__ import annotations

import uuid

import structlog
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.models.preferences import Preferences
from app.models.user import User
from app.schemas.preferences import (
    CompletenessResponse,
    PreferenceRecord,
    PreferencesResponse,
)
from app.services.completeness_service import CompletenessService

logger = structlog.get_logger("rentmatch.api.preferences")

router = APIRouter()


def get_completeness_service() -> CompletenessService:
    return CompletenessService()


async def _load_preferences(user_id: uuid.UUID, db: AsyncSession) -> Preferences | None:
    stmt = select(Preferences).where(Preferences.user_id == user_id)
    result = await db.execute(stmt)
    return result.scalar_one_or_none()


# ──────────────────────────────────────────────────────────────────────────────
# GET /{user_id}: Stored preferences
# ──────────────────────────────────────────────────────────────────────────────

@router.get(
    "/{user_id}",
    response_model=PreferencesResponse,
    summary="Get a tenant's preferences",
)
async def get_preferences(
    user_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
) -> Preferences:
    log = logger.bind(user_id=str(user_id))
    log.info("get_preferences")

    prefs = await _load_preferences(user_id, db)
    if prefs is None:
        log.info("get_preferences_not_found")
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No preferences saved for user {user_id}.",
        )
    return prefs


# ──────────────────────────────────────────────────────────────────────────────
# PUT /{user_id}: Create or update preferences
# ──────────────────────────────────────────────────────────────────────────────

@router.put(
    "/{user_id}",
    response_model=PreferencesResponse,
    summary="Create or update a tenant's preferences",
)
async def save_preferences(
    user_id: uuid.UUID,
    payload: PreferenceRecord,
    db: AsyncSession = Depends(get_db),
) -> Preferences:
    """Upsert the preference record.

    Only fields present in the request body are written, so the preferences
    wizard can save one step at a time.
    """
    log = logger.bind(user_id=str(user_id))
    log.info("save_preferences_start")

    user_result = await db.execute(select(User).where(User.id == user_id))
    if user_result.scalar_one_or_none() is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"User {user_id} not found.",
        )

    prefs = await _load_preferences(user_id, db)
    created = prefs is None
    if created:
        prefs = Preferences(user_id=user_id)
        db.add(prefs)

    update_data = payload.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        setattr(prefs, field, value)

    await db.flush()
    await db.refresh(prefs)

    log.info(
        "save_preferences_complete",
        created=created,
        updated_fields=list(update_data.keys()),
    )
    return prefs


# ──────────────────────────────────────────────────────────────────────────────
# GET /{user_id}/completeness: Completeness badge
# ──────────────────────────────────────────────────────────────────────────────

@router.get(
    "/{user_id}/completeness",
    response_model=CompletenessResponse,
    summary="Preference completeness percentage and matching gate",
)
async def get_completeness(
    user_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    service: CompletenessService = Depends(get_completeness_service),
) -> CompletenessResponse:
    """A tenant with no saved preferences scores 0 and is not complete."""
    prefs = await _load_preferences(user_id, db)
    completeness = service.score(prefs)
    logger.info(
        "get_completeness",
        user_id=str(user_id),
        percentage=completeness["percentage"],
        is_complete=completeness["is_complete"],
    )
    return CompletenessResponse(**completeness)
