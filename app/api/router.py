"""
RentMatch: Main API Router

Aggregates all sub-routers under a single prefix so that ``app.main``
can mount the entire API surface with one ``include_router`` call.
"""

from fastapi import APIRouter

from app.api import matching, preferences

router = APIRouter()

router.include_router(preferences.router, prefix="/preferences", tags=["Preferences"])
router.include_router(matching.router, prefix="/match", tags=["Matching"])
