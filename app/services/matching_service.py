"""
RentMatch: Matching orchestration.

Loads a tenant's preference record and the available property catalog, then
runs the matching pipeline:

  1. Completeness gate: score the preference record; matching only runs
     when all essential fields (postcode, price range, min bedrooms) are set.
  2. Scoring: every candidate listing gets a match score and reasons.
  3. Filtering: listings under ``min_score`` are dropped.
  4. Ranking: stable sort by score, price or date; cut to ``limit``.

When the gate fails the catalog is still returned, unscored, so the UI can
show listings next to a "complete your preferences" banner.  A tenant with no
preference record at all gets the newest listings with a single
"No preferences set" reason.  A positive ``min_score`` empties both of these
unscored lists.
"""

from __future__ import annotations

import uuid
from typing import Any

import structlog
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import get_settings
from app.models.preferences import Preferences
from app.models.property import Property
from app.services.completeness_service import CompletenessService
from app.services.ranking_service import RankingService
from app.services.scoring_service import MatchScoringService

logger = structlog.get_logger("rentmatch.matching_service")

NO_PREFERENCES_REASON = "No preferences set"


def _unscored(prop: Any, reasons: list[str]) -> dict:
    """A result with the same shape as a scored one, at score 0."""
    return {
        "property": prop,
        "match_score": 0,
        "raw_score": 0.0,
        "match_reasons": list(reasons),
        "categories": [],
        "summary": {"matched": 0, "partial": 0, "not_matched": 0, "skipped": 0},
        "is_perfect_match": False,
    }


class MatchingService:
    """Completeness-gated scoring and ranking over the property catalog.

    The three scorers are injected at construction so that the service can be
    tested with stubs and wired through FastAPI's dependency-injection graph.
    """

    def __init__(
        self,
        completeness_service: CompletenessService | None = None,
        scoring_service: MatchScoringService | None = None,
        ranking_service: RankingService | None = None,
    ) -> None:
        self.completeness_service = completeness_service or CompletenessService()
        self.scoring_service = scoring_service or MatchScoringService()
        self.ranking_service = ranking_service or RankingService()

        settings = get_settings()
        self.catalog_limit: int = settings.CATALOG_LIMIT
        self.default_limit: int = settings.DEFAULT_MATCH_LIMIT
        self.recommendation_min_score: int = settings.RECOMMENDATION_MIN_SCORE

    # ── Pure pipeline ─────────────────────────────────────────────────────

    def match_properties(
        self,
        prefs: Any,
        properties: list[Any],
        sort_by: str = "score",
        direction: str = "desc",
        min_score: float = 0,
        limit: int | None = None,
    ) -> dict:
        """Run gate, scoring, filtering and ranking over in-memory data.

        Returns
        -------
        dict
            ``results`` (ranked, cut to ``limit``), ``completeness``,
            ``total`` (count before the limit is applied) and ``scored``
            (False when the completeness gate blocked scoring).
        """
        completeness = self.completeness_service.score(prefs)

        if prefs is None:
            results = [_unscored(p, [NO_PREFERENCES_REASON]) for p in properties]
            scored = False
        elif not completeness["is_complete"]:
            results = [_unscored(p, []) for p in properties]
            scored = False
        else:
            results = self.scoring_service.score_many(prefs, properties)
            scored = True

        if min_score > 0:
            # Unscored listings sit at 0, so a positive threshold drops them too
            results = self.ranking_service.filter_min_score(results, min_score)

        ranked = self.ranking_service.rank(results, sort_by, direction)
        total = len(ranked)
        if limit is not None:
            ranked = ranked[:limit]

        logger.info(
            "matching.pipeline_complete",
            candidates=len(properties),
            total=total,
            returned=len(ranked),
            scored=scored,
            completeness=completeness["percentage"],
        )

        return {
            "results": ranked,
            "completeness": completeness,
            "total": total,
            "scored": scored,
        }

    # ── Database-backed API ───────────────────────────────────────────────

    async def get_matches(
        self,
        user_id: uuid.UUID | str,
        db_session: AsyncSession,
        sort_by: str = "score",
        direction: str = "desc",
        limit: int | None = None,
        min_score: float = 0,
        search: str | None = None,
    ) -> dict:
        """Ranked matches for a tenant over the available catalog."""
        log = logger.bind(user_id=str(user_id))
        log.info("get_matches_start", sort_by=sort_by, direction=direction, search=search)

        prefs = await self.load_preferences(user_id, db_session)
        return await self.get_matches_for(
            prefs,
            db_session,
            sort_by=sort_by,
            direction=direction,
            limit=limit,
            min_score=min_score,
            search=search,
        )

    async def get_matches_for(
        self,
        prefs: Preferences | None,
        db_session: AsyncSession,
        sort_by: str = "score",
        direction: str = "desc",
        limit: int | None = None,
        min_score: float = 0,
        search: str | None = None,
    ) -> dict:
        """Like ``get_matches`` for an already-loaded preference record."""
        catalog = await self.load_catalog(db_session, search=search)

        outcome = self.match_properties(
            prefs,
            catalog,
            sort_by=sort_by,
            direction=direction,
            min_score=min_score,
            limit=limit if limit is not None else self.default_limit,
        )
        outcome["preferences_version"] = prefs.version if prefs is not None else None
        return outcome

    async def get_recommendations(
        self,
        user_id: uuid.UUID | str,
        db_session: AsyncSession,
        limit: int | None = None,
    ) -> dict:
        """Higher-quality matches only (score at or above the threshold)."""
        return await self.get_matches(
            user_id,
            db_session,
            limit=limit,
            min_score=self.recommendation_min_score,
        )

    async def get_property_match(
        self,
        user_id: uuid.UUID | str,
        property_id: uuid.UUID | str,
        db_session: AsyncSession,
    ) -> dict | None:
        """Full category breakdown for one listing, or ``None`` if it does not exist."""
        log = logger.bind(user_id=str(user_id), property_id=str(property_id))

        stmt = select(Property).where(Property.id == property_id)
        result = await db_session.execute(stmt)
        prop = result.scalar_one_or_none()
        if prop is None:
            log.info("property_match_not_found")
            return None

        prefs = await self.load_preferences(user_id, db_session)
        completeness = self.completeness_service.score(prefs)
        if prefs is None:
            match = _unscored(prop, [NO_PREFERENCES_REASON])
        elif not completeness["is_complete"]:
            match = _unscored(prop, [])
        else:
            match = self.scoring_service.score_property(prefs, prop)
        match["completeness"] = completeness

        log.info("property_match_complete", match_score=match["match_score"])
        return match

    async def get_completeness(
        self,
        user_id: uuid.UUID | str,
        db_session: AsyncSession,
    ) -> dict:
        """Completeness of the stored record; an absent record scores 0."""
        prefs = await self.load_preferences(user_id, db_session)
        return self.completeness_service.score(prefs)

    # ── Loading helpers ───────────────────────────────────────────────────

    async def load_preferences(
        self,
        user_id: uuid.UUID | str,
        db_session: AsyncSession,
    ) -> Preferences | None:
        stmt = select(Preferences).where(Preferences.user_id == user_id)
        result = await db_session.execute(stmt)
        return result.scalar_one_or_none()

    async def load_catalog(
        self,
        db_session: AsyncSession,
        search: str | None = None,
    ) -> list[Property]:
        """Available listings, newest first, optionally free-text filtered."""
        stmt = select(Property).where(Property.status == "available")
        if search and search.strip():
            pattern = f"%{search.strip()}%"
            stmt = stmt.where(
                or_(Property.title.ilike(pattern), Property.address.ilike(pattern))
            )
        stmt = stmt.order_by(Property.created_at.desc()).limit(self.catalog_limit)

        result = await db_session.execute(stmt)
        properties = list(result.scalars().all())
        logger.debug("catalog_loaded", count=len(properties))
        return properties
