"""Unit tests for MatchingService: completeness gate, pipeline and DB orchestration."""
import pytest
import uuid
from types import SimpleNamespace
from unittest.mock import patch, MagicMock, AsyncMock

from app.services.matching_service import MatchingService, NO_PREFERENCES_REASON


@pytest.fixture
def matching_service(completeness_service, scoring_service, ranking_service):
    with patch("app.services.matching_service.get_settings") as mock:
        settings = MagicMock()
        settings.CATALOG_LIMIT = 500
        settings.DEFAULT_MATCH_LIMIT = 20
        settings.RECOMMENDATION_MIN_SCORE = 60
        mock.return_value = settings
        service = MatchingService(
            completeness_service=completeness_service,
            scoring_service=scoring_service,
            ranking_service=ranking_service,
        )
    return service


def _scalar_result(value):
    result = MagicMock()
    result.scalar_one_or_none.return_value = value
    return result


def _scalars_result(values):
    result = MagicMock()
    result.scalars.return_value.all.return_value = list(values)
    return result


def _db(*results):
    """An AsyncSession stand-in whose ``execute`` returns ``results`` in order."""
    db = MagicMock()
    db.execute = AsyncMock(side_effect=list(results))
    return db


def _prefs_row(**fields):
    fields.setdefault("version", "2025-01-01T00:00:00+00:00")
    return SimpleNamespace(**fields)


class TestMatchProperties:
    """The in-memory pipeline shared by every entry point."""

    def test_worked_example(self, matching_service, essential_prefs, sw1a_properties):
        outcome = matching_service.match_properties(essential_prefs, list(reversed(sw1a_properties)))
        assert outcome["scored"] is True
        assert outcome["completeness"]["is_complete"] is True
        assert [r["property"]["id"] for r in outcome["results"]] == [1, 2]
        assert outcome["total"] == 2

    def test_no_preferences_returns_catalog_with_reason(self, matching_service, sw1a_properties):
        outcome = matching_service.match_properties(None, sw1a_properties)
        assert outcome["scored"] is False
        assert outcome["completeness"]["percentage"] == 0
        assert [r["match_score"] for r in outcome["results"]] == [0, 0]
        assert all(r["match_reasons"] == [NO_PREFERENCES_REASON] for r in outcome["results"])
        # Catalog order (newest first) is preserved by the stable sort
        assert [r["property"]["id"] for r in outcome["results"]] == [1, 2]

    def test_incomplete_preferences_are_not_scored(self, matching_service, sw1a_properties):
        prefs = {"primary_postcode": "SW1A", "min_bedrooms": 2}
        outcome = matching_service.match_properties(prefs, sw1a_properties)
        assert outcome["scored"] is False
        assert outcome["completeness"]["is_complete"] is False
        assert all(r["match_score"] == 0 and r["match_reasons"] == [] for r in outcome["results"])
        assert len(outcome["results"]) == 2

    def test_min_score_filters_scored_results(self, matching_service, essential_prefs, sw1a_properties):
        outcome = matching_service.match_properties(essential_prefs, sw1a_properties, min_score=60)
        assert [r["property"]["id"] for r in outcome["results"]] == [1]
        assert outcome["total"] == 1

    @pytest.mark.parametrize("prefs", [None, {"primary_postcode": "SW1A"}])
    def test_min_score_drops_unscored_results(self, matching_service, sw1a_properties, prefs):
        outcome = matching_service.match_properties(prefs, sw1a_properties, min_score=60)
        assert outcome["scored"] is False
        assert outcome["results"] == []
        assert outcome["total"] == 0

    def test_limit_applies_after_ranking(self, matching_service, essential_prefs, sw1a_properties):
        outcome = matching_service.match_properties(
            essential_prefs, list(reversed(sw1a_properties)), limit=1
        )
        assert [r["property"]["id"] for r in outcome["results"]] == [1]
        assert outcome["total"] == 2

    def test_sort_by_price(self, matching_service, essential_prefs, sw1a_properties):
        outcome = matching_service.match_properties(
            essential_prefs, sw1a_properties, sort_by="price", direction="desc"
        )
        assert [r["property"]["price"] for r in outcome["results"]] == [5000, 1500]

    def test_unknown_sort_key_raises(self, matching_service, essential_prefs, sw1a_properties):
        with pytest.raises(ValueError):
            matching_service.match_properties(essential_prefs, sw1a_properties, sort_by="distance")

    def test_empty_catalog(self, matching_service, essential_prefs):
        outcome = matching_service.match_properties(essential_prefs, [])
        assert outcome["results"] == []
        assert outcome["total"] == 0


class TestGetMatches:
    """Database-backed matching with a mocked session."""

    @pytest.mark.asyncio
    async def test_loads_preferences_then_catalog(self, matching_service, essential_prefs, sw1a_properties):
        prefs = _prefs_row(**essential_prefs)
        db = _db(_scalar_result(prefs), _scalars_result(reversed(sw1a_properties)))

        outcome = await matching_service.get_matches(uuid.uuid4(), db)

        assert db.execute.await_count == 2
        assert outcome["scored"] is True
        assert [r["property"]["id"] for r in outcome["results"]] == [1, 2]
        assert outcome["preferences_version"] == prefs.version

    @pytest.mark.asyncio
    async def test_default_limit_from_settings(self, matching_service, essential_prefs):
        catalog = [{"id": i, "price": 1500, "bedrooms": 2, "postcode": "SW1A"} for i in range(30)]
        db = _db(_scalar_result(_prefs_row(**essential_prefs)), _scalars_result(catalog))

        outcome = await matching_service.get_matches(uuid.uuid4(), db)

        assert len(outcome["results"]) == 20
        assert outcome["total"] == 30

    @pytest.mark.asyncio
    async def test_no_preferences(self, matching_service, sw1a_properties):
        db = _db(_scalar_result(None), _scalars_result(sw1a_properties))

        outcome = await matching_service.get_matches(uuid.uuid4(), db)

        assert outcome["scored"] is False
        assert outcome["preferences_version"] is None
        assert outcome["results"][0]["match_reasons"] == [NO_PREFERENCES_REASON]

    @pytest.mark.asyncio
    async def test_recommendations_use_threshold(self, matching_service, essential_prefs, sw1a_properties):
        db = _db(_scalar_result(_prefs_row(**essential_prefs)), _scalars_result(sw1a_properties))

        outcome = await matching_service.get_recommendations(uuid.uuid4(), db)

        assert [r["property"]["id"] for r in outcome["results"]] == [1]
        assert all(r["match_score"] >= 60 for r in outcome["results"])

    @pytest.mark.asyncio
    async def test_recommendations_empty_for_incomplete_preferences(self, matching_service, sw1a_properties):
        db = _db(_scalar_result(_prefs_row(primary_postcode="SW1A")), _scalars_result(sw1a_properties))

        outcome = await matching_service.get_recommendations(uuid.uuid4(), db)

        assert outcome["scored"] is False
        assert outcome["results"] == []

    @pytest.mark.asyncio
    async def test_catalog_query_filters_available_and_search(self, matching_service):
        db = _db(_scalars_result([]))

        await matching_service.load_catalog(db, search="  Westminster ")

        statement = db.execute.await_args.args[0]
        compiled = str(statement.compile(compile_kwargs={"literal_binds": True}))
        assert "properties.status = 'available'" in compiled
        assert "%Westminster%" in compiled
        assert "ORDER BY properties.created_at DESC" in compiled
        assert "LIMIT 500" in compiled

    @pytest.mark.asyncio
    async def test_blank_search_is_ignored(self, matching_service):
        db = _db(_scalars_result([]))

        await matching_service.load_catalog(db, search="   ")

        statement = db.execute.await_args.args[0]
        compiled = str(statement.compile(compile_kwargs={"literal_binds": True}))
        assert "%" not in compiled


class TestPropertyMatch:

    @pytest.mark.asyncio
    async def test_missing_property_returns_none(self, matching_service):
        db = _db(_scalar_result(None))
        assert await matching_service.get_property_match(uuid.uuid4(), uuid.uuid4(), db) is None
        assert db.execute.await_count == 1

    @pytest.mark.asyncio
    async def test_breakdown_for_existing_property(self, matching_service, essential_prefs, sw1a_properties):
        db = _db(_scalar_result(sw1a_properties[1]), _scalar_result(_prefs_row(**essential_prefs)))

        match = await matching_service.get_property_match(uuid.uuid4(), uuid.uuid4(), db)

        assert match["match_score"] == 33
        assert len(match["categories"]) == 9
        assert match["completeness"]["is_complete"] is True

    @pytest.mark.asyncio
    async def test_breakdown_without_preferences(self, matching_service, sw1a_properties):
        db = _db(_scalar_result(sw1a_properties[0]), _scalar_result(None))

        match = await matching_service.get_property_match(uuid.uuid4(), uuid.uuid4(), db)

        assert match["match_score"] == 0
        assert match["match_reasons"] == [NO_PREFERENCES_REASON]

    @pytest.mark.asyncio
    async def test_breakdown_gated_on_incomplete_preferences(self, matching_service, essential_prefs, sw1a_properties):
        partial = {k: v for k, v in essential_prefs.items() if k != "min_bedrooms"}
        db = _db(_scalar_result(sw1a_properties[0]), _scalar_result(_prefs_row(**partial)))

        match = await matching_service.get_property_match(uuid.uuid4(), uuid.uuid4(), db)

        assert match["match_score"] == 0
        assert match["match_reasons"] == []
        assert match["categories"] == []
        assert match["completeness"]["is_complete"] is False


class TestGetCompleteness:

    @pytest.mark.asyncio
    async def test_stored_record(self, matching_service, essential_prefs):
        db = _db(_scalar_result(_prefs_row(**essential_prefs)))
        result = await matching_service.get_completeness(uuid.uuid4(), db)
        assert result["percentage"] == 31
        assert result["is_complete"] is True

    @pytest.mark.asyncio
    async def test_absent_record(self, matching_service):
        db = _db(_scalar_result(None))
        result = await matching_service.get_completeness(uuid.uuid4(), db)
        assert result["percentage"] == 0
        assert result["is_complete"] is False
