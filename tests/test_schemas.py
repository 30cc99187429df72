"""Unit tests for request/response schemas: lenient validation and aliases."""
import uuid
from datetime import date
from types import SimpleNamespace

from app.schemas.match import MatchDetailResponse, MatchResultResponse, ScoreRequest
from app.schemas.preferences import PreferenceRecord
from app.schemas.property import PropertyRecord


class TestPreferenceRecord:

    def test_malformed_values_become_unset(self):
        record = PreferenceRecord(
            min_price="abc",
            max_price="£2,000",
            min_bedrooms="2.5",
            max_bedrooms="3",
            smoker="maybe",
            designer_furniture="no",
            move_in_date="soon",
            hobbies="Climbing",
        )
        assert record.min_price is None
        assert record.max_price == 2000.0
        assert record.min_bedrooms is None
        assert record.max_bedrooms == 3
        assert record.smoker is None
        assert record.designer_furniture is False
        assert record.move_in_date is None
        assert record.hobbies == ["climbing"]

    def test_move_in_date_parsed(self):
        assert PreferenceRecord(move_in_date="2025-03-01").move_in_date == date(2025, 3, 1)

    def test_defaults_are_empty(self):
        record = PreferenceRecord()
        assert record.primary_postcode is None
        assert record.convenience_features == []
        assert record.property_type == []

    def test_exclude_unset_keeps_partial_updates_partial(self):
        record = PreferenceRecord(furnishing="furnished")
        assert record.model_dump(exclude_unset=True) == {"furnishing": "furnished"}


class TestPropertyRecord:

    def test_address_mapping_is_flattened(self):
        record = PropertyRecord(address={"line1": "1 Demo Street", "city": "London", "postcode": "SW1A 1AA"})
        assert record.postcode == "SW1A 1AA"
        assert "London" in record.address

    def test_uuid_id_becomes_text(self):
        property_id = uuid.uuid4()
        assert PropertyRecord(id=property_id).id == str(property_id)

    def test_lenient_numbers(self):
        record = PropertyRecord(price="POA", bedrooms=-2, bathrooms="1")
        assert record.price is None
        assert record.bedrooms is None
        assert record.bathrooms == 1.0

    def test_lifestyle_none_differs_from_empty(self):
        assert PropertyRecord(lifestyle_features=None).lifestyle_features is None
        assert PropertyRecord(lifestyle_features=[]).lifestyle_features == []

    def test_from_orm_like_object(self):
        row = SimpleNamespace(
            id=uuid.uuid4(), title="Flat", address="1 Demo Street", postcode="SW1A 1AA",
            price=1500, bedrooms=2, bathrooms=1, property_type="flat", furnishing=None,
            let_duration=None, lifestyle_features=None, available_from=None,
            created_at=None, status="available",
        )
        record = PropertyRecord.model_validate(row)
        assert record.price == 1500.0
        assert record.status == "available"


class TestMatchSchemas:

    def test_result_serialises_with_aliases(self):
        result = MatchResultResponse.model_validate(
            {"property": {"id": 1, "price": 1500}, "match_score": 87, "match_reasons": ["Within your budget"]}
        )
        dumped = result.model_dump(by_alias=True)
        assert dumped["matchScore"] == 87
        assert dumped["matchReasons"] == ["Within your budget"]

    def test_result_accepts_aliases(self):
        result = MatchResultResponse.model_validate({"property": {}, "matchScore": 5, "matchReasons": []})
        assert result.match_score == 5

    def test_detail_from_scoring_output(self, scoring_service, essential_prefs, sw1a_properties):
        scored = scoring_service.score_property(essential_prefs, sw1a_properties[0])
        detail = MatchDetailResponse.model_validate(scored)
        assert detail.match_score == 100
        assert detail.is_perfect_match is True
        assert detail.summary.matched == 3
        assert len(detail.categories) == 9

    def test_score_request_defaults(self):
        request = ScoreRequest()
        assert request.sort_by == "score"
        assert request.direction == "desc"
        assert request.properties == []
