from pydantic import BaseModel, field_validator
from uuid import UUID
from datetime import date, datetime
from typing import Optional, Any

from app.utils.coercion import to_datetime, to_number, to_tags, to_text, to_tri_state

_PRICE_FIELDS = ("min_price", "max_price")
_COUNT_FIELDS = (
    "min_bedrooms", "max_bedrooms",
    "min_bathrooms", "max_bathrooms",
)
_TEXT_FIELDS = (
    "primary_postcode", "furnishing", "let_duration", "house_shares",
    "ideal_living_environment", "pets", "additional_info", "date_property_added",
)
_TAG_FIELDS = (
    "convenience_features", "lifestyle_features", "social_features",
    "work_features", "pet_friendly_features", "luxury_features",
    "hobbies", "property_type",
)


class PreferenceRecord(BaseModel):
    """A tenant's rental preferences.

    Every field is optional.  Malformed values (a non-numeric price, an
    unparseable date) are coerced to unset instead of failing validation.
    """

    primary_postcode: Optional[str] = None
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    min_bedrooms: Optional[int] = None
    max_bedrooms: Optional[int] = None
    min_bathrooms: Optional[int] = None
    max_bathrooms: Optional[int] = None
    furnishing: Optional[str] = None
    let_duration: Optional[str] = None
    designer_furniture: Optional[bool] = None
    house_shares: Optional[str] = None
    convenience_features: list[str] = []
    lifestyle_features: list[str] = []
    social_features: list[str] = []
    work_features: list[str] = []
    pet_friendly_features: list[str] = []
    luxury_features: list[str] = []
    ideal_living_environment: Optional[str] = None
    pets: Optional[str] = None
    smoker: Optional[bool] = None
    move_in_date: Optional[date] = None
    hobbies: list[str] = []
    additional_info: Optional[str] = None
    date_property_added: Optional[str] = None
    property_type: list[str] = []

    model_config = {"from_attributes": True}

    @field_validator(*_PRICE_FIELDS, mode="before")
    @classmethod
    def _lenient_price(cls, v: Any) -> Optional[float]:
        return to_number(v)

    @field_validator(*_COUNT_FIELDS, mode="before")
    @classmethod
    def _lenient_count(cls, v: Any) -> Optional[int]:
        number = to_number(v)
        if number is None or not number.is_integer():
            return None
        return int(number)

    @field_validator(*_TEXT_FIELDS, mode="before")
    @classmethod
    def _lenient_text(cls, v: Any) -> Optional[str]:
        return to_text(v)

    @field_validator(*_TAG_FIELDS, mode="before")
    @classmethod
    def _lenient_tags(cls, v: Any) -> list[str]:
        return to_tags(v)

    @field_validator("designer_furniture", "smoker", mode="before")
    @classmethod
    def _tri_state(cls, v: Any) -> Optional[bool]:
        return to_tri_state(v)

    @field_validator("move_in_date", mode="before")
    @classmethod
    def _lenient_date(cls, v: Any) -> Optional[date]:
        parsed = to_datetime(v)
        return parsed.date() if parsed is not None else None


class PreferencesResponse(PreferenceRecord):
    id: UUID
    user_id: UUID
    created_at: datetime
    updated_at: Optional[datetime] = None


class CompletenessResponse(BaseModel):
    percentage: int
    is_complete: bool
    total_score: float
    max_possible_score: float
    essential_count: int
    missing_essentials: list[str] = []
