from pydantic import BaseModel, field_validator, model_validator
from datetime import date, datetime
from typing import Optional, Any

from app.utils.coercion import to_datetime, to_number, to_tags, to_text


class PropertyRecord(BaseModel):
    """A listing as seen by the matcher.

    ``price``, ``bedrooms`` and ``bathrooms`` that are missing, negative or
    non-numeric become ``None`` (unknown), never zero.
    """

    id: Optional[Any] = None
    title: Optional[str] = None
    address: Optional[str] = None
    postcode: Optional[str] = None
    price: Optional[float] = None
    bedrooms: Optional[float] = None
    bathrooms: Optional[float] = None
    property_type: Optional[str] = None
    furnishing: Optional[str] = None
    let_duration: Optional[str] = None
    lifestyle_features: Optional[list[str]] = None
    available_from: Optional[date] = None
    created_at: Optional[datetime] = None
    status: Optional[str] = None

    model_config = {"from_attributes": True}

    @model_validator(mode="before")
    @classmethod
    def _flatten_address(cls, data: Any) -> Any:
        """Accept ``address`` as a mapping and lift its postcode out."""
        if isinstance(data, dict) and isinstance(data.get("address"), dict):
            data = dict(data)
            address = data["address"]
            if not data.get("postcode"):
                data["postcode"] = address.get("postcode")
            data["address"] = ", ".join(
                str(part) for part in address.values() if isinstance(part, (str, int))
            ) or None
        return data

    @field_validator("id", mode="before")
    @classmethod
    def _id_as_text(cls, v: Any) -> Any:
        if v is None or isinstance(v, (int, str)):
            return v
        return str(v)

    @field_validator("price", "bedrooms", "bathrooms", mode="before")
    @classmethod
    def _lenient_number(cls, v: Any) -> Optional[float]:
        return to_number(v)

    @field_validator(
        "title", "address", "postcode", "property_type", "furnishing",
        "let_duration", "status", mode="before",
    )
    @classmethod
    def _lenient_text(cls, v: Any) -> Optional[str]:
        return to_text(v)

    @field_validator("lifestyle_features", mode="before")
    @classmethod
    def _lenient_tags(cls, v: Any) -> Optional[list[str]]:
        # None stays None: "no data" is different from "no features"
        return None if v is None else to_tags(v)

    @field_validator("available_from", mode="before")
    @classmethod
    def _lenient_date(cls, v: Any) -> Optional[date]:
        parsed = to_datetime(v)
        return parsed.date() if parsed is not None else None

    @field_validator("created_at", mode="before")
    @classmethod
    def _lenient_datetime(cls, v: Any) -> Optional[datetime]:
        return to_datetime(v)
