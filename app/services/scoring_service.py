"""
RentMatch: Property match scoring and match-reason generation.

Compares one tenant preference record with one property listing across
independent categories and combines them into a 0-100 match score plus an
ordered list of short reasons for the match card.

Categories, in reason order:
  price, location, bedrooms, bathrooms, lifestyle, property_type,
  furnishing, availability, let_duration

Each category yields a credit in [0, 1] or is skipped.  A category is skipped
when the tenant expressed no preference for it OR the listing lacks usable
data for it; skipped categories neither help nor hurt.

  raw_score   = Σ(weight × credit) / Σ(weight of evaluated categories) × 100
  match_score = round_half_up(clamp(raw_score, 0, 100))

Numeric fits fall off in steps instead of a hard cut-off: a listing slightly
over budget or one bedroom short still earns partial credit.
"""

from __future__ import annotations

import re
from typing import Any, Callable

import structlog

from app.config import get_settings
from app.utils.coercion import get_field, round_half_up, to_datetime, to_number, to_tags, to_text

logger = structlog.get_logger("rentmatch.scoring_service")

# Evaluator result: (credit, reason-or-None, details) or None when skipped
_Evaluation = tuple[float, str | None, str] | None

_FULL_POSTCODE_RE = re.compile(r"^([A-Z]{1,2}\d[A-Z\d]?)(\d[A-Z]{2})$")
_POSTCODE_IN_TEXT_RE = re.compile(r"\b([A-Z]{1,2}\d[A-Z\d]?\s*\d[A-Z]{2})\b")
_AREA_RE = re.compile(r"^[A-Z]+")

_NO_PREFERENCE: set[str] = {"any", "no_preference", "none", "either"}

_FURNISHING_ALIASES: dict[str, str] = {
    "furnished": "furnished",
    "fully_furnished": "furnished",
    "designer_furniture": "furnished",
    "unfurnished": "unfurnished",
    "part_furnished": "part_furnished",
    "partially_furnished": "part_furnished",
    "semi_furnished": "part_furnished",
}

_SHORT_LETS: set[str] = {"short_term", "1_month", "3_months", "6_months"}
_LONG_LETS: set[str] = {"long_term", "12_months", "18_months", "24_months"}

_FEATURE_FIELDS: list[str] = [
    "lifestyle_features",
    "social_features",
    "work_features",
    "convenience_features",
    "pet_friendly_features",
    "luxury_features",
]


def _slug(value: Any) -> str | None:
    text = to_text(value)
    if text is None:
        return None
    return re.sub(r"[\s\-]+", "_", text.lower())


def _compact_postcode(value: Any) -> str | None:
    text = to_text(value)
    if text is None:
        return None
    compact = re.sub(r"\s+", "", text.upper())
    return compact or None


def _outward_code(compact: str) -> str:
    """``SW1A1AA`` -> ``SW1A``; a bare outward code is returned unchanged."""
    match = _FULL_POSTCODE_RE.match(compact)
    return match.group(1) if match else compact


def _postcode_area(compact: str) -> str:
    match = _AREA_RE.match(compact)
    return match.group(0) if match else compact


def _property_postcode(prop: Any) -> str | None:
    """Listing postcode from ``postcode``, or recovered from ``address``."""
    direct = _compact_postcode(get_field(prop, "postcode"))
    if direct:
        return direct
    address = get_field(prop, "address")
    nested = get_field(address, "postcode") if not isinstance(address, str) else None
    if nested is not None:
        return _compact_postcode(nested)
    text = to_text(address)
    if text is None:
        return None
    found = _POSTCODE_IN_TEXT_RE.search(text.upper())
    return _compact_postcode(found.group(1)) if found else None


class MatchScoringService:
    """Score a single property against a tenant's preferences.

    Pure and deterministic: no I/O, inputs are never mutated.  Inputs may be
    mappings or attribute-bearing objects (ORM rows, schemas).
    """

    CATEGORIES: list[str] = [
        "price",
        "location",
        "bedrooms",
        "bathrooms",
        "lifestyle",
        "property_type",
        "furnishing",
        "availability",
        "let_duration",
    ]

    PRICE_OVER_CREDIT: float = 0.5
    PRICE_UNDER_CREDIT: float = 0.7
    NEAR_BEDROOM_CREDIT: float = 0.5
    EXTRA_BATHROOM_CREDIT: float = 0.9
    AREA_CREDIT: float = 0.5
    PART_FURNISHED_CREDIT: float = 0.5
    SIMILAR_LET_CREDIT: float = 0.8

    # (max days late, credit), first matching band wins
    AVAILABILITY_BANDS: list[tuple[int, float]] = [(0, 1.0), (14, 0.7), (30, 0.4)]

    def __init__(
        self,
        category_weights: dict[str, float] | None = None,
        price_over_tolerance: float | None = None,
        price_under_tolerance: float | None = None,
    ) -> None:
        settings = None
        if category_weights is None or price_over_tolerance is None or price_under_tolerance is None:
            settings = get_settings()

        self.category_weights: dict[str, float] = dict(
            category_weights if category_weights is not None else settings.MATCH_CATEGORY_WEIGHTS
        )
        self.price_over_tolerance: float = (
            price_over_tolerance if price_over_tolerance is not None else settings.PRICE_OVER_TOLERANCE
        )
        self.price_under_tolerance: float = (
            price_under_tolerance if price_under_tolerance is not None else settings.PRICE_UNDER_TOLERANCE
        )

        self._evaluators: dict[str, Callable[[Any, Any], _Evaluation]] = {
            "price": self._match_price,
            "location": self._match_location,
            "bedrooms": self._match_bedrooms,
            "bathrooms": self._match_bathrooms,
            "lifestyle": self._match_lifestyle,
            "property_type": self._match_property_type,
            "furnishing": self._match_furnishing,
            "availability": self._match_availability,
            "let_duration": self._match_let_duration,
        }

    # ── Public API ──────────────────────────────────────────────────

    def score_property(self, prefs: Any, prop: Any) -> dict:
        """Compute the match result for one listing.

        Returns
        -------
        dict with keys:
            property, match_score (int), raw_score (float), match_reasons,
            categories (list), summary, is_perfect_match
        """
        categories: list[dict] = []
        weighted_total = 0.0
        evaluated_weight = 0.0
        reasons: list[str] = []

        for category in self.CATEGORIES:
            weight = float(self.category_weights.get(category, 0.0))
            evaluation = self._evaluators[category](prefs, prop) if prefs is not None else None

            if evaluation is None:
                categories.append(
                    {
                        "category": category,
                        "evaluated": False,
                        "credit": 0.0,
                        "weight": weight,
                        "reason": None,
                        "details": "",
                    }
                )
                continue

            credit, reason, details = evaluation
            credit = max(0.0, min(1.0, credit))
            weighted_total += weight * credit
            evaluated_weight += weight

            if credit > 0 and reason:
                reasons.append(reason)

            categories.append(
                {
                    "category": category,
                    "evaluated": True,
                    "credit": round(credit, 4),
                    "weight": weight,
                    "reason": reason if credit > 0 else None,
                    "details": details,
                }
            )

        if evaluated_weight > 0:
            raw_score = weighted_total / evaluated_weight * 100.0
        else:
            raw_score = 0.0
        raw_score = max(0.0, min(100.0, raw_score))
        match_score = round_half_up(raw_score)

        evaluated = [c for c in categories if c["evaluated"]]
        summary = {
            "matched": sum(1 for c in evaluated if c["credit"] >= 1.0),
            "partial": sum(1 for c in evaluated if 0.0 < c["credit"] < 1.0),
            "not_matched": sum(1 for c in evaluated if c["credit"] == 0.0),
            "skipped": len(categories) - len(evaluated),
        }

        logger.debug(
            "scoring.property_scored",
            property_id=str(get_field(prop, "id")),
            match_score=match_score,
            evaluated=len(evaluated),
        )

        return {
            "property": prop,
            "match_score": match_score,
            "raw_score": round(raw_score, 4),
            "match_reasons": reasons,
            "categories": categories,
            "summary": summary,
            "is_perfect_match": match_score == 100 and len(evaluated) > 0,
        }

    def score_many(self, prefs: Any, properties: list[Any]) -> list[dict]:
        """Score every listing, preserving input order."""
        return [self.score_property(prefs, prop) for prop in properties]

    # ── Category evaluators ─────────────────────────────────────────

    def _match_price(self, prefs: Any, prop: Any) -> _Evaluation:
        low = to_number(get_field(prefs, "min_price"))
        high = to_number(get_field(prefs, "max_price"))
        if low is None and high is None:
            return None
        price = to_number(get_field(prop, "price"))
        if price is None:
            return None
        if low is not None and high is not None and low > high:
            low, high = high, low

        if (low is None or price >= low) and (high is None or price <= high):
            return 1.0, "Within your budget", f"£{price:,.0f}/month is within your range"

        if high is not None and price > high and high > 0:
            over = (price - high) / high
            if over <= self.price_over_tolerance:
                return (
                    self.PRICE_OVER_CREDIT,
                    "Slightly over your budget",
                    f"£{price:,.0f}/month is {over:.0%} over your maximum",
                )

        if low is not None and price < low and low > 0:
            under = (low - price) / low
            if under <= self.price_under_tolerance:
                return (
                    self.PRICE_UNDER_CREDIT,
                    "Just under your price range",
                    f"£{price:,.0f}/month is {under:.0%} under your minimum",
                )

        return 0.0, None, f"£{price:,.0f}/month is outside your budget"

    def _match_location(self, prefs: Any, prop: Any) -> _Evaluation:
        wanted = _compact_postcode(get_field(prefs, "primary_postcode"))
        if wanted is None:
            return None
        actual = _property_postcode(prop)
        if actual is None:
            return None

        if actual == wanted or _outward_code(actual) == _outward_code(wanted):
            return 1.0, "In your preferred area", f"{actual} matches {wanted}"
        if _postcode_area(actual) == _postcode_area(wanted):
            return self.AREA_CREDIT, "Near your preferred area", f"{actual} shares the {_postcode_area(wanted)} area"
        return 0.0, None, f"{actual} is outside {wanted}"

    def _match_bedrooms(self, prefs: Any, prop: Any) -> _Evaluation:
        return self._match_count_range(
            prefs, prop, "bedrooms",
            full_reason="Matches bedroom count",
            near_reason="Close to your bedroom count",
        )

    def _match_bathrooms(self, prefs: Any, prop: Any) -> _Evaluation:
        low = to_number(get_field(prefs, "min_bathrooms"))
        high = to_number(get_field(prefs, "max_bathrooms"))
        if low is None and high is None:
            return None
        count = to_number(get_field(prop, "bathrooms"))
        if count is None:
            return None

        if (low is None or count >= low) and (high is None or count <= high):
            return 1.0, "Matches bathroom count", f"{count:g} bathrooms"
        if high is not None and count > high:
            return self.EXTRA_BATHROOM_CREDIT, "More bathrooms than you need", f"{count:g} bathrooms"
        return 0.0, None, f"{count:g} bathrooms is below your minimum"

    def _match_lifestyle(self, prefs: Any, prop: Any) -> _Evaluation:
        wanted: list[str] = []
        for field in _FEATURE_FIELDS:
            for tag in to_tags(get_field(prefs, field)):
                if tag not in wanted:
                    wanted.append(tag)
        if not wanted:
            return None

        raw_features = get_field(prop, "lifestyle_features")
        if raw_features is None:
            return None
        offered = set(to_tags(raw_features))

        shared = [tag for tag in wanted if tag in offered]
        credit = len(shared) / len(wanted)
        if not shared:
            return 0.0, None, "No shared lifestyle features"

        noun = "feature" if len(shared) == 1 else "features"
        preview = ", ".join(shared[:3]) + ("..." if len(shared) > 3 else "")
        return credit, f"{len(shared)} shared lifestyle {noun}", preview

    def _match_property_type(self, prefs: Any, prop: Any) -> _Evaluation:
        wanted = [
            t.replace("-", "_").replace(" ", "_")
            for t in to_tags(get_field(prefs, "property_type"))
        ]
        wanted = [t for t in wanted if t not in _NO_PREFERENCE]
        if not wanted:
            return None
        actual = _slug(get_field(prop, "property_type"))
        if actual is None:
            return None

        if actual in wanted:
            return 1.0, "Matches your preferred property type", f"{actual} is a preferred type"
        return 0.0, None, f"{actual} is not in {', '.join(wanted)}"

    def _match_furnishing(self, prefs: Any, prop: Any) -> _Evaluation:
        wanted = _slug(get_field(prefs, "furnishing"))
        if wanted is None or wanted in _NO_PREFERENCE:
            return None
        actual = _slug(get_field(prop, "furnishing"))
        if actual is None:
            return None

        wanted = _FURNISHING_ALIASES.get(wanted, wanted)
        actual = _FURNISHING_ALIASES.get(actual, actual)
        if wanted == actual:
            return 1.0, "Matches your furnishing preference", actual
        if {wanted, actual} == {"furnished", "part_furnished"}:
            return self.PART_FURNISHED_CREDIT, "Partly matches your furnishing preference", actual
        return 0.0, None, f"{actual}, you prefer {wanted}"

    def _match_availability(self, prefs: Any, prop: Any) -> _Evaluation:
        move_in = to_datetime(get_field(prefs, "move_in_date"))
        if move_in is None:
            return None
        available = to_datetime(get_field(prop, "available_from"))
        if available is None:
            return None

        days_late = (available.date() - move_in.date()).days
        for max_days, credit in self.AVAILABILITY_BANDS:
            if days_late <= max_days:
                if max_days == 0:
                    return credit, "Available by your move-in date", f"Available from {available.date().isoformat()}"
                return (
                    credit,
                    "Available soon after your move-in date",
                    f"Available {days_late} days after your move-in date",
                )
        return 0.0, None, f"Available {days_late} days after your move-in date"

    def _match_let_duration(self, prefs: Any, prop: Any) -> _Evaluation:
        wanted = _slug(get_field(prefs, "let_duration"))
        if wanted is None or wanted in _NO_PREFERENCE:
            return None
        actual = _slug(get_field(prop, "let_duration"))
        if actual is None:
            return None

        if actual == "flexible" or actual == wanted:
            return 1.0, "Let duration fits", actual
        if (wanted in _SHORT_LETS and actual in _SHORT_LETS) or (
            wanted in _LONG_LETS and actual in _LONG_LETS
        ):
            return self.SIMILAR_LET_CREDIT, "Similar let duration", f"{actual}, you prefer {wanted}"
        return 0.0, None, f"{actual}, you prefer {wanted}"

    # ── Shared helpers ──────────────────────────────────────────────

    def _match_count_range(
        self,
        prefs: Any,
        prop: Any,
        field: str,
        *,
        full_reason: str,
        near_reason: str,
    ) -> _Evaluation:
        low = to_number(get_field(prefs, f"min_{field}"))
        high = to_number(get_field(prefs, f"max_{field}"))
        if low is None and high is None:
            return None
        count = to_number(get_field(prop, field))
        if count is None:
            return None
        if low is not None and high is not None and low > high:
            low, high = high, low

        if (low is None or count >= low) and (high is None or count <= high):
            return 1.0, full_reason, f"{count:g} {field}"
        if (low is not None and count == low - 1) or (high is not None and count == high + 1):
            return self.NEAR_BEDROOM_CREDIT, near_reason, f"{count:g} {field}, one off your range"
        return 0.0, None, f"{count:g} {field} is outside your range"
