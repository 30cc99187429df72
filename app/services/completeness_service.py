"""
RentMatch: Preference completeness scoring.

Computes how fully a tenant has described what they are looking for, as a
weighted percentage for the dashboard badge, plus a separate hard gate that
decides whether matching is meaningful at all.

Every preference field belongs to one importance tier:
  essential (3):   postcode, price range, minimum bedrooms
  important (2):   furnishing, let duration, designer furniture, house shares
  useful    (1.5): convenience features, living environment, pets, smoker
  optional  (1):   move-in date, max bedrooms, bathroom range, hobbies,
                   additional info, date property added

percentage  = round_half_up(total / max_possible * 100)
is_complete = all three essential fields present

The two signals are independent: a record can pass the gate
while the percentage stays low.
"""

from __future__ import annotations

from typing import Any, Callable

import structlog

from app.config import get_settings
from app.utils.coercion import get_field, round_half_up, to_datetime, to_number, to_tags, to_text, to_tri_state

logger = structlog.get_logger("rentmatch.completeness_service")


def _has_text(prefs: Any, name: str) -> bool:
    return to_text(get_field(prefs, name)) is not None


def _has_number(prefs: Any, name: str) -> bool:
    return to_number(get_field(prefs, name)) is not None


def _pair_fraction(prefs: Any, low: str, high: str) -> float:
    """1.0 for a complete range, 0.5 for one bound, 0.0 for neither."""
    present = int(_has_number(prefs, low)) + int(_has_number(prefs, high))
    return present / 2.0


class CompletenessService:
    """Weighted preference-completeness calculation.

    Tier weights are injected (or read from settings) so that they can be
    tuned without touching the scoring rules below.
    """

    ESSENTIAL_FIELDS: list[str] = ["primary_postcode", "price_range", "min_bedrooms"]
    REQUIRED_ESSENTIALS: int = 3

    CONVENIENCE_ITEM_POINTS: float = 0.5
    HOBBY_ITEM_POINTS: float = 0.3

    def __init__(self, tier_weights: dict[str, float] | None = None) -> None:
        if tier_weights is None:
            tier_weights = get_settings().COMPLETENESS_TIER_WEIGHTS
        self.tier_weights: dict[str, float] = dict(tier_weights)

        # (field key, tier, fraction-of-tier-weight earned)
        self._rules: list[tuple[str, str, Callable[[Any], float]]] = [
            # Essential
            ("primary_postcode", "essential",
             lambda p: float(_has_text(p, "primary_postcode"))),
            ("price_range", "essential",
             lambda p: _pair_fraction(p, "min_price", "max_price")),
            ("min_bedrooms", "essential",
             lambda p: float(_has_number(p, "min_bedrooms"))),
            # Important
            ("furnishing", "important",
             lambda p: float(_has_text(p, "furnishing"))),
            ("let_duration", "important",
             lambda p: float(_has_text(p, "let_duration"))),
            ("designer_furniture", "important",
             lambda p: float(to_tri_state(get_field(p, "designer_furniture")) is not None)),
            ("house_shares", "important",
             lambda p: float(_has_text(p, "house_shares"))),
            # Useful
            ("convenience_features", "useful",
             lambda p: self._item_fraction(p, "convenience_features", "useful", self.CONVENIENCE_ITEM_POINTS)),
            ("ideal_living_environment", "useful",
             lambda p: float(_has_text(p, "ideal_living_environment"))),
            ("pets", "useful",
             lambda p: float(_has_text(p, "pets"))),
            ("smoker", "useful",
             lambda p: float(to_tri_state(get_field(p, "smoker")) is not None)),
            # Optional
            ("move_in_date", "optional",
             lambda p: float(to_datetime(get_field(p, "move_in_date")) is not None)),
            ("max_bedrooms", "optional",
             lambda p: float(_has_number(p, "max_bedrooms"))),
            ("bathrooms", "optional",
             lambda p: _pair_fraction(p, "min_bathrooms", "max_bathrooms")),
            ("hobbies", "optional",
             lambda p: self._item_fraction(p, "hobbies", "optional", self.HOBBY_ITEM_POINTS)),
            ("additional_info", "optional",
             lambda p: float(_has_text(p, "additional_info"))),
            ("date_property_added", "optional",
             lambda p: float(_has_text(p, "date_property_added"))),
        ]

        self.max_possible_score: float = sum(
            self.tier_weights.get(tier, 0.0) for _key, tier, _rule in self._rules
        )

    # ── Public API ──────────────────────────────────────────────────

    def score(self, prefs: Any) -> dict:
        """Score a preference record (mapping, ORM row, or ``None``).

        Returns
        -------
        dict with keys:
            percentage, is_complete, total_score, max_possible_score,
            essential_count, missing_essentials, fields
        """
        fields: dict[str, float] = {}
        total_score = 0.0

        for key, tier, rule in self._rules:
            points = rule(prefs) * self.tier_weights.get(tier, 0.0) if prefs is not None else 0.0
            fields[key] = round(points, 4)
            total_score += points

        missing_essentials = [
            key for key in self.ESSENTIAL_FIELDS if not self._essential_present(prefs, key)
        ]
        essential_count = len(self.ESSENTIAL_FIELDS) - len(missing_essentials)
        is_complete = essential_count >= self.REQUIRED_ESSENTIALS

        if self.max_possible_score > 0:
            percentage = round_half_up(total_score / self.max_possible_score * 100)
        else:
            percentage = 0
        percentage = max(0, min(100, percentage))

        logger.debug(
            "completeness.scored",
            percentage=percentage,
            is_complete=is_complete,
            essential_count=essential_count,
        )

        return {
            "percentage": percentage,
            "is_complete": is_complete,
            "total_score": round(total_score, 4),
            "max_possible_score": self.max_possible_score,
            "essential_count": essential_count,
            "missing_essentials": missing_essentials,
            "fields": fields,
        }

    # ── Internal helpers ────────────────────────────────────────────

    def _item_fraction(self, prefs: Any, name: str, tier: str, item_points: float) -> float:
        """Share of the tier weight earned by a tag list, capped at the full weight."""
        weight = self.tier_weights.get(tier, 0.0)
        if weight <= 0:
            return 0.0
        return min(len(to_tags(get_field(prefs, name))) * item_points / weight, 1.0)

    @staticmethod
    def _essential_present(prefs: Any, key: str) -> bool:
        """Gate check: a half-filled price range does not count."""
        if prefs is None:
            return False
        if key == "primary_postcode":
            return _has_text(prefs, "primary_postcode")
        if key == "price_range":
            return _pair_fraction(prefs, "min_price", "max_price") == 1.0
        return _has_number(prefs, key)
