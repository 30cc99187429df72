"""
RentMatch: Match list ordering.

Orders scored match results for the matches page.  Sorting is stable and
never mutates its input: results with equal keys keep their incoming order,
which usually reflects catalog recency.

Sort keys:
  score: match_score          (desc = best first)
  price: property.price       (asc  = cheapest first)
  date : property.created_at  (desc = newest first)

Missing or malformed key values compare as 0 (the epoch for dates), so
incomplete listings collect deterministically at one end of the list.
"""

from __future__ import annotations

from typing import Any, Callable, Iterable

import structlog

from app.utils.coercion import get_field, to_number, to_timestamp

logger = structlog.get_logger("rentmatch.ranking_service")


def _score_key(result: Any) -> float:
    return to_number(get_field(result, "match_score"), allow_negative=True) or 0.0


def _price_key(result: Any) -> float:
    return to_number(get_field(get_field(result, "property"), "price")) or 0.0


def _date_key(result: Any) -> float:
    return to_timestamp(get_field(get_field(result, "property"), "created_at"))


class RankingService:
    """Stable, non-mutating ordering of match results."""

    SORT_KEYS: dict[str, Callable[[Any], float]] = {
        "score": _score_key,
        "price": _price_key,
        "date": _date_key,
    }
    DIRECTIONS: tuple[str, ...] = ("asc", "desc")

    def rank(
        self,
        results: Iterable[Any],
        sort_by: str = "score",
        direction: str = "desc",
    ) -> list[Any]:
        """Return a new list of ``results`` ordered by ``sort_by``.

        Raises
        ------
        ValueError
            If ``sort_by`` or ``direction`` is not recognised.
        """
        key = self.SORT_KEYS.get(sort_by)
        if key is None:
            raise ValueError(
                f"Unknown sort key {sort_by!r}; expected one of {sorted(self.SORT_KEYS)}"
            )
        if direction not in self.DIRECTIONS:
            raise ValueError(
                f"Unknown sort direction {direction!r}; expected 'asc' or 'desc'"
            )

        # sorted() stays stable with reverse=True, ties keep input order
        ranked = sorted(results, key=key, reverse=(direction == "desc"))

        logger.debug(
            "ranking.ranked",
            sort_by=sort_by,
            direction=direction,
            count=len(ranked),
        )
        return ranked

    @staticmethod
    def filter_min_score(results: Iterable[Any], min_score: float) -> list[Any]:
        """Keep results scoring at least ``min_score``, preserving order."""
        return [r for r in results if _score_key(r) >= min_score]
