from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, Literal

from app.schemas.preferences import CompletenessResponse, PreferenceRecord
from app.schemas.property import PropertyRecord

SortKey = Literal["score", "price", "date"]
SortDirection = Literal["asc", "desc"]


class CategoryBreakdown(BaseModel):
    category: str
    evaluated: bool
    credit: float
    weight: float
    reason: Optional[str] = None
    details: str = ""


class MatchSummary(BaseModel):
    matched: int = 0
    partial: int = 0
    not_matched: int = 0
    skipped: int = 0


class MatchResultResponse(BaseModel):
    """One ranked match, serialised with the names the UI reads."""

    model_config = ConfigDict(populate_by_name=True)

    property: PropertyRecord
    match_score: int = Field(ge=0, le=100, alias="matchScore")
    match_reasons: list[str] = Field(default_factory=list, alias="matchReasons")


class MatchDetailResponse(MatchResultResponse):
    raw_score: float = Field(alias="rawScore")
    is_perfect_match: bool = Field(False, alias="isPerfectMatch")
    categories: list[CategoryBreakdown] = []
    summary: MatchSummary = MatchSummary()


class MatchListResponse(BaseModel):
    results: list[MatchResultResponse]
    completeness: CompletenessResponse
    total: int
    scored: bool
    sort_by: SortKey
    direction: SortDirection


class ScoreRequest(BaseModel):
    """Stateless scoring: preferences and candidate listings in one body."""

    preferences: PreferenceRecord = PreferenceRecord()
    properties: list[PropertyRecord] = []
    sort_by: SortKey = "score"
    direction: SortDirection = "desc"


class ScoreResponse(BaseModel):
    completeness: CompletenessResponse
    results: list[MatchDetailResponse]
    total: int
    scored: bool
