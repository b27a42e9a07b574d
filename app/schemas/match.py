from pydantic import BaseModel, Field, field_validator
from typing import Optional

from app.schemas.profile import ProfileSummary


class CompatibilityResult(BaseModel):
    score: float = Field(ge=0.0, le=1.0)
    factors: list[str] = Field(min_length=1)

    model_config = {"frozen": True}


class MatchRecord(BaseModel):
    requester_id: str
    candidate_id: str
    compatibility: CompatibilityResult
    recommended_activity: str = Field(min_length=1)
    conversation_starters: list[str] = Field(min_length=1, max_length=5)

    @field_validator("requester_id", "candidate_id", mode="before")
    @classmethod
    def _coerce_id(cls, v) -> str:
        return str(v)

    @property
    def score(self) -> float:
        return self.compatibility.score


class MatchResponse(BaseModel):
    user: Optional[ProfileSummary] = None
    compatibility_score: float
    match_factors: list[str]
    recommended_activity: str
    conversation_starters: list[str]


class MatchListResponse(BaseModel):
    matches: list[MatchResponse]


class StoredMatch(BaseModel):
    """A persisted match row as read back from the match store.

    Content fields may be empty for rows written before enrichment existed;
    callers are expected to substitute placeholders.
    """

    requester_id: str
    candidate_id: str
    compatibility_score: float
    match_factors: list[str] = []
    recommended_activity: Optional[str] = None
    conversation_starters: list[str] = []

    model_config = {"from_attributes": True}

    @field_validator("requester_id", "candidate_id", mode="before")
    @classmethod
    def _coerce_id(cls, v) -> str:
        return str(v)

    @field_validator("match_factors", "conversation_starters", mode="before")
    @classmethod
    def _none_to_empty(cls, v):
        return v or []
