from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field, field_validator, model_validator

from ..profiles.models import Profile, as_utc
from ..profiles.normalization import normalize_code


class Direction(str, Enum):
    left = "LEFT"
    right = "RIGHT"


def canonical_pair(code_a: str, code_b: str) -> tuple[str, str]:
    """Return the two codes upper-cased and sorted; the pair's unique key."""
    a, b = normalize_code(code_a), normalize_code(code_b)
    return (a, b) if a <= b else (b, a)


# ── Interaction log records ─────────────────────────────────────────────


class SwipeEvent(BaseModel):
    swiper: str
    target: str
    direction: Direction
    at: datetime

    @field_validator("swiper", "target", mode="before")
    @classmethod
    def _upper(cls, v):
        return normalize_code(v) if isinstance(v, str) else v

    @field_validator("at")
    @classmethod
    def _utc_at(cls, v: datetime) -> datetime:
        return as_utc(v)


class MatchPair(BaseModel):
    member_a: str
    member_b: str
    at: datetime

    @model_validator(mode="after")
    def _canonical_order(self) -> "MatchPair":
        self.member_a, self.member_b = canonical_pair(self.member_a, self.member_b)
        self.at = as_utc(self.at)
        return self

    @property
    def key(self) -> tuple[str, str]:
        return (self.member_a, self.member_b)

    def partner_of(self, code: str) -> str:
        code = normalize_code(code)
        return self.member_b if code == self.member_a else self.member_a


class ExposureEvent(BaseModel):
    viewer: str
    candidate: str
    at: datetime

    @field_validator("viewer", "candidate", mode="before")
    @classmethod
    def _upper(cls, v):
        return normalize_code(v) if isinstance(v, str) else v

    @field_validator("at")
    @classmethod
    def _utc_at(cls, v: datetime) -> datetime:
        return as_utc(v)


# ── Core results ────────────────────────────────────────────────────────


@dataclass(frozen=True)
class RankedCandidate:
    profile: Profile
    score: float
    boosted: bool = False
    fallback: bool = False


@dataclass(frozen=True)
class SwipeResult:
    matched: bool
    partner: Profile | None = None
    created: bool = False


# ── API schemas ─────────────────────────────────────────────────────────


class CandidateRequest(BaseModel):
    code: str = Field(..., min_length=1)
    limit: int = Field(default=10, ge=1, le=50)


class CandidateItem(BaseModel):
    profile: Profile
    score: float
    boosted: bool = False


class CandidateResponse(BaseModel):
    candidates: list[CandidateItem]
    fallback: bool = False


class SwipeRequest(BaseModel):
    swiper: str = Field(..., min_length=1)
    target: str = Field(..., min_length=1)
    direction: str = Field(..., min_length=1, description='"LEFT" or "RIGHT"')


class SwipeResponse(BaseModel):
    matched: bool
    partner: Profile | None = None


class MatchItem(BaseModel):
    partner: Profile
    matched_at: datetime


class MatchListResponse(BaseModel):
    matches: list[MatchItem]
    total: int
