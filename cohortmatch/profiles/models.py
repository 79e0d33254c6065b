from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, Field, field_validator

from .normalization import (
    CODE_ALPHABET,
    CODE_LENGTH,
    is_valid_code,
    normalize_code,
    normalize_tags,
)


def as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class Profile(BaseModel):
    code: str = Field(..., min_length=1)
    name: str = ""
    campus: str | None = None
    country: str | None = None
    background: str | None = None
    interests: list[str] = Field(default_factory=list)
    contact_info: str | None = None
    created_at: datetime

    @field_validator("code", mode="before")
    @classmethod
    def _upper_code(cls, v):
        if not isinstance(v, str):
            return v
        if not is_valid_code(v):
            raise ValueError(
                f"code must be {CODE_LENGTH} characters from {CODE_ALPHABET!r}, got {v!r}"
            )
        return normalize_code(v)

    @field_validator("interests", mode="before")
    @classmethod
    def _dedupe_interests(cls, v):
        return normalize_tags(v)

    @field_validator("created_at")
    @classmethod
    def _utc_created_at(cls, v: datetime) -> datetime:
        return as_utc(v)


class ProfileCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=120)
    campus: str | None = Field(default=None, max_length=120)
    country: str | None = Field(default=None, max_length=80)
    background: str | None = Field(default=None, max_length=200)
    interests: list[str] = Field(default_factory=list, max_length=30)
    contact_info: str | None = Field(default=None, max_length=200)

    @field_validator("name")
    @classmethod
    def _strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name must not be blank")
        return v
