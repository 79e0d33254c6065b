"""Normalization helpers for free-text profile fields.

Interests, backgrounds, countries and campuses are compared after
case-folding and whitespace collapsing; codes are compared upper-cased.
"""
from __future__ import annotations

import re
import unicodedata
from typing import Any, Iterable

CODE_ALPHABET = "ABCDEFGHJKMNPQRSTUVWXYZ23456789"
CODE_LENGTH = 6

_CODE_RE = re.compile(rf"^[{CODE_ALPHABET}]{{{CODE_LENGTH}}}$")
_TAG_SEPARATORS_RE = re.compile(r"[,;/|]")


def normalize_text(value: Any) -> str:
    """Case-fold and collapse whitespace. Non-strings normalize to ``""``."""
    if not isinstance(value, str):
        return ""
    value = unicodedata.normalize("NFC", value)
    return re.sub(r"\s+", " ", value).strip().casefold()


def normalize_tags(values: Iterable[Any] | None) -> list[str]:
    """Normalize a tag list, dropping blanks and duplicates (first one wins)."""
    if not values or isinstance(values, str):
        return [normalize_text(values)] if normalize_text(values) else []
    seen: set[str] = set()
    tags: list[str] = []
    for raw in values:
        tag = normalize_text(raw)
        if tag and tag not in seen:
            seen.add(tag)
            tags.append(tag)
    return tags


def split_background(value: Any) -> set[str]:
    """Split a background into normalized tags.

    A single canonical tag or free text yields a one-element set; values
    such as ``"Engineering, Design"`` yield one tag per part.
    """
    text = normalize_text(value)
    if not text:
        return set()
    return {part.strip() for part in _TAG_SEPARATORS_RE.split(text) if part.strip()}


def normalize_code(value: Any) -> str:
    """Upper-case and trim a member code without validating it."""
    if not isinstance(value, str):
        return ""
    return value.strip().upper()


def is_valid_code(value: Any) -> bool:
    return bool(_CODE_RE.match(normalize_code(value)))
