from __future__ import annotations

from typing import Any

from ..profiles.models import Profile
from ..profiles.normalization import normalize_tags, normalize_text, split_background
from .config import DEFAULT_MATCHING_CONFIG, MatchingConfig


def _jaccard(a: set[str], b: set[str]) -> float:
    union = a | b
    if not union:
        return 0.0
    return len(a & b) / len(union)


def interest_score(u: Profile, c: Profile) -> float:
    """Jaccard overlap of the two interest sets; 0 when both are empty."""
    return _jaccard(set(normalize_tags(u.interests)), set(normalize_tags(c.interests)))


def background_score(u: Profile, c: Profile) -> float:
    """1/0 on equal backgrounds, Jaccard when either lists several tags."""
    a, b = split_background(u.background), split_background(c.background)
    if not a or not b:
        return 0.0
    if len(a) == 1 and len(b) == 1:
        return 1.0 if a == b else 0.0
    return _jaccard(a, b)


def country_score(u: Profile, c: Profile, config: MatchingConfig = DEFAULT_MATCHING_CONFIG) -> float:
    a, b = normalize_text(u.country), normalize_text(c.country)
    if not a or not b:
        return 0.0
    if a == b:
        return 1.0
    region = config.region_of(a)
    return 1.0 if region is not None and region == config.region_of(b) else 0.0


def breakdown(
    u: Profile, c: Profile, config: MatchingConfig = DEFAULT_MATCHING_CONFIG,
) -> dict[str, Any]:
    """Return the per-component scores behind :func:`score`."""
    return {
        "interest": interest_score(u, c),
        "background": background_score(u, c),
        "country": country_score(u, c, config),
    }


def score(u: Profile, c: Profile, config: MatchingConfig = DEFAULT_MATCHING_CONFIG) -> float:
    """Weighted similarity of candidate *c* for user *u*.

    Missing interests, background or country contribute zero instead of
    raising. The default form is symmetric in its arguments. Weights are
    expected to sum to 1 but are not checked here.
    """
    parts = breakdown(u, c, config)
    return (
        config.w_interest * parts["interest"]
        + config.w_background * parts["background"]
        + config.w_country * parts["country"]
    )
