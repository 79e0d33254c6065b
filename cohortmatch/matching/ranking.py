"""
Candidate ranking for the swipe deck.

Responsibilities:
- Drop the requester, already-swiped members and confirmed matches.
- Score the remaining pool with the similarity engine.
- Boost candidates that diversify the requester's connections.
- Order deterministically and truncate to the requested size.
- Fall back to a region- and exposure-aware pick when nobody shares any signal.
"""
from __future__ import annotations

import itertools
import logging
import random
from collections import Counter
from datetime import datetime, timezone
from typing import Iterable

import pandas as pd

from ..errors import InvalidInput, NotFound
from ..profiles.models import Profile
from ..profiles.normalization import normalize_text
from ..storage.base import InteractionLog, ProfileStore
from .config import DEFAULT_MATCHING_CONFIG, MatchingConfig
from .models import Direction, ExposureEvent, MatchPair, RankedCandidate, SwipeEvent
from .resolver import dedupe_matches, require_code
from .similarity import score

logger = logging.getLogger(__name__)

_NEVER = datetime.min.replace(tzinfo=timezone.utc)


def _swiped_codes(
    requester: str,
    swipes: Iterable[SwipeEvent],
    config: MatchingConfig,
    now: datetime,
) -> set[str]:
    """Codes the requester has swiped and that are not yet re-admitted."""
    liked: set[str] = set()
    last_left: dict[str, datetime] = {}
    for s in swipes:
        if s.swiper != requester:
            continue
        if s.direction == Direction.right:
            liked.add(s.target)
        elif s.target not in last_left or s.at > last_left[s.target]:
            last_left[s.target] = s.at

    excluded = set(liked)
    for target, at in last_left.items():
        cooldown = config.left_swipe_cooldown
        if cooldown is None or now - at < cooldown:
            excluded.add(target)
    return excluded


def _matched_partners(requester: str, matches: Iterable[MatchPair]) -> set[str]:
    return {m.partner_of(requester) for m in dedupe_matches(matches) if requester in m.key}


def _is_diverse(
    requester: Profile,
    candidate: Profile,
    partner_tags: Counter[str] | None,
    config: MatchingConfig,
) -> bool:
    own_campus = normalize_text(requester.campus)
    their_campus = normalize_text(candidate.campus)
    if own_campus and their_campus and own_campus != their_campus:
        return True
    if partner_tags is None:
        return False
    return any(partner_tags[tag] < config.underrepresented_threshold for tag in candidate.interests)


def _shares_region(requester: Profile, candidate: Profile, config: MatchingConfig) -> bool:
    own, theirs = normalize_text(requester.country), normalize_text(candidate.country)
    if not own or not theirs:
        return False
    if own == theirs:
        return True
    region = config.region_of(own)
    return region is not None and region == config.region_of(theirs)


def _fallback(
    requester: Profile,
    pool: list[Profile],
    exposures: Iterable[ExposureEvent],
    limit: int,
    config: MatchingConfig,
    rng: random.Random,
) -> list[RankedCandidate]:
    last_shown: dict[str, datetime] = {}
    for e in exposures:
        if e.viewer == requester.code and e.at > last_shown.get(e.candidate, _NEVER):
            last_shown[e.candidate] = e.at

    def tie_key(p: Profile) -> tuple[int, datetime]:
        return (0 if _shares_region(requester, p, config) else 1, last_shown.get(p.code, _NEVER))

    ordered = sorted(pool, key=lambda p: (*tie_key(p), p.created_at, p.code))

    picked: list[Profile] = []
    for _, group in itertools.groupby(ordered, key=tie_key):
        members = list(group)
        head = members[: max(config.fallback_top_k, 1)]
        rng.shuffle(head)
        picked.extend(head + members[len(head):])
        if len(picked) >= limit:
            break

    return [RankedCandidate(profile=p, score=0.0, fallback=True) for p in picked[:limit]]


def rank(
    requester_code: str,
    profiles: Iterable[Profile],
    swipes: Iterable[SwipeEvent],
    matches: Iterable[MatchPair],
    limit: int,
    config: MatchingConfig = DEFAULT_MATCHING_CONFIG,
    *,
    exposures: Iterable[ExposureEvent] = (),
    now: datetime | None = None,
    rng: random.Random | None = None,
) -> list[RankedCandidate]:
    """Build the ranked candidate list for *requester_code*.

    Returns an empty list only when filtering leaves nobody. When every
    remaining candidate scores zero, the list comes from the fallback
    path instead and has ``min(limit, pool size)`` entries.
    """
    code = require_code(requester_code)
    if limit < 1:
        raise InvalidInput(f"limit must be at least 1, got {limit}")
    now = now or datetime.now(timezone.utc)

    by_code: dict[str, Profile] = {}
    for p in profiles:
        by_code.setdefault(p.code, p)
    requester = by_code.get(code)
    if requester is None:
        raise NotFound(code)

    partners = _matched_partners(code, matches)
    excluded = {code} | partners | _swiped_codes(code, swipes, config, now)

    own_campus = normalize_text(requester.campus)
    pool = [
        p for c, p in by_code.items()
        if c not in excluded
        and not (config.same_campus_only and own_campus and normalize_text(p.campus) != own_campus)
    ]
    if not pool:
        return []

    partner_tags: Counter[str] | None = None
    partner_profiles = [by_code[c] for c in partners if c in by_code]
    if partner_profiles:
        partner_tags = Counter(tag for p in partner_profiles for tag in p.interests)

    rows = []
    for p in pool:
        base = score(requester, p, config)
        boosted = base > 0 and _is_diverse(requester, p, partner_tags, config)
        rows.append({
            "code": p.code,
            "created_at": p.created_at,
            "_score": min(1.0, base * config.diversity_boost) if boosted else base,
            "_boosted": boosted,
        })

    frame = pd.DataFrame(rows).sort_values(
        ["_score", "created_at", "code"], ascending=[False, True, True],
    )
    top = frame.head(limit)

    if float(top["_score"].iloc[0]) <= 0.0:
        logger.info("No shared signal for %s across %d candidates; using fallback", code, len(pool))
        return _fallback(
            requester,
            pool,
            exposures,
            limit,
            config,
            rng or random.Random(config.fallback_seed),
        )

    return [
        RankedCandidate(
            profile=by_code[row["code"]],
            score=float(row["_score"]),
            boosted=bool(row["_boosted"]),
        )
        for row in top.to_dict(orient="records")
    ]


def rank_candidates(
    profiles: ProfileStore,
    log: InteractionLog,
    requester_code: str,
    limit: int,
    config: MatchingConfig = DEFAULT_MATCHING_CONFIG,
    now: datetime | None = None,
    rng: random.Random | None = None,
) -> list[RankedCandidate]:
    """Rank candidates for a stored member and record what was shown."""
    code = require_code(requester_code)
    if profiles.get(code) is None:
        raise NotFound(code)
    now = now or datetime.now(timezone.utc)

    ranked = rank(
        code,
        profiles.get_all(),
        log.scan_swipes(swiper=code),
        log.scan_matches(member=code),
        limit,
        config,
        exposures=log.scan_exposures(viewer=code),
        now=now,
        rng=rng,
    )

    if config.track_exposures:
        for item in ranked:
            log.append_exposure(ExposureEvent(viewer=code, candidate=item.profile.code, at=now))
    return ranked
