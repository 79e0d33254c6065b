from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Iterable

from ..errors import InvalidInput, NotFound
from ..profiles.models import Profile
from ..profiles.normalization import is_valid_code, normalize_code
from ..storage.base import InteractionLog, ProfileStore
from .models import Direction, MatchPair, SwipeEvent, SwipeResult, canonical_pair

logger = logging.getLogger(__name__)


def parse_direction(value: Direction | str) -> Direction:
    if isinstance(value, Direction):
        return value
    if isinstance(value, str):
        try:
            return Direction(value.strip().upper())
        except ValueError:
            pass
    raise InvalidInput(f"Unsupported swipe direction {value!r}; expected LEFT or RIGHT")


def require_code(value: str, field: str = "code") -> str:
    """Return the upper-cased code, or raise ``InvalidInput`` if malformed."""
    if not is_valid_code(value):
        raise InvalidInput(f"Malformed {field} {value!r}")
    return normalize_code(value)


def dedupe_matches(pairs: Iterable[MatchPair]) -> list[MatchPair]:
    """Keep one pair per canonical key, the most recent one."""
    latest: dict[tuple[str, str], MatchPair] = {}
    duplicates = 0
    for pair in pairs:
        current = latest.get(pair.key)
        if current is not None:
            duplicates += 1
            if pair.at <= current.at:
                continue
        latest[pair.key] = pair
    if duplicates:
        logger.warning("Found %d duplicate match rows; keeping the most recent per pair", duplicates)
    return list(latest.values())


def has_liked(log: InteractionLog, swiper: str, target: str) -> bool:
    """Whether *swiper* has ever swiped RIGHT on *target*.

    Any historical RIGHT counts; a later LEFT does not retract it.
    """
    return bool(log.scan_swipes(swiper=swiper, target=target, direction=Direction.right))


def record_swipe(
    profiles: ProfileStore,
    log: InteractionLog,
    swiper: str,
    target: str,
    direction: Direction | str,
    now: datetime | None = None,
    require_existing: bool = False,
) -> SwipeResult:
    """Log a swipe and record a match the first time interest is mutual.

    The swipe is always appended. On a RIGHT swipe that the target has
    already reciprocated, the canonical pair is written once; repeated or
    concurrent calls for the same pair return ``matched=True`` without
    writing again.
    """
    swiper = require_code(swiper, "swiper")
    target = require_code(target, "target")
    if swiper == target:
        raise InvalidInput("A member cannot swipe on themselves")
    direction = parse_direction(direction)
    now = now or datetime.now(timezone.utc)

    if require_existing:
        for code in (swiper, target):
            if profiles.get(code) is None:
                raise NotFound(code)

    log.append_swipe(SwipeEvent(swiper=swiper, target=target, direction=direction, at=now))

    if direction is not Direction.right or not has_liked(log, target, swiper):
        return SwipeResult(matched=False)

    partner = profiles.get(target)
    key = canonical_pair(swiper, target)
    if any(m.key == key for m in log.scan_matches(member=swiper)):
        return SwipeResult(matched=True, partner=partner)

    created = log.append_match(MatchPair(member_a=key[0], member_b=key[1], at=now))
    if created:
        logger.info("New match %s <-> %s", key[0], key[1])
    return SwipeResult(matched=True, partner=partner, created=created)


def list_matches(
    profiles: ProfileStore, log: InteractionLog, code: str,
) -> list[tuple[Profile, datetime]]:
    """Return ``(partner, matched_at)`` for *code*, most recent first, one per partner."""
    code = require_code(code)
    by_partner: dict[str, datetime] = {}
    for pair in dedupe_matches(log.scan_matches(member=code)):
        if code not in pair.key:
            continue
        partner = pair.partner_of(code)
        if partner not in by_partner or pair.at > by_partner[partner]:
            by_partner[partner] = pair.at

    results: list[tuple[Profile, datetime]] = []
    for partner_code, matched_at in by_partner.items():
        partner = profiles.get(partner_code)
        if partner is None:
            logger.warning("Match partner %s has no profile; skipping", partner_code)
            continue
        results.append((partner, matched_at))
    results.sort(key=lambda item: (item[1], item[0].code), reverse=True)
    return results
