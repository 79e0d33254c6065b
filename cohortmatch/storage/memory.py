from __future__ import annotations

from threading import Lock

from ..matching.models import Direction, ExposureEvent, MatchPair, SwipeEvent
from ..profiles.models import Profile
from ..profiles.normalization import normalize_code


class InMemoryProfileStore:
    def __init__(self) -> None:
        self._profiles: dict[str, Profile] = {}
        self._lock = Lock()

    def get(self, code: str) -> Profile | None:
        return self._profiles.get(normalize_code(code))

    def get_all(self) -> list[Profile]:
        return list(self._profiles.values())

    def append(self, profile: Profile) -> bool:
        with self._lock:
            if profile.code in self._profiles:
                return False
            self._profiles[profile.code] = profile
            return True

    def clear(self) -> None:
        with self._lock:
            self._profiles.clear()


class InMemoryInteractionLog:
    def __init__(self) -> None:
        self._swipes: list[SwipeEvent] = []
        self._matches: list[MatchPair] = []
        self._exposures: list[ExposureEvent] = []
        self._lock = Lock()

    def append_swipe(self, event: SwipeEvent) -> None:
        with self._lock:
            self._swipes.append(event)

    def scan_swipes(
        self,
        swiper: str | None = None,
        target: str | None = None,
        direction: Direction | None = None,
    ) -> list[SwipeEvent]:
        swiper = normalize_code(swiper) if swiper else None
        target = normalize_code(target) if target else None
        return [
            s for s in list(self._swipes)
            if (swiper is None or s.swiper == swiper)
            and (target is None or s.target == target)
            and (direction is None or s.direction == direction)
        ]

    def append_match(self, pair: MatchPair) -> bool:
        with self._lock:
            if any(m.key == pair.key for m in self._matches):
                return False
            self._matches.append(pair)
            return True

    def scan_matches(self, member: str | None = None) -> list[MatchPair]:
        member = normalize_code(member) if member else None
        return [
            m for m in list(self._matches)
            if member is None or member in m.key
        ]

    def append_exposure(self, event: ExposureEvent) -> None:
        with self._lock:
            self._exposures.append(event)

    def scan_exposures(self, viewer: str | None = None) -> list[ExposureEvent]:
        viewer = normalize_code(viewer) if viewer else None
        return [e for e in list(self._exposures) if viewer is None or e.viewer == viewer]

    def clear(self) -> None:
        with self._lock:
            self._swipes.clear()
            self._matches.clear()
            self._exposures.clear()
