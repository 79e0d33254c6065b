from __future__ import annotations

from typing import Protocol

from ..matching.models import Direction, ExposureEvent, MatchPair, SwipeEvent
from ..profiles.models import Profile


class ProfileStore(Protocol):
    def get(self, code: str) -> Profile | None: ...

    def get_all(self) -> list[Profile]: ...

    def append(self, profile: Profile) -> bool:
        """Store *profile* unless its code exists. Returns whether it was written."""
        ...


class InteractionLog(Protocol):
    def append_swipe(self, event: SwipeEvent) -> None: ...

    def scan_swipes(
        self,
        swiper: str | None = None,
        target: str | None = None,
        direction: Direction | None = None,
    ) -> list[SwipeEvent]: ...

    def append_match(self, pair: MatchPair) -> bool:
        """Append *pair* unless its canonical key exists. Returns whether it was written."""
        ...

    def scan_matches(self, member: str | None = None) -> list[MatchPair]: ...

    def append_exposure(self, event: ExposureEvent) -> None: ...

    def scan_exposures(self, viewer: str | None = None) -> list[ExposureEvent]: ...
