"""
Tabular persistence for profiles and interactions.

Each record type lives in its own CSV table under a data directory:

- ``profiles.csv``  one row per member, interests as a JSON list
- ``swipes.csv``    append-only swipe events
- ``matches.csv``   append-only match pairs in canonical order
- ``exposures.csv`` append-only "shown" events from candidate ranking

Tables are read with pandas on every call; nothing is cached between
requests.
"""
from __future__ import annotations

import json
import logging
from pathlib import Path
from threading import Lock
from typing import Any, Callable, TypeVar

import pandas as pd
from pydantic import ValidationError

from ..errors import StoreUnavailable
from ..matching.models import Direction, ExposureEvent, MatchPair, SwipeEvent
from ..profiles.models import Profile
from ..profiles.normalization import normalize_code

logger = logging.getLogger(__name__)

PROFILE_COLUMNS: list[str] = [
    "code",
    "name",
    "campus",
    "country",
    "background",
    "interests",
    "contact_info",
    "created_at",
]
SWIPE_COLUMNS: list[str] = ["swiper", "target", "direction", "at"]
MATCH_COLUMNS: list[str] = ["member_a", "member_b", "at"]
EXPOSURE_COLUMNS: list[str] = ["viewer", "candidate", "at"]

T = TypeVar("T")


class _Table:
    def __init__(self, path: Path, columns: list[str]) -> None:
        self.path = path
        self.columns = columns

    def read(self) -> pd.DataFrame:
        if not self.path.exists():
            return pd.DataFrame(columns=self.columns)
        try:
            return pd.read_csv(self.path, dtype=str, keep_default_na=False)
        except pd.errors.EmptyDataError:
            return pd.DataFrame(columns=self.columns)
        except (OSError, pd.errors.ParserError) as exc:
            raise StoreUnavailable(f"Cannot read table {self.path}") from exc

    def append(self, row: dict[str, Any]) -> None:
        frame = pd.DataFrame([row], columns=self.columns)
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            write_header = not self.path.exists() or self.path.stat().st_size == 0
            frame.to_csv(self.path, mode="a", header=write_header, index=False)
        except OSError as exc:
            raise StoreUnavailable(f"Cannot write table {self.path}") from exc


def _parse_rows(df: pd.DataFrame, build: Callable[[dict[str, Any]], T], table: str) -> list[T]:
    records: list[T] = []
    for row in df.to_dict(orient="records"):
        try:
            records.append(build(row))
        except (ValidationError, KeyError, ValueError):
            logger.warning("Skipping malformed row in %s: %r", table, row, exc_info=True)
    return records


def _interests_from_cell(cell: Any) -> list[str]:
    if not cell:
        return []
    tags = json.loads(cell)
    if not isinstance(tags, list):
        raise ValueError(f"interests must be a JSON list, got {cell!r}")
    return tags


def _profile_from_row(row: dict[str, Any]) -> Profile:
    return Profile(
        code=row["code"],
        name=row.get("name", ""),
        campus=row.get("campus") or None,
        country=row.get("country") or None,
        background=row.get("background") or None,
        interests=_interests_from_cell(row.get("interests", "")),
        contact_info=row.get("contact_info") or None,
        created_at=row["created_at"],
    )


def _profile_to_row(profile: Profile) -> dict[str, Any]:
    return {
        "code": profile.code,
        "name": profile.name,
        "campus": profile.campus or "",
        "country": profile.country or "",
        "background": profile.background or "",
        "interests": json.dumps(profile.interests, ensure_ascii=False),
        "contact_info": profile.contact_info or "",
        "created_at": profile.created_at.isoformat(),
    }


class TableProfileStore:
    def __init__(self, data_dir: Path) -> None:
        self._table = _Table(Path(data_dir) / "profiles.csv", PROFILE_COLUMNS)
        self._lock = Lock()

    def _load(self) -> list[Profile]:
        return _parse_rows(self._table.read(), _profile_from_row, "profiles")

    def get(self, code: str) -> Profile | None:
        code = normalize_code(code)
        df = self._table.read()
        if df.empty:
            return None
        matches = _parse_rows(df.loc[df["code"].str.upper() == code], _profile_from_row, "profiles")
        return matches[0] if matches else None

    def get_all(self) -> list[Profile]:
        return self._load()

    def append(self, profile: Profile) -> bool:
        with self._lock:
            if self.get(profile.code) is not None:
                return False
            self._table.append(_profile_to_row(profile))
            return True


class TableInteractionLog:
    def __init__(self, data_dir: Path) -> None:
        data_dir = Path(data_dir)
        self._swipes = _Table(data_dir / "swipes.csv", SWIPE_COLUMNS)
        self._matches = _Table(data_dir / "matches.csv", MATCH_COLUMNS)
        self._exposures = _Table(data_dir / "exposures.csv", EXPOSURE_COLUMNS)
        self._lock = Lock()

    # --- swipes ---

    def append_swipe(self, event: SwipeEvent) -> None:
        self._swipes.append({
            "swiper": event.swiper,
            "target": event.target,
            "direction": event.direction.value,
            "at": event.at.isoformat(),
        })

    def scan_swipes(
        self,
        swiper: str | None = None,
        target: str | None = None,
        direction: Direction | None = None,
    ) -> list[SwipeEvent]:
        df = self._swipes.read()
        if df.empty:
            return []
        mask = pd.Series(True, index=df.index)
        if swiper:
            mask = mask & (df["swiper"].str.upper() == normalize_code(swiper))
        if target:
            mask = mask & (df["target"].str.upper() == normalize_code(target))
        if direction is not None:
            mask = mask & (df["direction"].str.upper() == Direction(direction).value)
        return _parse_rows(
            df.loc[mask],
            lambda row: SwipeEvent(
                swiper=row["swiper"],
                target=row["target"],
                direction=row["direction"].upper(),
                at=row["at"],
            ),
            "swipes",
        )

    # --- matches ---

    def append_match(self, pair: MatchPair) -> bool:
        with self._lock:
            # Re-check under the lock; another request may have written the pair.
            if any(m.key == pair.key for m in self.scan_matches(pair.member_a)):
                return False
            self._matches.append({
                "member_a": pair.member_a,
                "member_b": pair.member_b,
                "at": pair.at.isoformat(),
            })
            return True

    def scan_matches(self, member: str | None = None) -> list[MatchPair]:
        df = self._matches.read()
        if df.empty:
            return []
        if member:
            code = normalize_code(member)
            df = df.loc[(df["member_a"].str.upper() == code) | (df["member_b"].str.upper() == code)]
        return _parse_rows(
            df,
            lambda row: MatchPair(member_a=row["member_a"], member_b=row["member_b"], at=row["at"]),
            "matches",
        )

    # --- exposures ---

    def append_exposure(self, event: ExposureEvent) -> None:
        self._exposures.append({
            "viewer": event.viewer,
            "candidate": event.candidate,
            "at": event.at.isoformat(),
        })

    def scan_exposures(self, viewer: str | None = None) -> list[ExposureEvent]:
        df = self._exposures.read()
        if df.empty:
            return []
        if viewer:
            df = df.loc[df["viewer"].str.upper() == normalize_code(viewer)]
        return _parse_rows(
            df,
            lambda row: ExposureEvent(viewer=row["viewer"], candidate=row["candidate"], at=row["at"]),
            "exposures",
        )
