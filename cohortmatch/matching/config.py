from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from datetime import timedelta
from pathlib import Path

from dotenv import load_dotenv

from ..profiles.normalization import normalize_text

# Load .env from project root
load_dotenv(Path(__file__).resolve().parent.parent.parent / ".env")

logger = logging.getLogger(__name__)


def _env_int(name: str) -> int | None:
    raw = os.getenv(name, "").strip()
    if not raw:
        return None
    try:
        return int(raw)
    except ValueError:
        logger.warning("Ignoring %s=%r: not an integer", name, raw)
        return None


@dataclass(frozen=True)
class MatchingConfig:
    w_interest: float = 0.5
    w_background: float = 0.3
    w_country: float = 0.2

    # Countries in one group count as the same country for scoring.
    region_groups: tuple[frozenset[str], ...] = ()

    diversity_boost: float = 1.1
    underrepresented_threshold: int = 1

    left_swipe_cooldown: timedelta | None = None
    same_campus_only: bool = False

    fallback_top_k: int = 3
    fallback_seed: int | None = field(default_factory=lambda: _env_int("COHORTMATCH_FALLBACK_SEED"))
    track_exposures: bool = True

    def region_of(self, country: str | None) -> int | None:
        """Return the index of the region group containing *country*, if any."""
        country = normalize_text(country)
        if not country:
            return None
        for idx, group in enumerate(self.region_groups):
            if country in {normalize_text(c) for c in group}:
                return idx
        return None


DEFAULT_MATCHING_CONFIG = MatchingConfig()
