from __future__ import annotations

import logging
import random
from datetime import datetime, timezone

from ..errors import CohortMatchError
from ..storage.base import ProfileStore
from .models import Profile, ProfileCreate
from .normalization import CODE_ALPHABET, CODE_LENGTH

logger = logging.getLogger(__name__)

MAX_CODE_ATTEMPTS = 20


def generate_code(rng: random.Random | None = None) -> str:
    """Return a random member code without look-alike characters (0/O, 1/I/L)."""
    rng = rng or random.SystemRandom()
    return "".join(rng.choice(CODE_ALPHABET) for _ in range(CODE_LENGTH))


def register_profile(
    store: ProfileStore,
    payload: ProfileCreate,
    now: datetime | None = None,
    rng: random.Random | None = None,
) -> Profile:
    """
    Create a profile with a fresh unique code and append it to *store*.

    Interests are normalized and de-duplicated by the ``Profile`` model.
    A generated code that already exists is retried; the store's
    append-if-absent check covers codes taken between lookup and write.
    """
    now = now or datetime.now(timezone.utc)
    for _ in range(MAX_CODE_ATTEMPTS):
        code = generate_code(rng)
        if store.get(code) is not None:
            continue
        profile = Profile(code=code, created_at=now, **payload.model_dump())
        if store.append(profile):
            return profile
        logger.warning("Code %s was taken during registration; retrying", code)
    raise CohortMatchError(f"Could not allocate a unique code after {MAX_CODE_ATTEMPTS} attempts")
