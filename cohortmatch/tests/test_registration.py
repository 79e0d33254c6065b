from __future__ import annotations

import random
from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from cohortmatch.errors import CohortMatchError
from cohortmatch.profiles.models import Profile, ProfileCreate
from cohortmatch.profiles.normalization import CODE_ALPHABET, is_valid_code, normalize_tags
from cohortmatch.profiles.registration import generate_code, register_profile
from cohortmatch.storage.memory import InMemoryProfileStore

NOW = datetime(2024, 2, 1, tzinfo=timezone.utc)


def test_generated_codes_avoid_ambiguous_characters():
    rng = random.Random(0)
    for _ in range(200):
        code = generate_code(rng)
        assert len(code) == 6
        assert not set(code) & set("0O1IL")
        assert is_valid_code(code)


def test_alphabet_excludes_lookalikes():
    assert not set(CODE_ALPHABET) & set("0O1IL")


def test_register_assigns_code_and_normalizes_interests():
    store = InMemoryProfileStore()
    payload = ProfileCreate(
        name="  Ana ",
        campus="North",
        country="Peru",
        interests=["Chess", " chess ", "Board   Games", ""],
    )
    profile = register_profile(store, payload, now=NOW, rng=random.Random(1))
    assert is_valid_code(profile.code)
    assert profile.name == "Ana"
    assert profile.interests == ["chess", "board games"]
    assert profile.created_at == NOW
    assert store.get(profile.code.lower()) == profile


def test_register_retries_taken_codes():
    store = InMemoryProfileStore()
    taken = generate_code(random.Random(5))
    store.append(Profile(code=taken, name="x", created_at=NOW))
    profile = register_profile(store, ProfileCreate(name="Bo"), now=NOW, rng=random.Random(5))
    assert profile.code != taken
    assert len(store.get_all()) == 2


def test_register_gives_up_when_codes_exhausted():
    class FullStore(InMemoryProfileStore):
        def get(self, code):
            return Profile(code=code, name="taken", created_at=NOW)

    with pytest.raises(CohortMatchError):
        register_profile(FullStore(), ProfileCreate(name="Cy"), now=NOW)


def test_blank_name_is_rejected():
    with pytest.raises(ValidationError):
        ProfileCreate(name="   ")


def test_profile_upper_cases_code_and_assumes_utc():
    profile = Profile(code="abcdef", name="x", created_at=datetime(2024, 1, 1))
    assert profile.code == "ABCDEF"
    assert profile.created_at.tzinfo == timezone.utc


def test_normalize_tags_handles_missing_values():
    assert normalize_tags(None) == []
    assert normalize_tags(["A", None, "a", 3]) == ["a"]


@pytest.mark.parametrize("code", ["ABC", "ABCDEFG", "AB0DEF", "ABCDEI", ""])
def test_profile_rejects_codes_outside_alphabet(code):
    with pytest.raises(ValidationError):
        Profile(code=code, name="x", created_at=NOW)
