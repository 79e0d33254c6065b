from __future__ import annotations

from unittest.mock import patch

from fastapi.testclient import TestClient

from cohortmatch.analytics.store import clear_events
from cohortmatch.app import app, get_matching_config
from cohortmatch.errors import StoreUnavailable
from cohortmatch.matching.config import MatchingConfig
from cohortmatch.storage.dependencies import reset_stores

client = TestClient(app)

app.dependency_overrides[get_matching_config] = lambda: MatchingConfig(fallback_seed=11)


def _fresh():
    reset_stores()
    clear_events()


def _register(name, **fields) -> str:
    resp = client.post("/profiles", json={"name": name, **fields})
    assert resp.status_code == 201
    return resp.json()["code"]


def _swipe(swiper, target, direction="RIGHT"):
    return client.post("/swipes", json={"swiper": swiper, "target": target, "direction": direction})


# ── Public endpoints ─────────────────────────────────────────────────────


def test_health():
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


def test_metadata_lists_profile_values():
    _fresh()
    _register("Ana", campus="North", country="Peru", interests=["Chess"])
    _register("Bo", campus="South", country="Peru", interests=["chess", "Jazz"])
    body = client.get("/metadata").json()
    assert body["members"] == 2
    assert body["campuses"] == ["North", "South"]
    assert body["countries"] == ["Peru"]
    assert body["interests"] == ["chess", "jazz"]


# ── Profiles ─────────────────────────────────────────────────────────────


def test_register_and_fetch_profile():
    _fresh()
    code = _register("Ana", interests=["Chess", "chess "])
    resp = client.get(f"/profiles/{code.lower()}")
    assert resp.status_code == 200
    body = resp.json()
    assert body["code"] == code
    assert body["interests"] == ["chess"]


def test_register_validation_rejects_blank_name():
    _fresh()
    resp = client.post("/profiles", json={"name": ""})
    assert resp.status_code == 422


def test_unknown_profile_is_404():
    _fresh()
    assert client.get("/profiles/ZZZZZZ").status_code == 404


def test_malformed_code_is_422():
    _fresh()
    assert client.get("/profiles/not-a-code").status_code == 422


# ── Candidates ───────────────────────────────────────────────────────────


def test_candidates_ranked_by_similarity():
    _fresh()
    a = _register("A", background="Law", country="Chile", interests=["x", "y"])
    b = _register("B", background="Law", country="Chile", interests=["x"])
    c = _register("C", background="Law", country="Chile")
    resp = client.post("/candidates", json={"code": a, "limit": 5})
    assert resp.status_code == 200
    body = resp.json()
    assert [item["profile"]["code"] for item in body["candidates"]] == [b, c]
    assert body["candidates"][0]["score"] == 0.75
    assert body["fallback"] is False


def test_candidates_fallback_when_nothing_shared():
    _fresh()
    a = _register("A", interests=["x"])
    b = _register("B", interests=["y"])
    body = client.post("/candidates", json={"code": a, "limit": 5}).json()
    assert [item["profile"]["code"] for item in body["candidates"]] == [b]
    assert body["fallback"] is True


def test_candidates_empty_after_everyone_swiped():
    _fresh()
    a = _register("A")
    b = _register("B")
    _swipe(a, b, "LEFT")
    body = client.post("/candidates", json={"code": a}).json()
    assert body == {"candidates": [], "fallback": False}


def test_candidates_unknown_requester_is_404():
    _fresh()
    resp = client.post("/candidates", json={"code": "ZZZZZZ"})
    assert resp.status_code == 404


def test_candidates_validation_rejects_bad_limit():
    _fresh()
    a = _register("A")
    assert client.post("/candidates", json={"code": a, "limit": 0}).status_code == 422


def test_candidates_store_failure_is_503():
    _fresh()
    a = _register("A")
    with patch(
        "cohortmatch.storage.memory.InMemoryProfileStore.get_all",
        side_effect=StoreUnavailable("down"),
    ):
        resp = client.post("/candidates", json={"code": a})
    assert resp.status_code == 503


# ── Swipes and matches ───────────────────────────────────────────────────


def test_mutual_swipes_create_match():
    _fresh()
    a = _register("Ana")
    b = _register("Bo")
    first = _swipe(a, b)
    assert first.status_code == 200
    assert first.json() == {"matched": False, "partner": None}

    second = _swipe(b, a).json()
    assert second["matched"] is True
    assert second["partner"]["code"] == a

    listed = client.get(f"/profiles/{a}/matches").json()
    assert listed["total"] == 1
    assert listed["matches"][0]["partner"]["code"] == b


def test_repeated_swipes_keep_single_match():
    _fresh()
    a = _register("Ana")
    b = _register("Bo")
    _swipe(a, b)
    _swipe(b, a)
    assert _swipe(a, b).json()["matched"] is True
    assert client.get(f"/profiles/{b}/matches").json()["total"] == 1


def test_swipe_rejects_unsupported_direction():
    _fresh()
    a = _register("Ana")
    b = _register("Bo")
    assert _swipe(a, b, "UP").status_code == 422


def test_swipe_on_unknown_member_is_404():
    _fresh()
    a = _register("Ana")
    assert _swipe(a, "ZZZZZZ").status_code == 404


def test_matched_members_leave_each_others_deck():
    _fresh()
    a = _register("Ana")
    b = _register("Bo")
    c = _register("Cy")
    _swipe(b, a)
    _swipe(a, b)
    codes = [i["profile"]["code"] for i in client.post("/candidates", json={"code": b}).json()["candidates"]]
    assert codes == [c]


# ── Analytics ────────────────────────────────────────────────────────────


def test_analytics_returns_empty_initially():
    _fresh()
    body = client.get("/analytics").json()
    assert body["total_candidate_requests"] == 0
    assert body["swipe_summary"]["total"] == 0
    assert body["matches_created"] == 0


def test_analytics_tracks_activity():
    _fresh()
    a = _register("Ana", campus="North")
    b = _register("Bo")
    client.post("/candidates", json={"code": a})
    _swipe(a, b)
    _swipe(b, a, "LEFT")
    _swipe(b, a)
    body = client.get("/analytics").json()
    assert body["total_candidate_requests"] == 1
    assert body["fallback_rate"] == 100.0
    assert body["top_campuses"] == [{"name": "North", "count": 1}]
    assert body["swipe_summary"] == {
        "total": 3,
        "right": 2,
        "left": 1,
        "right_rate": 66.7,
        "matched_swipes": 1,
    }
    assert body["matches_created"] == 1
