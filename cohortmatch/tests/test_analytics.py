from __future__ import annotations

from cohortmatch.analytics.aggregator import compute_analytics
from cohortmatch.analytics.store import clear_events, get_events, record_event


def test_get_events_filters_by_type():
    clear_events()
    record_event("swipe", {"direction": "LEFT"})
    record_event("candidates", {"results_returned": 2})
    assert len(get_events()) == 2
    assert [e["direction"] for e in get_events("swipe")] == ["LEFT"]


def test_compute_analytics_averages_and_rates():
    events = [
        {"type": "candidates", "campus": "North", "results_returned": 3, "fallback": False, "response_time_ms": 4.0},
        {"type": "candidates", "campus": "North", "results_returned": 0, "fallback": False, "response_time_ms": 2.0},
        {"type": "candidates", "campus": None, "results_returned": 1, "fallback": True, "response_time_ms": 3.0},
        {"type": "swipe", "direction": "RIGHT", "matched": True},
        {"type": "match", "members": ["AAAAAA", "BBBBBB"]},
    ]
    body = compute_analytics(events)
    assert body["total_candidate_requests"] == 3
    assert body["avg_response_time_ms"] == 3.0
    assert body["fallback_rate"] == 33.3
    assert body["empty_results"] == 1
    assert body["top_campuses"][0] == {"name": "North", "count": 2}
    assert body["swipe_summary"]["right_rate"] == 100.0
    assert body["matches_created"] == 1
