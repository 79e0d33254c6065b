from __future__ import annotations

from collections import Counter
from typing import Any


def compute_analytics(events: list[dict[str, Any]]) -> dict[str, Any]:
    requests = [e for e in events if e["type"] == "candidates"]
    swipes = [e for e in events if e["type"] == "swipe"]
    total_requests = len(requests)

    # Average response time
    times = [r["response_time_ms"] for r in requests if "response_time_ms" in r]
    avg_time = round(sum(times) / len(times), 1) if times else 0.0

    fallbacks = sum(1 for r in requests if r.get("fallback"))
    empty = sum(1 for r in requests if r.get("results_returned", 0) == 0)

    # Requesting campuses
    campus_counter: Counter[str] = Counter()
    for r in requests:
        campus_counter[r.get("campus") or "unknown"] += 1
    top_campuses = [{"name": n, "count": c} for n, c in campus_counter.most_common(10)]

    # Swipe outcomes
    right = sum(1 for s in swipes if s.get("direction") == "RIGHT")
    left = len(swipes) - right
    matched = sum(1 for s in swipes if s.get("matched"))
    created = sum(1 for e in events if e["type"] == "match")

    return {
        "total_candidate_requests": total_requests,
        "avg_response_time_ms": avg_time,
        "fallback_rate": round(fallbacks / total_requests * 100, 1) if total_requests else 0.0,
        "empty_results": empty,
        "top_campuses": top_campuses,
        "swipe_summary": {
            "total": len(swipes),
            "right": right,
            "left": left,
            "right_rate": round(right / len(swipes) * 100, 1) if swipes else 0.0,
            "matched_swipes": matched,
        },
        "matches_created": created,
    }
