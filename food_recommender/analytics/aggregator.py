from __future__ import annotations

from collections import Counter
from typing import Any

REQUEST_TYPES = ("personalized", "trending", "similar")


def compute_analytics(events: list[dict[str, Any]]) -> dict[str, Any]:
    requests = [e for e in events if e["type"] in REQUEST_TYPES]
    total = len(requests)

    # Requests per endpoint kind
    by_type = Counter(e["type"] for e in requests)

    # Average response time
    times = [e["response_time_ms"] for e in requests if "response_time_ms" in e]
    avg_time = round(sum(times) / len(times), 1) if times else 0.0

    # Which strategies ended up in served lists
    strategy_mix: Counter[str] = Counter()
    for e in requests:
        strategy_mix.update(e.get("strategy_counts", {}) or {})

    # Requests that came back empty
    empty = sum(1 for e in requests if e.get("results_returned", 0) == 0)

    # Cache stats (similar-item requests are never cached)
    cacheable = [e for e in requests if e["type"] != "similar"]
    cache_hits = sum(1 for e in cacheable if e.get("cache_hit"))
    cache_misses = len(cacheable) - cache_hits

    # Most active users
    user_counter: Counter[str] = Counter(
        e["user_id"] for e in requests if e.get("user_id")
    )
    top_users = [{"user_id": u, "count": c} for u, c in user_counter.most_common(10)]

    return {
        "total_requests": total,
        "requests_by_type": {t: by_type.get(t, 0) for t in REQUEST_TYPES},
        "avg_response_time_ms": avg_time,
        "strategy_mix": dict(strategy_mix),
        "empty_results": empty,
        "top_users": top_users,
        "cache_stats": {
            "hits": cache_hits,
            "misses": cache_misses,
            "hit_rate": round(cache_hits / len(cacheable) * 100, 1) if cacheable else 0.0,
        },
    }
