from __future__ import annotations

import time
from collections.abc import Iterable

from .models import Candidate, MenuItem, Restaurant, ScoredRecommendation
from .preferences import PreferenceProfile

# Item score weights (sum to 1.0)
PRICE_WEIGHT = 0.4
CATEGORY_WEIGHT = 0.3
DIETARY_WEIGHT = 0.2
RATING_WEIGHT = 0.1

CATEGORY_SATURATION = 10.0
MAX_RATING = 5.0

# Strategy base scores
COLLABORATIVE_BASE_SCORE = 0.8
CONTENT_BASE_SCORE = 0.7
POPULAR_BASE_SCORE = 0.6
TRENDING_BASE_SCORE = 0.85
SIMILAR_BASE_SCORE = 0.9

ITEM_SCORE_BOOST = 0.5
DECAY_WINDOW_SECONDS = 24 * 60 * 60
DECAY_FLOOR = 0.5


def item_score(
    item: MenuItem,
    profile: PreferenceProfile,
    restaurant: Restaurant | None = None,
) -> float:
    """Score an item against a preference profile.

    Weighted sum of price proximity to average spend, category affinity,
    dietary match and restaurant rating. Not clamped.
    """
    score = 0.0

    if profile.avg_spend > 0:
        price_diff = abs(item.price - profile.avg_spend)
        score += PRICE_WEIGHT * max(0.0, 1.0 - price_diff / profile.avg_spend)

    if item.category and item.category in profile.categories:
        category_score = min(1.0, profile.categories[item.category] / CATEGORY_SATURATION)
        score += CATEGORY_WEIGHT * category_score

    if profile.veg_preference is not None and item.is_veg == profile.veg_preference:
        score += DIETARY_WEIGHT

    if restaurant is not None:
        score += RATING_WEIGHT * (restaurant.rating / MAX_RATING)

    return score


def decay_factor(discovered_at: float, now: float) -> float:
    age = max(0.0, now - discovered_at)
    return max(DECAY_FLOOR, 1.0 - age / DECAY_WINDOW_SECONDS)


def composite_score(
    candidate: Candidate,
    profile: PreferenceProfile,
    now: float | None = None,
) -> float:
    score = candidate.base_score + ITEM_SCORE_BOOST * item_score(
        candidate.item, profile, candidate.restaurant,
    )
    if candidate.discovered_at is not None:
        score *= decay_factor(candidate.discovered_at, time.time() if now is None else now)
    return score


def deduplicate(candidates: Iterable[Candidate]) -> list[Candidate]:
    """Drop candidates whose (restaurant id, item name) was already seen."""
    seen: set[tuple[str, str]] = set()
    unique: list[Candidate] = []
    for cand in candidates:
        if cand.identity in seen:
            continue
        seen.add(cand.identity)
        unique.append(cand)
    return unique


def fuse(
    candidates: Iterable[Candidate],
    profile: PreferenceProfile,
    limit: int,
    now: float | None = None,
) -> list[ScoredRecommendation]:
    """Deduplicate, score, stable-sort descending and truncate to ``limit``.

    Ties keep first-seen order, so earlier strategies win.
    """
    scored = [
        ScoredRecommendation(candidate=c, score=composite_score(c, profile, now))
        for c in deduplicate(candidates)
    ]
    scored.sort(key=lambda r: r.score, reverse=True)
    return scored[:limit]
