"""
Candidate generation strategies.

Each strategy reads from a ``CatalogStore`` and returns base-scored
``Candidate`` objects. Store failures surface as ``StoreError``; the
service decides whether that degrades to an empty contribution.
"""
from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor

from .data_store import CatalogStore
from .models import Candidate, MenuItem, Restaurant, StrategyKind
from .preferences import PreferenceProfile
from .scoring import (
    COLLABORATIVE_BASE_SCORE,
    CONTENT_BASE_SCORE,
    POPULAR_BASE_SCORE,
    SIMILAR_BASE_SCORE,
    TRENDING_BASE_SCORE,
    deduplicate,
    item_score,
)
from .similarity import SimilarityEngine

# Collaborative filtering
CANDIDATE_USER_SAMPLE = 100
SIMILARITY_THRESHOLD = 0.3
NEAR_USER_COUNT = 10
NEAR_USER_ORDER_LIMIT = 10

# Content-based filtering
TOP_CUISINE_COUNT = 3
CONTENT_RESTAURANT_LIMIT = 20
SATURATED_RESTAURANT_COUNT = 5
CONTENT_ITEMS_PER_RESTAURANT = 3

# Popularity / trending / similar
POPULAR_RESTAURANT_LIMIT = 10
POPULAR_ITEMS_PER_RESTAURANT = 2
TRENDING_MIN_RATING = 4.0
TRENDING_RESTAURANT_LIMIT = 5
TRENDING_ITEMS_PER_RESTAURANT = 2
TRENDING_PRICE_THRESHOLD = 300.0
SIMILAR_PRICE_DELTA = 50.0


def _available(menu: list[MenuItem]) -> list[MenuItem]:
    return [item for item in menu if item.is_available]


def collaborative_filtering(
    store: CatalogStore,
    engine: SimilarityEngine,
    user_id: str,
    profile: PreferenceProfile,
    limit: int,
    max_workers: int = 8,
) -> list[Candidate]:
    """Items that users with overlapping restaurant histories ordered elsewhere."""
    others = store.sample_users(user_id, CANDIDATE_USER_SAMPLE)
    if not others:
        return []

    with ThreadPoolExecutor(max_workers=max(1, max_workers)) as executor:
        scores = list(executor.map(lambda u: engine.similarity(user_id, u.id), others))

    near = [(u.id, s) for u, s in zip(others, scores) if s > SIMILARITY_THRESHOLD]
    near.sort(key=lambda pair: pair[1], reverse=True)

    restaurants: dict[str, Restaurant | None] = {}
    candidates: list[Candidate] = []
    for near_user_id, _ in near[:NEAR_USER_COUNT]:
        for order in store.find_orders_by_user(near_user_id, limit=NEAR_USER_ORDER_LIMIT):
            if order.restaurant_id in profile.restaurants:
                continue
            if order.restaurant_id not in restaurants:
                restaurants[order.restaurant_id] = store.get_restaurant_by_id(order.restaurant_id)
            restaurant = restaurants[order.restaurant_id]
            if restaurant is None:
                continue
            for line in order.items:
                candidates.append(Candidate(
                    kind=StrategyKind.collaborative,
                    restaurant=restaurant,
                    item=line.item,
                    base_score=COLLABORATIVE_BASE_SCORE,
                    reason="Users with similar taste ordered this",
                ))

    return deduplicate(candidates)[:limit]


def content_based_filtering(
    store: CatalogStore,
    profile: PreferenceProfile,
    limit: int,
) -> list[Candidate]:
    """Best-matching items from restaurants serving the user's top cuisines."""
    cuisines = profile.top_cuisines(TOP_CUISINE_COUNT)
    if not cuisines:
        return []

    reason = f"Matches your taste for {', '.join(cuisines)}"
    candidates: list[Candidate] = []
    for restaurant in store.find_active_restaurants_by_cuisine(cuisines, CONTENT_RESTAURANT_LIMIT):
        if profile.restaurants.get(restaurant.id, 0) > SATURATED_RESTAURANT_COUNT:
            continue
        ranked = sorted(
            _available(restaurant.menu),
            key=lambda item: item_score(item, profile, restaurant),
            reverse=True,
        )
        for item in ranked[:CONTENT_ITEMS_PER_RESTAURANT]:
            candidates.append(Candidate(
                kind=StrategyKind.content,
                restaurant=restaurant,
                item=item,
                base_score=CONTENT_BASE_SCORE,
                reason=reason,
            ))

    return deduplicate(candidates)[:limit]


def popular_items(store: CatalogStore, limit: int) -> list[Candidate]:
    """Priciest available items of the top-rated restaurants.

    Rating and price stand in for order volume, which is not aggregated.
    """
    candidates: list[Candidate] = []
    for restaurant in store.find_top_rated_active_restaurants(POPULAR_RESTAURANT_LIMIT):
        items = sorted(_available(restaurant.menu), key=lambda i: i.price, reverse=True)
        for item in items[:POPULAR_ITEMS_PER_RESTAURANT]:
            candidates.append(Candidate(
                kind=StrategyKind.popular,
                restaurant=restaurant,
                item=item,
                base_score=POPULAR_BASE_SCORE,
                reason="Popular choice",
            ))
    return candidates[:limit]


def trending_items(store: CatalogStore, limit: int) -> list[Candidate]:
    candidates: list[Candidate] = []
    restaurants = store.find_restaurants_by_rating(TRENDING_MIN_RATING, TRENDING_RESTAURANT_LIMIT)
    for restaurant in restaurants:
        items = [i for i in _available(restaurant.menu) if i.price > TRENDING_PRICE_THRESHOLD]
        for item in items[:TRENDING_ITEMS_PER_RESTAURANT]:
            candidates.append(Candidate(
                kind=StrategyKind.trending,
                restaurant=restaurant,
                item=item,
                base_score=TRENDING_BASE_SCORE,
                reason="Trending now",
            ))
    return candidates[:limit]


def similar_items(
    store: CatalogStore,
    restaurant_id: str,
    item_name: str,
    limit: int,
) -> list[Candidate]:
    """Other available items in the same restaurant with the same category or a close price."""
    restaurant = store.get_restaurant_by_id(restaurant_id)
    if restaurant is None:
        return []
    target = next((i for i in restaurant.menu if i.name == item_name), None)
    if target is None:
        return []

    matches = [
        item for item in _available(restaurant.menu)
        if item.name != item_name
        and (
            (target.category is not None and item.category == target.category)
            or abs(item.price - target.price) < SIMILAR_PRICE_DELTA
        )
    ]
    candidates = [
        Candidate(
            kind=StrategyKind.similar,
            restaurant=restaurant,
            item=item,
            base_score=SIMILAR_BASE_SCORE,
            reason=f"Similar to {item_name}",
        )
        for item in matches
    ]
    return deduplicate(candidates)[:limit]
