from __future__ import annotations

from food_recommender.recommendations.cache import TTLCache
from food_recommender.recommendations.data_store import InMemoryStore
from food_recommender.recommendations.models import MenuItem, Restaurant, StrategyKind, User
from food_recommender.recommendations.preferences import PreferenceProfile
from food_recommender.recommendations.similarity import SimilarityEngine
from food_recommender.recommendations.strategies import (
    collaborative_filtering,
    content_based_filtering,
    popular_items,
    similar_items,
    trending_items,
)


def _u1_profile():
    profile = PreferenceProfile(avg_spend=250.0, min_price=250.0, max_price=250.0)
    profile.cuisines["Italian"] = 2
    profile.restaurants["r1"] = 2
    profile.categories["Pizza"] = 2
    return profile


def _names(candidates):
    return [c.item.name for c in candidates]


# ── Collaborative ────────────────────────────────────────────────────────


def test_collaborative_surfaces_items_from_unvisited_restaurants(seed_store, clock):
    engine = SimilarityEngine(seed_store, TTLCache(1800, clock))
    cands = collaborative_filtering(seed_store, engine, "u1", _u1_profile(), limit=10)
    assert _names(cands) == ["Lasagna", "Panna Cotta"]
    assert all(c.restaurant.id == "r3" for c in cands)
    assert all(c.kind == StrategyKind.collaborative for c in cands)
    assert all(c.base_score == 0.8 for c in cands)
    assert cands[0].reason == "Users with similar taste ordered this"


def test_collaborative_empty_when_nobody_is_similar(seed_store, clock):
    engine = SimilarityEngine(seed_store, TTLCache(1800, clock))
    profile = PreferenceProfile()
    profile.restaurants["r2"] = 4
    # u3 only ordered from r2, nobody else did
    assert collaborative_filtering(seed_store, engine, "u3", profile, limit=10) == []


def test_collaborative_respects_limit(seed_store, clock):
    engine = SimilarityEngine(seed_store, TTLCache(1800, clock))
    cands = collaborative_filtering(seed_store, engine, "u1", _u1_profile(), limit=1)
    assert _names(cands) == ["Lasagna"]


# ── Content-based ────────────────────────────────────────────────────────


def test_content_based_ranks_items_of_preferred_cuisines(seed_store):
    cands = content_based_filtering(seed_store, _u1_profile(), limit=10)
    assert {c.restaurant.id for c in cands} == {"r1", "r3"}
    assert _names(cands)[:3] == ["Margherita Pizza", "Farmhouse Pizza", "Garlic Bread"]
    assert _names(cands)[3] == "Quattro Formaggi"
    assert all(c.reason == "Matches your taste for Italian" for c in cands)
    # inactive Italian restaurant and unavailable items never appear
    assert "Risotto" not in _names(cands)
    assert "Truffle Pizza" not in _names(cands)


def test_content_based_skips_saturated_restaurants(seed_store):
    profile = _u1_profile()
    profile.restaurants["r1"] = 6
    cands = content_based_filtering(seed_store, profile, limit=10)
    assert {c.restaurant.id for c in cands} == {"r3"}


def test_content_based_empty_without_cuisines(seed_store):
    assert content_based_filtering(seed_store, PreferenceProfile(), limit=10) == []


# ── Popular / trending ───────────────────────────────────────────────────


def test_popular_takes_priciest_items_of_top_rated(seed_store):
    cands = popular_items(seed_store, limit=4)
    assert _names(cands) == ["Butter Chicken", "Paneer Tikka", "Pepperoni Pizza", "Farmhouse Pizza"]
    assert all(c.base_score == 0.6 and c.reason == "Popular choice" for c in cands)


def test_trending_needs_rating_and_price_threshold(seed_store):
    cands = trending_items(seed_store, limit=20)
    assert all(c.restaurant.rating >= 4 for c in cands)
    assert all(c.item.price > 300 for c in cands)
    assert all(c.restaurant.is_active for c in cands)
    assert "Chilli Chicken" not in _names(cands)  # Dragon Wok is rated 3.8
    assert _names(cands)[:2] == ["Butter Chicken", "Paneer Tikka"]
    assert all(c.base_score == 0.85 for c in cands)


def test_trending_caps_items_per_restaurant():
    menu = [MenuItem(name=f"Dish {i}", price=400 + i) for i in range(5)]
    store = InMemoryStore([Restaurant(id="r", name="R", rating=4.5, menu=menu)], [], [])
    assert _names(trending_items(store, limit=10)) == ["Dish 0", "Dish 1"]


# ── Similar items ────────────────────────────────────────────────────────


def test_similar_items_same_category_or_close_price(seed_store):
    cands = similar_items(seed_store, "r1", "Margherita Pizza", limit=5)
    assert _names(cands) == ["Farmhouse Pizza", "Pepperoni Pizza", "Garlic Bread"]
    assert all(c.reason == "Similar to Margherita Pizza" for c in cands)
    assert all(c.base_score == 0.9 for c in cands)


def test_similar_items_unknown_inputs_are_empty(seed_store):
    assert similar_items(seed_store, "nope", "Margherita Pizza", limit=5) == []
    assert similar_items(seed_store, "r1", "Calzone", limit=5) == []


def test_similar_items_price_delta_is_strict():
    menu = [
        MenuItem(name="Ref", price=200, category="A"),
        MenuItem(name="Edge", price=250, category="B"),
        MenuItem(name="Inside", price=249, category="C"),
    ]
    store = InMemoryStore([Restaurant(id="r", name="R", menu=menu)], [User(id="u")], [])
    assert _names(similar_items(store, "r", "Ref", limit=5)) == ["Inside"]
