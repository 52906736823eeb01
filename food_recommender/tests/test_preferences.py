from __future__ import annotations

from datetime import datetime, timezone

import pytest

from food_recommender.recommendations.models import MenuItem, Order, OrderLine, Restaurant
from food_recommender.recommendations.preferences import PreferenceProfile, extract_preferences

PIZZA = MenuItem(name="Margherita Pizza", price=250, category="Pizza")
NAAN = MenuItem(name="Garlic Naan", price=60, category="Breads")
WATER = MenuItem(name="Water", price=20)

RESTAURANTS = {
    "r1": Restaurant(id="r1", name="Bella", cuisines=["Italian"], rating=4.5),
    "r2": Restaurant(id="r2", name="Spice", cuisines=["Indian", "Mughlai"], rating=4.7),
}


def _order(oid, restaurant_id, lines):
    return Order(
        id=oid,
        user_id="u1",
        restaurant_id=restaurant_id,
        items=[OrderLine(item=i, quantity=q, price=i.price) for i, q in lines],
        created_at=datetime(2026, 9, 1, tzinfo=timezone.utc),
    )


def test_single_order_profile():
    profile = extract_preferences([_order("o1", "r1", [(PIZZA, 2)])], RESTAURANTS)
    assert profile.cuisines == {"Italian": 2}
    assert profile.restaurants == {"r1": 2}
    assert profile.categories == {"Pizza": 2}
    assert profile.avg_spend == 250
    assert profile.min_price == 250
    assert profile.max_price == 250


def test_weights_accumulate_by_quantity_across_orders():
    orders = [
        _order("o1", "r1", [(PIZZA, 1)]),
        _order("o2", "r2", [(NAAN, 3), (WATER, 1)]),
    ]
    profile = extract_preferences(orders, RESTAURANTS)
    assert profile.cuisines == {"Italian": 1, "Indian": 4, "Mughlai": 4}
    assert profile.restaurants == {"r1": 1, "r2": 4}
    # uncategorised items are not counted as a category
    assert profile.categories == {"Pizza": 1, "Breads": 3}
    assert profile.min_price == 20
    assert profile.max_price == 250
    assert profile.avg_spend == pytest.approx((250 + 180 + 20) / 5)


def test_unknown_restaurant_contributes_no_cuisine():
    profile = extract_preferences([_order("o1", "gone", [(PIZZA, 1)])], RESTAURANTS)
    assert not profile.cuisines
    assert profile.restaurants == {"gone": 1}


def test_top_cuisines_ranked_by_weight():
    profile = PreferenceProfile()
    profile.cuisines.update({"Thai": 1, "Italian": 5, "Indian": 3, "Chinese": 2})
    assert profile.top_cuisines(3) == ["Italian", "Indian", "Chinese"]


def test_empty_history_gives_empty_profile():
    profile = extract_preferences([], RESTAURANTS)
    assert profile.avg_spend == 0.0
    assert profile.min_price is None
    assert profile.veg_preference is None
