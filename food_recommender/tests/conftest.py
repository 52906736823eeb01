from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from food_recommender.recommendations.config import RecommenderConfig
from food_recommender.recommendations.data_store import InMemoryStore, load_store
from food_recommender.recommendations.models import MenuItem, Order, OrderLine, Restaurant, User
from food_recommender.recommendations.service import RecommendationService


class FakeClock:
    def __init__(self, start: float = 1_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_order(oid, user_id, restaurant_id, lines, days_ago=0):
    return Order(
        id=oid,
        user_id=user_id,
        restaurant_id=restaurant_id,
        items=[OrderLine(item=item, quantity=qty, price=item.price) for item, qty in lines],
        created_at=datetime(2026, 9, 30, tzinfo=timezone.utc) - timedelta(days=days_ago),
    )


MARGHERITA = MenuItem(name="Margherita Pizza", price=250, category="Pizza")


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def seed_store() -> InMemoryStore:
    return load_store()


@pytest.fixture
def seed_service(seed_store, clock) -> RecommendationService:
    return RecommendationService(
        seed_store, RecommenderConfig(cache_ttl_seconds=1800, similarity_workers=4), clock,
    )


@pytest.fixture
def tiny_store() -> InMemoryStore:
    """Two Italian places and one Indian place; u1 and u2 share r1."""
    r1 = Restaurant(id="r1", name="Bella", cuisines=["Italian"], rating=4.5, menu=[MARGHERITA])
    r2 = Restaurant(
        id="r2", name="Roma", cuisines=["Italian"], rating=4.0,
        menu=[MenuItem(name="Lasagna", price=380, category="Pasta")],
    )
    r3 = Restaurant(
        id="r3", name="Spice", cuisines=["Indian"], rating=4.8,
        menu=[MenuItem(name="Biryani", price=320, category="Rice")],
    )
    users = [User(id=u) for u in ("u1", "u2", "u3")]
    orders = [
        make_order("o1", "u1", "r1", [(MARGHERITA, 2)], days_ago=3),
        make_order("o2", "u2", "r1", [(MARGHERITA, 1)], days_ago=2),
        make_order("o3", "u2", "r2", [(r2.menu[0], 1)], days_ago=1),
        make_order("o4", "u3", "r3", [(r3.menu[0], 1)], days_ago=1),
    ]
    return InMemoryStore([r1, r2, r3], users, orders)
