from __future__ import annotations

import json
from collections.abc import Iterable
from pathlib import Path
from typing import Protocol

import pandas as pd

from .config import DEFAULT_RECOMMENDER_CONFIG
from .models import Order, Restaurant, User


class StoreError(RuntimeError):
    """Raised when the order/restaurant/user store cannot serve a read."""


class CatalogStore(Protocol):
    """Read-only view of orders, restaurants and users."""

    def find_orders_by_user(
        self, user_id: str, limit: int | None = None, recent_first: bool = True,
    ) -> list[Order]: ...

    def find_recent_orders(self, restaurant_id: str, limit: int) -> list[Order]: ...

    def sample_users(self, exclude_user_id: str, limit: int) -> list[User]: ...

    def find_active_restaurants_by_cuisine(
        self, cuisines: Iterable[str], limit: int,
    ) -> list[Restaurant]: ...

    def find_top_rated_active_restaurants(self, limit: int) -> list[Restaurant]: ...

    def find_restaurants_by_rating(self, min_rating: float, limit: int) -> list[Restaurant]: ...

    def get_restaurant_by_id(self, restaurant_id: str) -> Restaurant | None: ...


class InMemoryStore:
    """``CatalogStore`` over in-memory records, indexed with pandas frames."""

    def __init__(
        self,
        restaurants: Iterable[Restaurant],
        users: Iterable[User],
        orders: Iterable[Order],
    ) -> None:
        self._restaurants = {r.id: r for r in restaurants}
        self._users = {u.id: u for u in users}
        self._orders = {o.id: o for o in orders}

        self._restaurant_df = pd.DataFrame(
            {
                "id": list(self._restaurants),
                "rating": [r.rating for r in self._restaurants.values()],
                "is_active": [r.is_active for r in self._restaurants.values()],
                "cuisines_list": [
                    [c.strip().lower() for c in r.cuisines if c.strip()]
                    for r in self._restaurants.values()
                ],
            },
            columns=["id", "rating", "is_active", "cuisines_list"],
        )
        self._order_df = pd.DataFrame(
            {
                "id": list(self._orders),
                "user_id": [o.user_id for o in self._orders.values()],
                "restaurant_id": [o.restaurant_id for o in self._orders.values()],
                "created_at": pd.to_datetime(
                    [o.created_at for o in self._orders.values()], utc=True,
                ),
            },
            columns=["id", "user_id", "restaurant_id", "created_at"],
        )

    # ── Orders ───────────────────────────────────────────────────────────

    def _orders_where(
        self, mask: pd.Series, limit: int | None, recent_first: bool,
    ) -> list[Order]:
        rows = self._order_df.loc[mask]
        if recent_first:
            rows = rows.sort_values("created_at", ascending=False, kind="stable")
        if limit is not None:
            rows = rows.head(limit)
        return [self._orders[oid] for oid in rows["id"]]

    def find_orders_by_user(
        self, user_id: str, limit: int | None = None, recent_first: bool = True,
    ) -> list[Order]:
        return self._orders_where(self._order_df["user_id"] == user_id, limit, recent_first)

    def find_recent_orders(self, restaurant_id: str, limit: int) -> list[Order]:
        return self._orders_where(
            self._order_df["restaurant_id"] == restaurant_id, limit, True,
        )

    # ── Users ────────────────────────────────────────────────────────────

    def sample_users(self, exclude_user_id: str, limit: int) -> list[User]:
        users = [u for uid, u in self._users.items() if uid != exclude_user_id]
        return users[:limit]

    # ── Restaurants ──────────────────────────────────────────────────────

    def _to_restaurants(self, frame: pd.DataFrame) -> list[Restaurant]:
        return [self._restaurants[rid] for rid in frame["id"]]

    def find_active_restaurants_by_cuisine(
        self, cuisines: Iterable[str], limit: int,
    ) -> list[Restaurant]:
        wanted = {c.strip().lower() for c in cuisines if c.strip()}
        if not wanted:
            return []
        df = self._restaurant_df
        mask = df["is_active"] & df["cuisines_list"].apply(lambda cl: bool(wanted & set(cl)))
        return self._to_restaurants(df.loc[mask].head(limit))

    def find_top_rated_active_restaurants(self, limit: int) -> list[Restaurant]:
        df = self._restaurant_df
        active = df.loc[df["is_active"]]
        return self._to_restaurants(
            active.sort_values("rating", ascending=False, kind="stable").head(limit)
        )

    def find_restaurants_by_rating(self, min_rating: float, limit: int) -> list[Restaurant]:
        df = self._restaurant_df
        rated = df.loc[df["is_active"] & (df["rating"] >= min_rating)]
        return self._to_restaurants(
            rated.sort_values("rating", ascending=False, kind="stable").head(limit)
        )

    def get_restaurant_by_id(self, restaurant_id: str) -> Restaurant | None:
        return self._restaurants.get(restaurant_id)


def load_store(path: Path = DEFAULT_RECOMMENDER_CONFIG.seed_path) -> InMemoryStore:
    """Build an ``InMemoryStore`` from a JSON seed file."""
    try:
        raw = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        raise StoreError(f"Could not load seed data from {path}") from exc

    return InMemoryStore(
        restaurants=[Restaurant.model_validate(r) for r in raw.get("restaurants", [])],
        users=[User.model_validate(u) for u in raw.get("users", [])],
        orders=[Order.model_validate(o) for o in raw.get("orders", [])],
    )
