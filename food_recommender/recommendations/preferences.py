from __future__ import annotations

from collections import Counter
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

from .models import Order, Restaurant

HISTORY_LIMIT = 50


@dataclass
class PreferenceProfile:
    """Per-user affinities derived from recent order history.

    Weights are quantity-weighted counts. ``veg_preference`` is never
    inferred from history; it stays ``None`` unless a caller supplies it.
    """

    cuisines: Counter[str] = field(default_factory=Counter)
    restaurants: Counter[str] = field(default_factory=Counter)
    categories: Counter[str] = field(default_factory=Counter)
    min_price: float | None = None
    max_price: float | None = None
    avg_spend: float = 0.0
    veg_preference: bool | None = None

    def top_cuisines(self, n: int) -> list[str]:
        return [c for c, _ in self.cuisines.most_common(n)]


def extract_preferences(
    orders: Iterable[Order],
    restaurants: Mapping[str, Restaurant],
) -> PreferenceProfile:
    """Accumulate a ``PreferenceProfile`` from a user's orders.

    ``restaurants`` maps restaurant id to the restaurant record and supplies
    cuisine tags; orders for unknown restaurants still count towards the
    restaurant, category and price statistics.
    """
    profile = PreferenceProfile()
    total_amount = 0.0
    total_items = 0

    for order in orders:
        restaurant = restaurants.get(order.restaurant_id)
        cuisines = restaurant.cuisines if restaurant else []
        for line in order.items:
            for cuisine in cuisines:
                profile.cuisines[cuisine] += line.quantity
            profile.restaurants[order.restaurant_id] += line.quantity
            if line.item.category:
                profile.categories[line.item.category] += line.quantity

            total_amount += line.price * line.quantity
            total_items += line.quantity
            profile.min_price = (
                line.price if profile.min_price is None else min(profile.min_price, line.price)
            )
            profile.max_price = (
                line.price if profile.max_price is None else max(profile.max_price, line.price)
            )

    profile.avg_spend = total_amount / total_items if total_items > 0 else 0.0
    return profile
