from __future__ import annotations

import logging

from .cache import TTLCache, pair_key
from .data_store import CatalogStore, StoreError

logger = logging.getLogger(__name__)


def jaccard(a: set[str], b: set[str]) -> float:
    union = a | b
    if not union:
        return 0.0
    return len(a & b) / len(union)


class SimilarityEngine:
    """Jaccard similarity between users over the restaurants they ordered from.

    Results are memoised per unordered user pair.
    """

    def __init__(self, store: CatalogStore, cache: TTLCache[float]) -> None:
        self.store = store
        self.cache = cache

    def _restaurant_set(self, user_id: str) -> set[str]:
        return {o.restaurant_id for o in self.store.find_orders_by_user(user_id)}

    def similarity(self, user_a: str, user_b: str) -> float:
        key = pair_key(user_a, user_b)
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        try:
            restaurants_a = self._restaurant_set(user_a)
            restaurants_b = self._restaurant_set(user_b)
        except StoreError:
            logger.warning(
                "Order lookup failed computing similarity(%s, %s)", user_a, user_b,
                exc_info=True,
            )
            return 0.0

        if not restaurants_a or not restaurants_b:
            score = 0.0
        else:
            score = jaccard(restaurants_a, restaurants_b)

        self.cache.set(key, score)
        return score
