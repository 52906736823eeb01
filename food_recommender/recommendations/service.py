from __future__ import annotations

import logging
import threading
import time
from collections import Counter
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from typing import Any

from ..analytics.store import record_event
from .cache import TTLCache
from .config import DEFAULT_RECOMMENDER_CONFIG, RecommenderConfig
from .data_store import CatalogStore, StoreError, load_store
from .models import Candidate, Restaurant, ScoredRecommendation
from .preferences import HISTORY_LIMIT, PreferenceProfile, extract_preferences
from .scoring import fuse
from .similarity import SimilarityEngine
from .strategies import (
    collaborative_filtering,
    content_based_filtering,
    popular_items,
    similar_items,
    trending_items,
)

logger = logging.getLogger(__name__)

TRENDING_CACHE_KEY = "__trending__"

# (requested limit, ranked list)
CachedList = tuple[int, list[ScoredRecommendation]]


class RecommendationsUnavailable(RuntimeError):
    """Even the fallback store reads failed; nothing can be recommended."""


class CacheClearDenied(PermissionError):
    """Cache clear attempted without admin authorisation."""


class RecommendationService:
    """Entry point for personalised, similar-item and trending recommendations."""

    def __init__(
        self,
        store: CatalogStore,
        config: RecommenderConfig = DEFAULT_RECOMMENDER_CONFIG,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.store = store
        self.config = config
        self.recommendation_cache: TTLCache[CachedList] = TTLCache(config.cache_ttl_seconds, clock)
        self.similarity_cache: TTLCache[float] = TTLCache(config.cache_ttl_seconds, clock)
        self.similarity = SimilarityEngine(store, self.similarity_cache)

    # ── Helpers ──────────────────────────────────────────────────────────

    @staticmethod
    def _safely(
        name: str, fn: Callable[..., list[Candidate]], *args: Any,
    ) -> tuple[list[Candidate], bool]:
        """Run a strategy; returns ``(candidates, ok)`` with ``ok`` False on store failure."""
        try:
            return fn(*args), True
        except StoreError:
            logger.warning("%s strategy failed, contributing no candidates", name, exc_info=True)
            return [], False

    def _cached(self, key: str, limit: int) -> list[ScoredRecommendation] | None:
        cached = self.recommendation_cache.get(key)
        if cached is not None and cached[0] == limit:
            return list(cached[1])
        return None

    def _load_restaurants(self, restaurant_ids: set[str]) -> dict[str, Restaurant]:
        restaurants: dict[str, Restaurant] = {}
        try:
            for rid in restaurant_ids:
                restaurant = self.store.get_restaurant_by_id(rid)
                if restaurant is not None:
                    restaurants[rid] = restaurant
        except StoreError:
            logger.warning("Restaurant lookup failed while building preferences", exc_info=True)
        return restaurants

    @staticmethod
    def _record(
        kind: str,
        start_time: float,
        recs: list[ScoredRecommendation],
        cache_hit: bool,
        **extra: Any,
    ) -> None:
        elapsed_ms = round((time.time() - start_time) * 1000, 1)
        record_event(kind, {
            **extra,
            "results_returned": len(recs),
            "strategy_counts": dict(Counter(r.candidate.kind.value for r in recs)),
            "response_time_ms": elapsed_ms,
            "cache_hit": cache_hit,
        })

    # ── Public API ───────────────────────────────────────────────────────

    def get_personalized_recommendations(
        self, user_id: str | None, limit: int = 10,
    ) -> list[ScoredRecommendation]:
        """Rank items for ``user_id``, falling back to trending without history."""
        start_time = time.time()
        self.recommendation_cache.sweep()

        if not user_id:
            return self.get_trending_items(limit)

        cached = self._cached(user_id, limit)
        if cached is not None:
            self._record("personalized", start_time, cached, True, user_id=user_id, limit=limit)
            return cached

        try:
            orders = self.store.find_orders_by_user(
                user_id, limit=HISTORY_LIMIT, recent_first=True,
            )
        except StoreError:
            logger.warning("Order history unavailable for %s, serving trending", user_id, exc_info=True)
            return self.get_trending_items(limit)

        if not orders:
            return self.get_trending_items(limit)

        profile = extract_preferences(
            orders, self._load_restaurants({o.restaurant_id for o in orders}),
        )

        with ThreadPoolExecutor(max_workers=3) as executor:
            futures = [
                executor.submit(
                    self._safely, "collaborative", collaborative_filtering,
                    self.store, self.similarity, user_id, profile, limit,
                    self.config.similarity_workers,
                ),
                executor.submit(
                    self._safely, "content", content_based_filtering,
                    self.store, profile, limit,
                ),
                executor.submit(
                    self._safely, "popular", popular_items, self.store, limit // 2,
                ),
            ]
            results = [f.result() for f in futures]

        candidates = [c for cands, _ in results for c in cands]
        if not candidates:
            logger.info("No personalized candidates for %s, serving trending", user_id)
            return self.get_trending_items(limit)

        recs = fuse(candidates, profile, limit)
        # Partial results from a store outage are served but not cached
        if all(ok for _, ok in results):
            self.recommendation_cache.set(user_id, (limit, recs))
        self._record("personalized", start_time, recs, False, user_id=user_id, limit=limit)
        return list(recs)

    def get_trending_items(self, limit: int = 10) -> list[ScoredRecommendation]:
        """Trending items, backfilled with popular ones when trending runs short.

        Raises ``RecommendationsUnavailable`` only when both reads fail.
        """
        start_time = time.time()
        cached = self._cached(TRENDING_CACHE_KEY, limit)
        if cached is not None:
            self._record("trending", start_time, cached, True, limit=limit)
            return cached

        failures = 0
        try:
            trending = trending_items(self.store, limit)
        except StoreError:
            logger.warning("Trending lookup failed", exc_info=True)
            trending, failures = [], failures + 1

        popular: list[Candidate] = []
        if len(trending) < limit:
            try:
                popular = popular_items(self.store, limit)
            except StoreError:
                logger.warning("Popularity lookup failed", exc_info=True)
                failures += 1

        if failures == 2:
            raise RecommendationsUnavailable("Trending and popularity lookups both failed")

        recs = fuse([*trending, *popular], PreferenceProfile(), limit)
        if failures == 0:
            self.recommendation_cache.set(TRENDING_CACHE_KEY, (limit, recs))
        self._record("trending", start_time, recs, False, limit=limit)
        return list(recs)

    def get_similar_items(
        self, restaurant_id: str, item_name: str, limit: int = 5,
    ) -> list[ScoredRecommendation]:
        start_time = time.time()
        candidates, _ = self._safely(
            "similar", similar_items, self.store, restaurant_id, item_name, limit,
        )
        recs = fuse(candidates, PreferenceProfile(), limit)
        self._record(
            "similar", start_time, recs, False,
            restaurant_id=restaurant_id, item_name=item_name, limit=limit,
        )
        return recs

    def clear_caches(self, *, authorized: bool) -> None:
        if not authorized:
            raise CacheClearDenied("Admin access required")
        self.recommendation_cache.clear()
        self.similarity_cache.clear()
        logger.info("Recommendation and similarity caches cleared")

    def cache_stats(self) -> dict:
        return {
            "recommendations": self.recommendation_cache.stats(),
            "similarity": self.similarity_cache.stats(),
        }


_service: RecommendationService | None = None
_service_lock = threading.Lock()


def get_service() -> RecommendationService:
    """Return the process-wide service, loading the seed store on first call."""
    global _service
    with _service_lock:
        if _service is None:
            _service = RecommendationService(load_store(DEFAULT_RECOMMENDER_CONFIG.seed_path))
    return _service
