from __future__ import annotations

import logging
import os
from datetime import datetime, timezone

from fastapi import Depends, FastAPI, HTTPException, Query, Request
from starlette.middleware.sessions import SessionMiddleware

from .analytics.aggregator import compute_analytics
from .analytics.store import get_events
from .auth.dependencies import is_admin, require_admin, require_user
from .auth.users import authenticate
from .recommendations.models import (
    CacheClearResponse,
    LoginRequest,
    PersonalizedResponse,
    SimilarItemsResponse,
    TrendingResponse,
    to_output,
)
from .recommendations.service import (
    CacheClearDenied,
    RecommendationService,
    RecommendationsUnavailable,
    get_service,
)

logging.basicConfig(
    level=os.environ.get("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Food Recommendation API", version="1.0.0")
app.add_middleware(
    SessionMiddleware,
    secret_key=os.environ.get("SESSION_SECRET", "food-recs-secret-change-in-production"),
)

_UNAVAILABLE = "Recommendations temporarily unavailable"


def _now() -> datetime:
    return datetime.now(timezone.utc)


# ── Public endpoints ─────────────────────────────────────────────────────


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


# ── Auth endpoints ───────────────────────────────────────────────────────


@app.post("/auth/login")
def login(body: LoginRequest, request: Request) -> dict:
    user = authenticate(body.username, body.password)
    if not user:
        raise HTTPException(status_code=401, detail="Invalid credentials")
    request.session["user"] = user
    return {"status": "ok", "user": user}


@app.post("/auth/logout")
def logout(request: Request) -> dict:
    request.session.clear()
    return {"status": "logged_out"}


@app.get("/auth/me")
def auth_me(user: dict = Depends(require_user)) -> dict:
    return user


# ── Recommendation endpoints ─────────────────────────────────────────────


@app.get("/recommendations/personalized", response_model=PersonalizedResponse)
def personalized(
    limit: int = Query(default=10, ge=1, le=50),
    user: dict = Depends(require_user),
    service: RecommendationService = Depends(get_service),
) -> PersonalizedResponse:
    try:
        recs = service.get_personalized_recommendations(user.get("user_id"), limit)
    except RecommendationsUnavailable:
        logger.error("Personalized recommendations failed for %s", user.get("username"))
        raise HTTPException(status_code=503, detail=_UNAVAILABLE)
    items = [to_output(r) for r in recs]
    return PersonalizedResponse(recommendations=items, count=len(items), generated_at=_now())


@app.get(
    "/recommendations/similar/{restaurant_id}/{item_name}",
    response_model=SimilarItemsResponse,
)
def similar(
    restaurant_id: str,
    item_name: str,
    limit: int = Query(default=5, ge=1, le=50),
    service: RecommendationService = Depends(get_service),
) -> SimilarItemsResponse:
    recs = service.get_similar_items(restaurant_id, item_name, limit)
    return SimilarItemsResponse(
        similar_items=[to_output(r) for r in recs],
        original_item=item_name,
    )


@app.get("/recommendations/trending", response_model=TrendingResponse)
def trending(
    limit: int = Query(default=10, ge=1, le=50),
    service: RecommendationService = Depends(get_service),
) -> TrendingResponse:
    try:
        recs = service.get_trending_items(limit)
    except RecommendationsUnavailable:
        logger.error("Trending recommendations failed")
        raise HTTPException(status_code=503, detail=_UNAVAILABLE)
    return TrendingResponse(trending_items=[to_output(r) for r in recs], updated_at=_now())


# ── Admin endpoints ──────────────────────────────────────────────────────


@app.post("/recommendations/clear-cache", response_model=CacheClearResponse)
def clear_cache(
    user: dict = Depends(require_admin),
    service: RecommendationService = Depends(get_service),
) -> CacheClearResponse:
    try:
        service.clear_caches(authorized=is_admin(user))
    except CacheClearDenied:
        raise HTTPException(status_code=403, detail="Admin access required")
    return CacheClearResponse(
        status="ok",
        message="Recommendation cache cleared",
        cleared_at=_now(),
    )


@app.get("/cache/stats")
def cache_stats(
    user: dict = Depends(require_admin),
    service: RecommendationService = Depends(get_service),
) -> dict:
    return service.cache_stats()


@app.get("/analytics")
def analytics(user: dict = Depends(require_admin)) -> dict:
    return compute_analytics(get_events())
