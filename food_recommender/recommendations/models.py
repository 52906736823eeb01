from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field

# ── Store records (read-only snapshots) ──────────────────────────────────


class MenuItem(BaseModel):
    name: str = Field(..., min_length=1)
    description: str = ""
    price: float = Field(..., ge=0.0)
    category: str | None = None
    image: str | None = None
    is_veg: bool = True
    is_available: bool = True


class Restaurant(BaseModel):
    id: str
    name: str
    description: str = ""
    cuisines: list[str] = Field(default_factory=list)
    rating: float = Field(default=0.0, ge=0.0, le=5.0)
    image: str | None = None
    is_active: bool = True
    menu: list[MenuItem] = Field(default_factory=list)


class OrderLine(BaseModel):
    item: MenuItem
    quantity: int = Field(..., ge=1)
    price: float = Field(..., ge=0.0)


class Order(BaseModel):
    id: str
    user_id: str
    restaurant_id: str
    items: list[OrderLine] = Field(default_factory=list)
    created_at: datetime


class User(BaseModel):
    id: str
    name: str = ""


# ── Pipeline records ─────────────────────────────────────────────────────


class StrategyKind(str, Enum):
    collaborative = "collaborative"
    content = "content"
    popular = "popular"
    trending = "trending"
    similar = "similar"


@dataclass(frozen=True)
class Candidate:
    """A prospective recommendation emitted by one strategy."""

    kind: StrategyKind
    restaurant: Restaurant
    item: MenuItem
    base_score: float
    reason: str
    # Epoch seconds; only set when a candidate is reused from an earlier run.
    discovered_at: float | None = None

    @property
    def identity(self) -> tuple[str, str]:
        return (self.restaurant.id, self.item.name)


@dataclass(frozen=True)
class ScoredRecommendation:
    candidate: Candidate
    score: float


# ── API schemas ──────────────────────────────────────────────────────────


class RestaurantRef(BaseModel):
    id: str
    name: str
    rating: float


class RecommendationOut(BaseModel):
    id: str
    name: str
    description: str
    price: float
    image: str | None
    restaurant: RestaurantRef
    type: StrategyKind
    score: float
    reason: str
    tags: list[str]


class PersonalizedResponse(BaseModel):
    recommendations: list[RecommendationOut]
    count: int
    generated_at: datetime


class SimilarItemsResponse(BaseModel):
    similar_items: list[RecommendationOut]
    original_item: str


class TrendingResponse(BaseModel):
    trending_items: list[RecommendationOut]
    updated_at: datetime


class CacheClearResponse(BaseModel):
    status: str
    message: str
    cleared_at: datetime


class LoginRequest(BaseModel):
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


_TAGS: dict[StrategyKind, list[str]] = {
    StrategyKind.trending: ["trending"],
    StrategyKind.popular: ["popular"],
    StrategyKind.similar: ["similar"],
}


def to_output(rec: ScoredRecommendation) -> RecommendationOut:
    """Serialise a scored recommendation for API responses."""
    cand = rec.candidate
    return RecommendationOut(
        id=f"{cand.restaurant.id}:{cand.item.name}",
        name=cand.item.name,
        description=cand.item.description,
        price=cand.item.price,
        image=cand.item.image or cand.restaurant.image,
        restaurant=RestaurantRef(
            id=cand.restaurant.id,
            name=cand.restaurant.name,
            rating=cand.restaurant.rating,
        ),
        type=cand.kind,
        score=round(rec.score, 2),
        reason=cand.reason,
        tags=list(_TAGS.get(cand.kind, ["personalized"])),
    )
