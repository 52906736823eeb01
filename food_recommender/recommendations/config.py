from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
load_dotenv(Path(__file__).resolve().parent.parent.parent / ".env")

_DEFAULT_SEED = Path(__file__).resolve().parent.parent / "data" / "seed.json"


@dataclass(frozen=True)
class RecommenderConfig:
    cache_ttl_seconds: float = float(os.getenv("RECS_CACHE_TTL", "1800"))  # 30 minutes
    similarity_workers: int = int(os.getenv("RECS_SIMILARITY_WORKERS", "8"))
    seed_path: Path = Path(os.getenv("RECS_SEED_PATH", str(_DEFAULT_SEED)))


DEFAULT_RECOMMENDER_CONFIG = RecommenderConfig()
