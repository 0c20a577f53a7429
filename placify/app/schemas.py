from typing import Any

from pydantic import BaseModel


# --- Cache schemas ---

class CacheEnvelope(BaseModel):
    """Persisted form of a cache entry. Times are in milliseconds."""

    data: Any = None
    timestamp: int
    expiration: int

    def is_live(self, now_ms: int) -> bool:
        return now_ms - self.timestamp <= self.expiration


# --- Dashboard schemas ---

class DashboardData(BaseModel):
    role: str
    overview: Any = None
    jobs: Any = None
    recent_jobs: list[Any] | None = None
    applications: Any = None
    stats: Any = None
