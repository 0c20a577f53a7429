import logging

from pydantic_settings import BaseSettings
from pydantic import model_validator
from functools import lru_cache

DEFAULT_CACHE_NAMESPACE = "placify_cache_"


class Settings(BaseSettings):
    api_base_url: str = "http://localhost:5000/api"
    api_timeout: float = 10.0
    app_env: str = "development"
    log_level: str = "info"
    cache_namespace: str = DEFAULT_CACHE_NAMESPACE
    cache_ttl: int = 300
    cache_quota_bytes: int | None = 5 * 1024 * 1024
    prefetch_delay_seconds: float = 1.0

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}

    @model_validator(mode="after")
    def _normalize(self):
        """Tidy values that commonly arrive slightly off from the environment.

        A trailing slash on the base URL would double up with request paths,
        and an empty namespace would let ``Store.clear()`` wipe unrelated
        entries sharing the session storage. Unknown log levels fall back to
        info rather than breaking logging setup.
        """
        self.api_base_url = self.api_base_url.rstrip("/")
        self.log_level = self.log_level.strip().lower()
        if not isinstance(logging.getLevelName(self.log_level.upper()), int):
            self.log_level = "info"
        if not self.cache_namespace.strip():
            self.cache_namespace = DEFAULT_CACHE_NAMESPACE
        return self


@lru_cache
def get_settings() -> Settings:
    return Settings()
