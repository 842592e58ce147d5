from __future__ import annotations

import json
import os
from functools import lru_cache
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import PrivateAttr
from pydantic_settings import BaseSettings

load_dotenv()


def _parse_list(raw: Optional[str]) -> List[str]:
    """Accept a JSON array or a comma separated string."""
    if not raw:
        return []
    try:
        maybe_json = json.loads(raw)
        if isinstance(maybe_json, list):
            return [str(x).strip() for x in maybe_json if str(x).strip()]
        if isinstance(maybe_json, str) and maybe_json.strip():
            return [maybe_json.strip()]
    except ValueError:
        pass
    return [part.strip() for part in raw.split(",") if part.strip()]


class Settings(BaseSettings):
    BRIDGEMON_BUILD_VERSION: str = os.getenv("BRIDGEMON_BUILD_VERSION", "1.0.0")
    BRIDGEMON_ENVIRONMENT: str = os.getenv("BRIDGEMON_ENVIRONMENT", "dev")
    BRIDGEMON_LOG_LEVEL: str = os.getenv("BRIDGEMON_LOG_LEVEL", "INFO")

    # Admin API keys, JSON array or CSV
    BRIDGEMON_API_KEYS: str = os.getenv("BRIDGEMON_API_KEYS", "")

    # Redis
    BRIDGEMON_REDIS_NAMESPACE: str = os.getenv("BRIDGEMON_REDIS_NAMESPACE", "bridgemon")
    REDIS_HOST: str = os.getenv("BRIDGEMON_REDIS_HOST", os.getenv("REDIS_HOST", "localhost"))
    REDIS_PORT: int = int(os.getenv("BRIDGEMON_REDIS_PORT", os.getenv("REDIS_PORT", "6379")))
    REDIS_DB: int = int(os.getenv("BRIDGEMON_REDIS_DB", os.getenv("REDIS_DB", "0")))
    REDIS_PASSWORD: Optional[str] = os.getenv(
        "BRIDGEMON_REDIS_PASSWORD", os.getenv("REDIS_PASSWORD")
    )

    # Sentry
    BRIDGEMON_SENTRY_DSN: Optional[str] = os.getenv("BRIDGEMON_SENTRY_DSN")

    # Bridges to monitor, in display order. Empty means discover from Redis.
    BRIDGEMON_BRIDGES: str = os.getenv("BRIDGEMON_BRIDGES", "")

    # Pagination
    BRIDGEMON_PAGE_SIZE: int = int(os.getenv("BRIDGEMON_PAGE_SIZE", "25"))
    BRIDGEMON_PAGE_SIZE_MAX: int = int(os.getenv("BRIDGEMON_PAGE_SIZE_MAX", "500"))
    BRIDGEMON_PAGER_WINDOW: int = int(os.getenv("BRIDGEMON_PAGER_WINDOW", "5"))

    # Timeouts
    BRIDGEMON_POLL_TIMEOUT_SEC: float = float(os.getenv("BRIDGEMON_POLL_TIMEOUT_SEC", "2.0"))
    BRIDGEMON_COMMAND_TIMEOUT_SEC: int = int(os.getenv("BRIDGEMON_COMMAND_TIMEOUT_SEC", "10"))

    # Log cursors kept per client/feed
    BRIDGEMON_CURSOR_LIMIT: int = int(os.getenv("BRIDGEMON_CURSOR_LIMIT", "1024"))

    # Push relay
    BRIDGEMON_PUSH_INTERVAL_SEC: float = float(os.getenv("BRIDGEMON_PUSH_INTERVAL_SEC", "2.0"))
    PUBSUB_CHANNEL: str = os.getenv("PUBSUB_CHANNEL") or f"{os.getenv('BRIDGEMON_REDIS_NAMESPACE', 'bridgemon')}:ui"

    # Admin action limits
    RL_TASK_LIMIT_PER_MIN: int = int(os.getenv("RL_TASK_LIMIT_PER_MIN", "30"))

    # About
    BRIDGEMON_ABOUT_TITLE: str = os.getenv("BRIDGEMON_ABOUT_TITLE", "Bridge Monitor")
    BRIDGEMON_ABOUT_AUTHOR: str = os.getenv("BRIDGEMON_ABOUT_AUTHOR", "")
    BRIDGEMON_ABOUT_LICENSE: str = os.getenv("BRIDGEMON_ABOUT_LICENSE", "MIT")

    # Private attributes: not part of pydantic validation
    _api_keys: List[str] = PrivateAttr(default_factory=list)
    _bridges: List[str] = PrivateAttr(default_factory=list)

    # --- parse list-valued env after validation ---
    def model_post_init(self, __context) -> None:  # pydantic v2 hook
        self._api_keys = _parse_list(self.BRIDGEMON_API_KEYS)
        self._bridges = _parse_list(self.BRIDGEMON_BRIDGES)

    @property
    def API_KEYS(self) -> List[str]:
        return self._api_keys

    @property
    def BRIDGES(self) -> List[str]:
        return self._bridges


@lru_cache()
def get_settings() -> Settings:
    return Settings()
