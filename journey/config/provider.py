"""Configuration provider following Black Box Design principles."""
import os
from dataclasses import dataclass
from typing import Optional, Protocol

from ..modules.storage import SESSION_KEY
from ..modules.transport import DEFAULT_INGEST_URL

STORAGE_REDIS = "redis"
STORAGE_MEMORY = "memory"


@dataclass
class JourneyConfig:
    """Journey client configuration."""
    account_id: str = ""
    app_id: str = ""
    version: str = ""
    is_release: bool = False
    ingest_url: str = DEFAULT_INGEST_URL
    request_timeout: float = 10.0
    storage: str = STORAGE_REDIS
    redis_url: Optional[str] = None
    session_key: str = SESSION_KEY
    log_level: str = "INFO"

    @property
    def uses_redis(self) -> bool:
        """Check if the durable Redis store is selected."""
        return self.storage != STORAGE_MEMORY


class ConfigProvider(Protocol):
    """Protocol for configuration providers."""

    def get_journey_config(self) -> JourneyConfig:
        """Get Journey client configuration."""
        ...


class EnvConfigProvider:
    """Environment-based configuration provider."""

    def get_journey_config(self) -> JourneyConfig:
        """Get Journey client configuration from environment variables."""
        return JourneyConfig(
            account_id=os.getenv("JOURNEY_ACCOUNT_ID", ""),
            app_id=os.getenv("JOURNEY_APP_ID", ""),
            version=os.getenv("JOURNEY_APP_VERSION", ""),
            is_release=os.getenv("JOURNEY_IS_RELEASE", "false").lower() == "true",
            ingest_url=os.getenv("JOURNEY_INGEST_URL") or DEFAULT_INGEST_URL,
            request_timeout=float(os.getenv("JOURNEY_REQUEST_TIMEOUT", "10")),
            storage=(os.getenv("JOURNEY_STORAGE") or STORAGE_REDIS).lower(),
            redis_url=os.getenv("REDIS_URL") or None,
            session_key=os.getenv("JOURNEY_SESSION_KEY") or SESSION_KEY,
            log_level=os.getenv("JOURNEY_LOG_LEVEL", "INFO").upper(),
        )
