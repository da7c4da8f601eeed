"""
Journey - Host Entry Point

This is the thin orchestration layer that:
1. Loads configuration
2. Initializes storage and transport
3. Exposes the session operations to the host application

All business logic is in the modules, following black box principles.
"""

import logging
from typing import Any, Optional

from journey.config.provider import ConfigProvider, EnvConfigProvider, JourneyConfig
from journey.modules.session import (
    Clock,
    IdGenerator,
    SessionModule,
    SessionStorage,
    SessionTransport,
)
from journey.modules.storage import InMemoryStorage, StorageModule
from journey.modules.transport import IngestClient

logger = logging.getLogger(__name__)


def build_storage(config: JourneyConfig):
    """Create the session store selected by configuration."""
    if config.uses_redis:
        return StorageModule(config.redis_url, key=config.session_key)
    logger.warning(
        "Journey: No durable session store configured, every run will be reported "
        "as a first launch"
    )
    return InMemoryStorage(key=config.session_key)


def apply_log_level(level: str) -> None:
    """Set the level of the journey loggers, falling back to INFO on unknown names."""
    name = str(level or "").upper()
    if name not in logging.getLevelNamesMapping():
        logger.warning(f"Journey: Unknown log level {level!r}, using INFO")
        name = "INFO"
    logging.getLogger("journey").setLevel(name)


def build_transport(config: JourneyConfig) -> IngestClient:
    """Create the ingest client selected by configuration."""
    return IngestClient(config.ingest_url, timeout=config.request_timeout)


class Journey:
    """
    Session tracking for a host application.

    Usage:
        logging.config.dictConfig(get_logging_config("INFO"))

        async with Journey() as journey:
            await journey.initialize()
            await journey.report_event("click_play")

    Handlers are left to the host; journey.logging_config.get_logging_config
    is the setup hook for hosts without their own logging configuration.
    """

    def __init__(
        self,
        config: Optional[JourneyConfig] = None,
        storage: Optional[SessionStorage] = None,
        transport: Optional[SessionTransport] = None,
        clock: Optional[Clock] = None,
        id_generator: Optional[IdGenerator] = None,
        config_provider: Optional[ConfigProvider] = None,
    ):
        if config is None:
            config = (config_provider or EnvConfigProvider()).get_journey_config()
        self.config = config
        apply_log_level(config.log_level)

        # Only collaborators built here are closed by close()
        self._owned = []
        if storage is None:
            storage = build_storage(config)
            self._owned.append(storage)
        if transport is None:
            transport = build_transport(config)
            self._owned.append(transport)

        self.sessions = SessionModule(
            storage, transport, clock=clock, id_generator=id_generator
        )

    async def __aenter__(self) -> "Journey":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def close(self) -> None:
        """Release the HTTP client and storage connection owned by this instance."""
        for resource in self._owned:
            if isinstance(resource, IngestClient):
                await resource.aclose()
            else:
                await resource.disconnect()
        self._owned = []

    async def initialize(
        self,
        account_id: Optional[str] = None,
        app_id: Optional[str] = None,
        version: Optional[str] = None,
        is_release: Optional[bool] = None,
    ) -> None:
        """Start the session, falling back to configured values for omitted arguments."""
        await self.sessions.initialize(
            account_id if account_id is not None else self.config.account_id,
            app_id if app_id is not None else self.config.app_id,
            version if version is not None else self.config.version,
            is_release if is_release is not None else self.config.is_release,
        )

    async def report_event(self, event_name: str, is_collapsible: bool = False) -> None:
        await self.sessions.report_event(event_name, is_collapsible)

    async def report_error(self, event_name: str) -> None:
        await self.sessions.report_error(event_name)

    async def report_crash(self, event_name: str) -> None:
        await self.sessions.report_crash(event_name)

    async def report_stage_transition(self, stage: Any, stage_name: Optional[str] = "") -> None:
        await self.sessions.report_stage_transition(stage, stage_name)

    async def flush_events(self) -> None:
        await self.sessions.flush_events()
