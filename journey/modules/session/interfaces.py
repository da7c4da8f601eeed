"""Collaborator interfaces for the session module - swappable implementations."""
import uuid
from datetime import UTC, datetime
from typing import Any, Callable, Optional, Protocol

from .models import SessionFlush, SessionHeader, SessionTail


class Clock(Protocol):
    """Source of the current UTC instant."""

    def now(self) -> datetime:
        ...


class IdGenerator(Protocol):
    """Source of unique session identifiers."""

    def new_id(self) -> str:
        ...


class SessionStorage(Protocol):
    """Single-slot durable store for the last session tail."""

    async def load_last_session(
        self, now: Callable[[], datetime], new_id: Callable[[], str]
    ) -> Optional[SessionTail]:
        """
        Load the previously stored tail.

        Returns:
            Tolerantly decoded tail, or None if nothing was stored
        """
        ...

    async def save_session(self, session: SessionTail) -> None:
        """Overwrite the stored tail. No history is retained."""
        ...


class SessionTransport(Protocol):
    """Fire-and-forget delivery of session records to the ingest service."""

    async def post_session_header(self, header: SessionHeader) -> Any:
        ...

    async def post_session(self, session: SessionTail) -> Any:
        ...

    async def post_session_flush(self, flush: SessionFlush) -> Any:
        ...


class SystemClock:
    """Wall clock in UTC."""

    def now(self) -> datetime:
        return datetime.now(UTC)


class UuidGenerator:
    """Random UUID4 session identifiers."""

    def new_id(self) -> str:
        return str(uuid.uuid4())
