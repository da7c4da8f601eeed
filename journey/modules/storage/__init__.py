"""
Storage Module - Black Box Interface

Purpose: Keep the last session tail across process runs
Interface: load_last_session(), save_session(), disconnect()
Hidden: Redis specifics, connection handling, serialization

A single fixed key holds one record; saving overwrites it and no history
is retained. Can be replaced with any key-value backend without affecting
the session module.
"""

import json
import logging
import os
from datetime import datetime
from typing import Callable, Dict, Optional

import redis.asyncio as redis
from redis.exceptions import RedisError

from ...errors import PersistenceError
from ..session.domain import decode_tail
from ..session.models import SessionTail, encode

logger = logging.getLogger(__name__)

SESSION_KEY = "journey3.net/session"


def serialize_session(session: SessionTail) -> str:
    return json.dumps(encode(session))


class StorageModule:
    """Redis-backed single-slot session store."""

    def __init__(self, connection_url: Optional[str] = None, key: str = SESSION_KEY):
        """Initialize storage with connection URL."""
        self.url = connection_url or os.getenv("REDIS_URL", "redis://localhost:6379/0")
        self.key = key
        self._client = None

    async def connect(self) -> redis.Redis:
        """Get storage connection."""
        if not self._client:
            self._client = redis.from_url(self.url, decode_responses=True)
        return self._client

    async def disconnect(self):
        """Close storage connection."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def load_last_session(
        self, now: Callable[[], datetime], new_id: Callable[[], str]
    ) -> Optional[SessionTail]:
        """
        Load the tail saved by the previous process run.

        Returns:
            Decoded tail, or None if nothing was stored

        Raises:
            PersistenceError: If Redis could not be read
        """
        try:
            client = await self.connect()
            data = await client.get(self.key)
        except RedisError as e:
            raise PersistenceError(f"Cannot load session from {self.key}: {e}") from e

        if not data:
            return None
        return decode_tail(data, now, new_id)

    async def save_session(self, session: SessionTail) -> None:
        """
        Overwrite the stored tail.

        Raises:
            PersistenceError: If Redis could not be written
        """
        try:
            client = await self.connect()
            await client.set(self.key, serialize_session(session))
        except RedisError as e:
            raise PersistenceError(f"Cannot save session {session.session_id}: {e}") from e


class InMemoryStorage:
    """Process-local store for hosts without Redis, and for tests."""

    def __init__(self, key: str = SESSION_KEY):
        self.key = key
        self._items: Dict[str, str] = {}

    async def load_last_session(
        self, now: Callable[[], datetime], new_id: Callable[[], str]
    ) -> Optional[SessionTail]:
        data = self._items.get(self.key)
        if not data:
            return None
        return decode_tail(data, now, new_id)

    async def save_session(self, session: SessionTail) -> None:
        self._items[self.key] = serialize_session(session)

    async def disconnect(self):
        pass


__all__ = ["StorageModule", "InMemoryStorage", "SESSION_KEY", "serialize_session"]
