"""
Shared pytest fixtures for Journey tests.

This module provides common fixtures including:
- A controllable clock and a deterministic id generator
- AsyncMock storage and transport collaborators
- A SessionModule wired to those collaborators
"""

import os
import sys
from datetime import UTC, datetime
from unittest.mock import AsyncMock

import pytest

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from journey.modules.session import SessionModule


class FixedClock:
    """Clock that returns whatever instant the test sets."""

    def __init__(self, current: datetime):
        self.current = current

    def now(self) -> datetime:
        return self.current


class FixedIds:
    """Hands out the given ids in order, repeating the last one."""

    def __init__(self, *ids: str):
        self._ids = list(ids)
        self.issued = 0

    def new_id(self) -> str:
        value = self._ids[min(self.issued, len(self._ids) - 1)]
        self.issued += 1
        return value


@pytest.fixture
def clock():
    return FixedClock(datetime(2022, 1, 1, tzinfo=UTC))


@pytest.fixture
def ids():
    return FixedIds("SESSION1")


@pytest.fixture
def mock_storage():
    """Storage with no previously saved session."""
    storage = AsyncMock()
    storage.load_last_session = AsyncMock(return_value=None)
    storage.save_session = AsyncMock()
    return storage


@pytest.fixture
def mock_transport():
    transport = AsyncMock()
    transport.post_session_header = AsyncMock()
    transport.post_session = AsyncMock()
    transport.post_session_flush = AsyncMock()
    return transport


@pytest.fixture
def session_module(mock_storage, mock_transport, clock, ids):
    """Create a SessionModule with mocked collaborators."""
    return SessionModule(mock_storage, mock_transport, clock=clock, id_generator=ids)


@pytest.fixture
def fixed_ids():
    """Factory for deterministic id generators."""
    return FixedIds
