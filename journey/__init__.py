"""
Journey - Session Tracking Client

A library that tracks the session of a host application and reports
compact session summaries to the Journey ingest service.

Architecture:
- Each module is self-contained with clear interfaces
- Modules are completely replaceable
- No module knows the internals of another
- All communication through defined interfaces

Modules:
- session: Session records and the single-active-session lifecycle
- storage: Single-slot persistence of the last session
- transport: Delivery of records to the ingest endpoints
"""

__version__ = "1.1.0"

from .errors import JourneyError, PersistenceError, TransportError, ValidationError
from .logging_config import get_logging_config
from .main import Journey

__all__ = [
    "Journey",
    "JourneyError",
    "ValidationError",
    "PersistenceError",
    "TransportError",
    "get_logging_config",
]
