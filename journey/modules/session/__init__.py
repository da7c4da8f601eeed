"""
Session Module - Black Box Interface

Purpose: Track the one live session of the host application
Interface: initialize(), report_event(), report_error(), report_crash(),
           report_stage_transition(), flush_events()
Hidden: First-launch heuristics, event sequencing, write-through persistence

Storage and transport are injected, so either can be replaced without
touching the lifecycle rules.
"""

from .domain import (
    MAX_SEQUENCE_LENGTH,
    build_flush,
    build_header,
    build_stage,
    build_tail,
    decode_stage,
    decode_tail,
    new_user_stage,
)
from .interfaces import (
    Clock,
    IdGenerator,
    SessionStorage,
    SessionTransport,
    SystemClock,
    UuidGenerator,
)
from .models import (
    SCHEMA_VERSION,
    SessionFlush,
    SessionHeader,
    SessionTail,
    Stage,
    encode,
)
from .session import SessionModule

__all__ = [
    "SessionModule",
    "Stage",
    "SessionHeader",
    "SessionTail",
    "SessionFlush",
    "SCHEMA_VERSION",
    "MAX_SEQUENCE_LENGTH",
    "encode",
    "build_stage",
    "new_user_stage",
    "build_header",
    "build_tail",
    "build_flush",
    "decode_stage",
    "decode_tail",
    "Clock",
    "IdGenerator",
    "SessionStorage",
    "SessionTransport",
    "SystemClock",
    "UuidGenerator",
]
