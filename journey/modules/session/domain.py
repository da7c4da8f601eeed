"""
Construction and tolerant decoding of session records.

Everything here is pure: time and identity come from the injected
``now`` and ``new_id`` callables, nothing is read or written.
"""

import json
import math
from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any, Callable, Dict, List, Optional, Union

from ...errors import ValidationError
from .models import (
    NEW_USER_STAGE_NAME,
    NEW_USER_STAGE_NUMBER,
    SessionFlush,
    SessionHeader,
    SessionTail,
    Stage,
)

MAX_SEQUENCE_LENGTH = 100

NowProvider = Callable[[], datetime]
IdProvider = Callable[[], str]
Serialized = Union[str, bytes, Mapping]


def build_stage(stage_number: int, name: str, now: NowProvider) -> Stage:
    """Create a stage stamped with the current instant."""
    return Stage(timestamp=now(), stage_number=stage_number, name=name)


def new_user_stage(now: NowProvider) -> Stage:
    """The synthetic stage every installation starts in."""
    return build_stage(NEW_USER_STAGE_NUMBER, NEW_USER_STAGE_NAME, now)


def build_header(
    account_id: str,
    app_id: str,
    version: Optional[str],
    is_release: Optional[bool],
    now: NowProvider,
    new_id: IdProvider,
) -> SessionHeader:
    """
    Create the header announcing a new session.

    Args:
        account_id: Journey account identifier
        app_id: Application identifier
        version: Application version, defaults to ""
        is_release: Separates release sessions from debug ones
        now: Current-instant provider
        new_id: Unique identifier provider

    Returns:
        Header with a fresh session id and every first-launch flag cleared

    Raises:
        ValidationError: If account_id or app_id is empty
    """
    if not account_id:
        raise ValidationError("accountId is mandatory")
    if not app_id:
        raise ValidationError("appId is mandatory")

    started_at = now()
    return SessionHeader(
        session_id=new_id(),
        account_id=account_id,
        app_id=app_id,
        app_version=version or "",
        is_release=bool(is_release),
        installation_since=started_at,
        start=started_at,
        previous_stage=new_user_stage(now),
    )


def build_tail(
    session_id: str,
    account_id: str,
    app_id: str,
    version: Optional[str],
    is_release: Optional[bool],
    start: Optional[datetime],
    now: NowProvider,
) -> SessionTail:
    """
    Create the tail that accumulates the state of a new session.

    Raises:
        ValidationError: If session_id, account_id, app_id or start is missing
    """
    if not session_id:
        raise ValidationError("id is mandatory")
    if not account_id:
        raise ValidationError("accountId is mandatory")
    if not app_id:
        raise ValidationError("appId is mandatory")
    if not start:
        raise ValidationError("start is mandatory")

    return SessionTail(
        session_id=session_id,
        account_id=account_id,
        app_id=app_id,
        app_version=version or "",
        is_release=bool(is_release),
        start=start,
        end=start,
        installation_since=start,
        previous_stage=new_user_stage(now),
        current_stage=new_user_stage(now),
    )


def build_flush(tail: SessionTail) -> SessionFlush:
    """Snapshot the tallies of a live session for an out-of-band flush."""
    return SessionFlush(
        session_id=tail.session_id,
        account_id=tail.account_id,
        app_id=tail.app_id,
        app_version=tail.app_version,
        is_release=tail.is_release,
        start=tail.start,
        first_launch=tail.first_launch,
        event_tally=dict(tail.event_tally),
        flushed_baseline=(
            dict(tail.flushed_baseline) if tail.flushed_baseline is not None else None
        ),
    )


# Tolerant decoding


def _load_object(serialized: Optional[Serialized]) -> Dict[str, Any]:
    if isinstance(serialized, Mapping):
        return dict(serialized)
    if isinstance(serialized, bytes):
        serialized = serialized.decode("utf-8", errors="replace")
    if not isinstance(serialized, str):
        return {}
    try:
        obj = json.loads(serialized)
    except ValueError:
        return {}
    return obj if isinstance(obj, dict) else {}


def _instant(value: Any, now: NowProvider) -> datetime:
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value:
        try:
            parsed = datetime.fromisoformat(value)
        except ValueError:
            return now()
    else:
        return now()
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)


def _text(value: Any, default: str) -> str:
    return value if isinstance(value, str) else default


def _flag(value: Any) -> bool:
    return value if isinstance(value, bool) else False


def _count(value: Any) -> Optional[int]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if isinstance(value, float) and not math.isfinite(value):
        return None
    return int(value)


def _tally(value: Any) -> Dict[str, int]:
    if not isinstance(value, Mapping):
        return {}
    tally = {}
    for name, count in value.items():
        count = _count(count)
        if count is not None:
            tally[str(name)] = count
    return tally


def _sequence(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [token for token in value if isinstance(token, str)][:MAX_SEQUENCE_LENGTH]


def _stage(value: Any, now: NowProvider) -> Stage:
    if not isinstance(value, Mapping) or not value:
        return new_user_stage(now)
    return decode_stage(value, now)


def decode_stage(serialized: Optional[Serialized], now: NowProvider) -> Stage:
    """Decode a stage, defaulting every missing or unreadable field."""
    obj = _load_object(serialized)
    stage_number = _count(obj.get("stage"))
    return Stage(
        timestamp=_instant(obj.get("ts"), now),
        stage_number=stage_number if stage_number is not None else NEW_USER_STAGE_NUMBER,
        name=_text(obj.get("name"), NEW_USER_STAGE_NAME),
    )


def decode_tail(
    serialized: Optional[Serialized], now: NowProvider, new_id: IdProvider
) -> SessionTail:
    """
    Decode a stored session tail written by any schema version.

    Never fails: unknown fields are ignored and absent or malformed ones
    fall back to defaults (timestamps to ``now()``, the id to ``new_id()``,
    collections to empty, flags to False, stages to the new-user stage).
    """
    obj = _load_object(serialized)
    session_id = obj.get("id")
    flushed = obj.get("flushed")

    return SessionTail(
        session_id=session_id if isinstance(session_id, str) and session_id else new_id(),
        account_id=_text(obj.get("acc"), ""),
        app_id=_text(obj.get("aid"), ""),
        app_version=_text(obj.get("version"), ""),
        is_release=_flag(obj.get("is_release")),
        installation_since=_instant(obj.get("since"), now),
        start=_instant(obj.get("start"), now),
        end=_instant(obj.get("end"), now),
        first_launch=_flag(obj.get("fst_launch")),
        has_error=_flag(obj.get("has_error")),
        has_crash=_flag(obj.get("has_crash")),
        event_tally=_tally(obj.get("evts")),
        event_sequence=_sequence(obj.get("evt_seq")),
        flushed_baseline=_tally(flushed) if isinstance(flushed, Mapping) else None,
        previous_stage=_stage(obj.get("prev_stage"), now),
        current_stage=_stage(obj.get("new_stage"), now),
    )
