"""
Journey session records.

These models define the structure of every record that is persisted
locally or sent to the ingest endpoints. Attribute names are Pythonic;
the compact wire names are kept as aliases so stored payloads written
by any client version stay readable.
"""

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

SCHEMA_VERSION = "1.1.0"

HEADER_KIND = "shead"
TAIL_KIND = "stail"
FLUSH_KIND = "sflush"

NEW_USER_STAGE_NUMBER = 1
NEW_USER_STAGE_NAME = "new_user"

MIN_STAGE_NUMBER = 1
MAX_STAGE_NUMBER = 10


class Stage(BaseModel):
    """A funnel checkpoint. Replaced wholesale, never mutated."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    timestamp: datetime = Field(..., alias="ts")
    stage_number: int = Field(NEW_USER_STAGE_NUMBER, alias="stage")
    name: str = NEW_USER_STAGE_NAME


class SessionHeader(BaseModel):
    """One-shot record announcing the start of a session. Never persisted."""

    model_config = ConfigDict(populate_by_name=True)

    kind: Literal["shead"] = Field(HEADER_KIND, alias="t")
    schema_version: str = Field(SCHEMA_VERSION, alias="v")

    session_id: str = Field(..., alias="id")
    account_id: str = Field(..., alias="acc")
    app_id: str = Field(..., alias="aid")
    app_version: str = Field("", alias="version")
    is_release: bool = False

    installation_since: datetime = Field(..., alias="since")
    start: datetime

    first_launch: bool = Field(False, alias="fst_launch")
    first_launch_hour: bool = Field(False, alias="fst_launch_hour")
    first_launch_day: bool = Field(False, alias="fst_launch_day")
    first_launch_month: bool = Field(False, alias="fst_launch_month")
    first_launch_year: bool = Field(False, alias="fst_launch_year")
    first_launch_version: bool = Field(False, alias="fst_launch_version")

    previous_stage: Stage = Field(..., alias="prev_stage")


class SessionTail(BaseModel):
    """The live, persisted record of the current session."""

    model_config = ConfigDict(populate_by_name=True)

    kind: Literal["stail"] = Field(TAIL_KIND, alias="t")
    schema_version: str = Field(SCHEMA_VERSION, alias="v")

    session_id: str = Field(..., alias="id")
    account_id: str = Field("", alias="acc")
    app_id: str = Field("", alias="aid")
    app_version: str = Field("", alias="version")
    is_release: bool = False

    start: datetime
    end: datetime
    installation_since: datetime = Field(..., alias="since")

    first_launch: bool = Field(False, alias="fst_launch")

    previous_stage: Stage = Field(..., alias="prev_stage")
    current_stage: Stage = Field(..., alias="new_stage")

    has_error: bool = False
    has_crash: bool = False

    event_tally: Dict[str, int] = Field(default_factory=dict, alias="evts")
    event_sequence: List[str] = Field(default_factory=list, alias="evt_seq")
    flushed_baseline: Optional[Dict[str, int]] = Field(None, alias="flushed")


class SessionFlush(BaseModel):
    """Best-effort snapshot of the current tallies, sent before the session ends."""

    model_config = ConfigDict(populate_by_name=True)

    kind: Literal["sflush"] = Field(FLUSH_KIND, alias="t")
    schema_version: str = Field(SCHEMA_VERSION, alias="v")

    session_id: str = Field(..., alias="id")
    account_id: str = Field(..., alias="acc")
    app_id: str = Field(..., alias="aid")
    app_version: str = Field("", alias="version")
    is_release: bool = False

    start: datetime

    first_launch: bool = Field(False, alias="fst_launch")
    event_tally: Dict[str, int] = Field(default_factory=dict, alias="evts")
    flushed_baseline: Optional[Dict[str, int]] = Field(None, alias="flushed")


SessionRecord = Union[Stage, SessionHeader, SessionTail, SessionFlush]


def encode(record: SessionRecord) -> Dict[str, Any]:
    """Encode a record into its JSON-ready wire form."""
    return record.model_dump(mode="json", by_alias=True, exclude_none=True)
