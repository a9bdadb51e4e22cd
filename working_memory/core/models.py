"""Data models for the working-memory activity stream.

Two event schemas can appear in the same stream file:

* :class:`ActivityEvent` is the current schema.  New, experimental data
  goes into its open ``extensions`` map so the top-level shape stays
  readable by older consumers.
* :class:`LegacyActivityEvent` is the historical ``{ts, tool, ctx, result}``
  record.  It is never written by this package, only read.

:func:`parse_event` tells them apart structurally, without any per-line
schema marker.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

UNKNOWN_SESSION_ID = "unknown"
DEFAULT_INSTANCE_ID = "default"
DEFAULT_USER_ID = "default"


class EventType(str, Enum):
    """Conventional event types.

    ``ActivityEvent.event_type`` is an open string; these are the values
    the consolidation process knows about, not an exhaustive list.
    """

    INTERACTION = "interaction"  # Tool use, file edits
    REALIZATION = "realization"
    STRUGGLE = "struggle"
    BREAKTHROUGH = "breakthrough"
    ROUTINE = "routine"  # Shell commands


class ResultTag(str, Enum):
    """Outcome tags stored under ``extensions["result"]``."""

    SUCCESS = "success"
    FAILURE = "failure"
    PENDING = "pending"
    INFO = "info"


class SessionIdentity(BaseModel):
    """Who and where an event belongs to, read from the session descriptor."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    session_id: str
    instance_id: str
    user_id: str
    project_id: str | None = None
    work_context: str | None = None

    @field_validator("project_id", "work_context", mode="before")
    @classmethod
    def _empty_to_none(cls, value: Any) -> Any:
        if value == "":
            return None
        return value

    @classmethod
    def sentinel(cls) -> SessionIdentity:
        """Identity used when the session descriptor cannot be read."""
        return cls(
            session_id=UNKNOWN_SESSION_ID,
            instance_id=DEFAULT_INSTANCE_ID,
            user_id=DEFAULT_USER_ID,
        )

    @property
    def is_sentinel(self) -> bool:
        return self.session_id == UNKNOWN_SESSION_ID


class ActivityEvent(BaseModel):
    """A single line of a session activity stream (current schema)."""

    model_config = ConfigDict(frozen=True)

    timestamp: datetime
    session_id: str
    instance_id: str
    user_id: str
    project_id: str | None = None
    event_type: str = Field(..., min_length=1)
    context: str | None = None
    work_context: str | None = None
    felt_significant: bool = False
    emotional_tone: str | None = None
    notes: str | None = None
    extensions: dict[str, Any] = Field(default_factory=dict)

    def to_json_line(self) -> str:
        """Minified single-line JSON; unset optional fields are omitted."""
        return self.model_dump_json(exclude_none=True)


class LegacyActivityEvent(BaseModel):
    """Historical stream record, kept only so old lines stay readable.

    On disk the timestamp and context were stored as ``ts`` and ``ctx``;
    the long names are accepted too.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    timestamp: datetime = Field(
        validation_alias=AliasChoices("ts", "timestamp"),
        serialization_alias="ts",
    )
    tool: str
    context: str = Field(
        default="",
        validation_alias=AliasChoices("ctx", "context"),
        serialization_alias="ctx",
    )
    result: str = ""
    duration_ms: int | None = None

    def to_json_line(self) -> str:
        return self.model_dump_json(by_alias=True, exclude_none=True)


AnyActivityEvent = ActivityEvent | LegacyActivityEvent


def is_current_schema(data: dict[str, Any]) -> bool:
    """True if *data* has the shape of a current-schema event."""
    return "session_id" in data or "event_type" in data


def parse_event(data: Any) -> AnyActivityEvent:
    """Parse a decoded stream line into whichever schema it was written in.

    Args:
        data: A JSON object decoded from one stream line.

    Returns:
        An ``ActivityEvent`` or a ``LegacyActivityEvent``.

    Raises:
        ValueError: If *data* is not an object, matches neither schema, or
            fails validation (pydantic's ``ValidationError`` is a
            ``ValueError``).
    """
    if not isinstance(data, dict):
        raise ValueError(f"event must be a JSON object, got {type(data).__name__}")

    if is_current_schema(data):
        return ActivityEvent.model_validate(data)
    if "tool" in data:
        return LegacyActivityEvent.model_validate(data)

    raise ValueError("object matches neither the current nor the legacy event schema")
