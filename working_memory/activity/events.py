"""Event construction and serialization."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime, timedelta
from enum import Enum
from typing import Any

from working_memory.core.errors import SerializationError
from working_memory.core.models import ActivityEvent, SessionIdentity
from working_memory.core.utils import duration_to_ms, to_aware_utc, utc_now

RESERVED_EXTENSION_KEYS = frozenset({"result", "duration_ms"})


def _plain(value: str | Enum) -> str:
    if isinstance(value, Enum):
        return str(value.value)
    return value


def build_event(
    identity: SessionIdentity,
    event_type: str | Enum,
    context: str = "",
    result: str | Enum = "",
    duration: timedelta | float | None = None,
    *,
    extensions: Mapping[str, Any] | None = None,
    now: datetime | None = None,
) -> ActivityEvent:
    """Combine a resolved identity with caller data into an event.

    ``result`` and ``duration`` are stored under ``extensions`` rather than
    as top-level fields.  ``duration_ms`` is only present for positive
    durations.  Extra *extensions* are merged in but cannot replace the
    reserved keys.  ``felt_significant`` is left ``False``; significance is
    decided later, during consolidation.

    Args:
        identity: Resolved session identity.
        event_type: Open event tag, e.g. ``EventType.INTERACTION``.
        context: Already-sanitized description of what was being done.
        result: Outcome tag, e.g. ``"success"``.
        duration: ``timedelta`` or seconds.
        extensions: Additional experimental fields.
        now: Timestamp override; naive values are taken as UTC.

    Returns:
        The immutable event.
    """
    ext: dict[str, Any] = {}
    if extensions:
        ext.update((k, v) for k, v in extensions.items() if k not in RESERVED_EXTENSION_KEYS)

    ext["result"] = _plain(result)
    duration_ms = duration_to_ms(duration)
    if duration_ms > 0:
        ext["duration_ms"] = duration_ms

    return ActivityEvent(
        timestamp=to_aware_utc(now) if now is not None else utc_now(),
        session_id=identity.session_id,
        instance_id=identity.instance_id,
        user_id=identity.user_id,
        project_id=identity.project_id,
        event_type=_plain(event_type),
        context=context or None,
        work_context=identity.work_context,
        extensions=ext,
    )


def serialize_event(event: ActivityEvent) -> str:
    """Encode *event* as one line of minified JSON (no trailing newline).

    Raises:
        SerializationError: If an extension value is not JSON-encodable.
    """
    try:
        line = event.to_json_line()
    except (TypeError, ValueError) as e:
        raise SerializationError(f"Failed to serialize {event.event_type} event: {e}") from e

    if "\n" in line:
        # A raw newline would split the record
        raise SerializationError("Serialized event spans more than one line")
    return line
