"""Core components for the working-memory activity stream."""

from working_memory.core.errors import (
    ActivityLogError,
    ConfigurationError,
    DirectoryCreateError,
    SerializationError,
    StreamReadError,
    StreamWriteError,
    WorkingMemoryError,
)
from working_memory.core.models import (
    ActivityEvent,
    AnyActivityEvent,
    EventType,
    LegacyActivityEvent,
    ResultTag,
    SessionIdentity,
    parse_event,
)
from working_memory.core.utils import duration_to_ms, to_aware_utc, utc_now

__all__ = [
    # Errors
    "WorkingMemoryError",
    "ConfigurationError",
    "ActivityLogError",
    "DirectoryCreateError",
    "SerializationError",
    "StreamWriteError",
    "StreamReadError",
    # Models
    "SessionIdentity",
    "ActivityEvent",
    "LegacyActivityEvent",
    "AnyActivityEvent",
    "EventType",
    "ResultTag",
    "parse_event",
    # Utilities
    "utc_now",
    "to_aware_utc",
    "duration_to_ms",
]
