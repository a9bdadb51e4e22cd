"""Working Memory - session-scoped activity stream for behavioral pattern learning."""

import logging

__version__ = "0.1.0"

from working_memory.activity import (
    ActivityLogger,
    LogResult,
    SessionContextResolver,
    log_activity,
    log_command,
    log_tool_use,
    read_stream,
)
from working_memory.config import Settings, get_settings
from working_memory.core import (
    ActivityEvent,
    ActivityLogError,
    ConfigurationError,
    DirectoryCreateError,
    EventType,
    LegacyActivityEvent,
    SerializationError,
    SessionIdentity,
    StreamReadError,
    StreamWriteError,
    WorkingMemoryError,
    parse_event,
)

# Silent unless the host configures logging
logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    # Version info
    "__version__",
    # Configuration
    "Settings",
    "get_settings",
    # Public API
    "ActivityLogger",
    "LogResult",
    "log_activity",
    "log_tool_use",
    "log_command",
    "SessionContextResolver",
    "read_stream",
    # Models
    "SessionIdentity",
    "ActivityEvent",
    "LegacyActivityEvent",
    "EventType",
    "parse_event",
    # Errors
    "WorkingMemoryError",
    "ConfigurationError",
    "ActivityLogError",
    "DirectoryCreateError",
    "SerializationError",
    "StreamWriteError",
    "StreamReadError",
]
