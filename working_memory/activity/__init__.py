"""Session activity stream: identity, events, stream files and diagnostics."""

from working_memory.activity.diagnostics import (
    Diagnostic,
    DiagnosticChannel,
    DiagnosticLevel,
    FileDiagnosticSink,
)
from working_memory.activity.events import build_event, serialize_event
from working_memory.activity.logger import (
    ActivityLogger,
    LogResult,
    log_activity,
    log_command,
    log_tool_use,
)
from working_memory.activity.privacy import PrivacyFilters, PrivacySanitizer, Sanitizer
from working_memory.activity.session import SessionContextResolver
from working_memory.activity.stream import StreamWriter, parse_line, read_stream

__all__ = [
    # Orchestrator
    "ActivityLogger",
    "LogResult",
    "log_activity",
    "log_tool_use",
    "log_command",
    # Components
    "SessionContextResolver",
    "build_event",
    "serialize_event",
    "StreamWriter",
    "read_stream",
    "parse_line",
    # Diagnostics
    "Diagnostic",
    "DiagnosticChannel",
    "DiagnosticLevel",
    "FileDiagnosticSink",
    # Privacy
    "Sanitizer",
    "PrivacySanitizer",
    "PrivacyFilters",
]
