"""Activity logging: resolve, gate, build, write, diagnose.

Activity logging is fire-and-forget instrumentation.  None of the public
functions raise: each returns a :class:`LogResult`, and callers are free to
ignore it.  A caller that does look at ``result.error`` may log or alert
but should not fail its own operation because of it.

Example::

    from working_memory.activity.logger import log_command, log_tool_use

    log_tool_use("Edit", "/home/me/project/app.py", success=True)
    log_command("git commit -m 'wip'", exit_code=0, duration=1.2)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import timedelta
from enum import Enum
from pathlib import Path
from tempfile import gettempdir
from typing import Any

from pydantic import ValidationError

from working_memory.activity.diagnostics import (
    DiagnosticChannel,
    DiagnosticSink,
    FileDiagnosticSink,
)
from working_memory.activity.events import build_event, serialize_event
from working_memory.activity.privacy import PrivacySanitizer, Sanitizer
from working_memory.activity.session import SessionContextResolver
from working_memory.activity.stream import StreamWriter
from working_memory.config import Settings, get_settings
from working_memory.core.errors import (
    ActivityLogError,
    ConfigurationError,
    DirectoryCreateError,
    SerializationError,
)
from working_memory.core.models import ActivityEvent, EventType, ResultTag
from working_memory.core.paths import ActivityPaths

logger = logging.getLogger(__name__)

SKIP_SESSION_UNKNOWN = "session_unknown"


@dataclass
class LogResult:
    """Outcome of one logging call."""

    written: bool = False
    skipped: bool = False
    skip_reason: str = ""
    stream_path: str = ""
    event: ActivityEvent | None = None
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        """True for written and skipped calls alike."""
        return self.error is None

    def raise_for_error(self) -> None:
        """Re-raise the captured error, if any."""
        if self.error is not None:
            raise self.error


def default_diagnostic_sink(settings: Settings) -> DiagnosticSink | None:
    """Sink implied by settings: scratch files when enabled, otherwise none."""
    if not settings.diagnostics_to_files:
        return None
    directory = settings.diagnostics_dir or Path(gettempdir())
    return FileDiagnosticSink(directory)


class ActivityLogger:
    """Appends activity events to the current session's stream.

    Holds configuration and collaborators only; no per-session state is
    kept between calls.  Identity and paths are resolved again every time.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        sanitizer: Sanitizer | None = None,
        diagnostic_sink: DiagnosticSink | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.diagnostics = DiagnosticChannel(
            diagnostic_sink or default_diagnostic_sink(self.settings)
        )
        self.sanitizer: Sanitizer = sanitizer or PrivacySanitizer(self.settings)
        self.resolver = SessionContextResolver(self.settings, self.diagnostics)

    # -- orchestrator ------------------------------------------------------

    def log_activity(
        self,
        event_type: str | Enum,
        context: str = "",
        result: str | Enum = "",
        duration: timedelta | float | None = None,
        *,
        extensions: dict[str, Any] | None = None,
    ) -> LogResult:
        """Append one event to the current session's stream.

        *context* is written as given; it must already be sanitized.

        Args:
            event_type: Open event tag (see ``EventType``).
            context: Sanitized description of what was being done.
            result: Outcome tag, stored as ``extensions.result``.
            duration: ``timedelta`` or seconds; stored as
                ``extensions.duration_ms`` when positive.
            extensions: Extra experimental fields.

        Returns:
            LogResult.  ``skipped`` when no session is active; ``error``
            set when the directory, serialization or write step failed.
        """
        paths = ActivityPaths.resolve(self.settings)

        identity = self.resolver.resolve(paths)
        if identity.is_sentinel:
            return LogResult(skipped=True, skip_reason=SKIP_SESSION_UNKNOWN)

        writer = StreamWriter(paths.activity_dir)
        stream_path = writer.stream_path(identity.session_id)
        result_out = LogResult(stream_path=str(stream_path))

        try:
            try:
                event = build_event(
                    identity,
                    event_type,
                    context,
                    result,
                    duration,
                    extensions=extensions,
                )
            except (ValueError, TypeError, OverflowError) as e:
                raise SerializationError(f"Failed to build event: {e}", stream_path) from e
            line = serialize_event(event)
            writer.append(identity.session_id, line)
        except ActivityLogError as e:
            logger.warning(
                "Activity event not written: %s", e, extra={"session_id": identity.session_id}
            )
            self.diagnostics.failure(
                _failed_operation(e),
                f"{e} (base_dir={paths.base_dir})",
                path=e.path or stream_path,
                error=e.__cause__ or e,
            )
            result_out.error = e
            return result_out

        logger.debug(
            "Logged %s event to %s",
            event.event_type,
            stream_path.name,
            extra={"session_id": identity.session_id},
        )
        self.diagnostics.success("append", f"{event.event_type} -> {stream_path}", path=stream_path)

        result_out.written = True
        result_out.event = event
        return result_out

    # -- convenience adapters ----------------------------------------------

    def log_tool_use(self, tool_name: str, file_path: str, success: bool) -> LogResult:
        """Log a tool invocation as an ``interaction`` event.

        The path is sanitized before it becomes the event context.
        """
        context = self.sanitizer.sanitize_path(file_path)
        extensions = {"tool": tool_name} if tool_name else None
        return self.log_activity(
            EventType.INTERACTION,
            context,
            ResultTag.SUCCESS if success else ResultTag.FAILURE,
            0,
            extensions=extensions,
        )

    def log_command(
        self,
        cmd: str,
        exit_code: int,
        duration: timedelta | float | None = None,
    ) -> LogResult:
        """Log a shell command as a ``routine`` event.

        The command is sanitized before it becomes the event context.
        """
        context = self.sanitizer.sanitize_command(cmd)
        return self.log_activity(
            EventType.ROUTINE,
            context,
            ResultTag.SUCCESS if exit_code == 0 else ResultTag.FAILURE,
            duration,
            extensions={"exit_code": exit_code},
        )


def _failed_operation(error: ActivityLogError) -> str:
    if isinstance(error, DirectoryCreateError):
        return "create_dir"
    if isinstance(error, SerializationError):
        return "serialize"
    return "write"


# ---------------------------------------------------------------------------
# Module-level API (safe with no setup)
# ---------------------------------------------------------------------------


def _default_logger() -> ActivityLogger:
    try:
        settings = get_settings()
    except ValidationError as e:
        raise ConfigurationError(f"Invalid working-memory settings: {e}") from e
    return ActivityLogger(settings)


def log_activity(
    event_type: str | Enum,
    context: str = "",
    result: str | Enum = "",
    duration: timedelta | float | None = None,
) -> LogResult:
    """Append an event using the default settings. See ``ActivityLogger.log_activity``."""
    try:
        activity_logger = _default_logger()
    except ConfigurationError as e:
        return LogResult(error=e)
    return activity_logger.log_activity(event_type, context, result, duration)


def log_tool_use(tool_name: str, file_path: str, success: bool) -> LogResult:
    """Log a tool invocation using the default settings."""
    try:
        activity_logger = _default_logger()
    except ConfigurationError as e:
        return LogResult(error=e)
    return activity_logger.log_tool_use(tool_name, file_path, success)


def log_command(
    cmd: str,
    exit_code: int,
    duration: timedelta | float | None = None,
) -> LogResult:
    """Log a shell command using the default settings."""
    try:
        activity_logger = _default_logger()
    except ConfigurationError as e:
        return LogResult(error=e)
    return activity_logger.log_command(cmd, exit_code, duration)
