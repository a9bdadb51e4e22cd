"""Best-effort diagnostic side channel.

Every step of a logging call reports a structured :class:`Diagnostic` to an
optional sink.  The default sink drops everything.  Whatever a sink does,
an exception raised by it never reaches the caller of the activity logger.

:class:`FileDiagnosticSink` keeps the plain-text scratch files around for
debugging hook processes that have no visible stderr::

    tail -f /tmp/activity-logger-error.log
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path

from working_memory.core.utils import utc_now

logger = logging.getLogger(__name__)

SUCCESS_LOG_NAME = "activity-logger-success.log"
FAILURE_LOG_NAME = "activity-logger-error.log"


class DiagnosticLevel(str, Enum):
    SUCCESS = "success"
    FAILURE = "failure"


@dataclass(frozen=True)
class Diagnostic:
    """One structured note about a logging step."""

    level: DiagnosticLevel
    operation: str  # "resolve_session", "create_dir", "serialize", "write", "append"
    message: str
    path: str = ""
    error: str = ""
    timestamp: datetime = field(default_factory=utc_now)

    def to_text(self) -> str:
        """Render as the single text line used by the scratch files."""
        parts = [self.timestamp.isoformat(), self.level.value.upper(), self.operation, self.message]
        if self.path:
            parts.append(f"path={self.path}")
        if self.error:
            parts.append(f"error={self.error}")
        return " | ".join(parts)


DiagnosticSink = Callable[[Diagnostic], None]


def null_sink(diagnostic: Diagnostic) -> None:
    """Default sink: discard."""


class FileDiagnosticSink:
    """Append diagnostics to fixed scratch files, one per level.

    Successes and failures go to separate files so failures can be grepped
    without noise.  I/O errors are ignored.
    """

    def __init__(
        self,
        directory: Path,
        success_name: str = SUCCESS_LOG_NAME,
        failure_name: str = FAILURE_LOG_NAME,
    ) -> None:
        self.directory = Path(directory)
        self.success_path = self.directory / success_name
        self.failure_path = self.directory / failure_name

    def __call__(self, diagnostic: Diagnostic) -> None:
        target = (
            self.failure_path if diagnostic.level is DiagnosticLevel.FAILURE else self.success_path
        )
        try:
            with open(target, "a", encoding="utf-8") as f:
                f.write(diagnostic.to_text() + "\n")
        except OSError:
            pass


class DiagnosticChannel:
    """Forwards diagnostics to a sink and isolates the caller from it."""

    def __init__(self, sink: DiagnosticSink | None = None) -> None:
        self.sink: DiagnosticSink = sink or null_sink

    def emit(
        self,
        level: DiagnosticLevel,
        operation: str,
        message: str,
        *,
        path: str | Path = "",
        error: BaseException | str = "",
    ) -> None:
        diagnostic = Diagnostic(
            level=level,
            operation=operation,
            message=message,
            path=str(path),
            error=str(error),
        )
        try:
            self.sink(diagnostic)
        except Exception:
            # Sink failures must never become a second point of failure
            logger.debug("Diagnostic sink raised; dropping %s", operation, exc_info=True)

    def success(self, operation: str, message: str, **kwargs: object) -> None:
        self.emit(DiagnosticLevel.SUCCESS, operation, message, **kwargs)  # type: ignore[arg-type]

    def failure(self, operation: str, message: str, **kwargs: object) -> None:
        self.emit(DiagnosticLevel.FAILURE, operation, message, **kwargs)  # type: ignore[arg-type]
