"""Unit tests for working_memory.activity.logger.

Tests cover:
1. Sentinel gating — no session, no file
2. Written events — identity, ordering, extensions
3. Convenience adapters — tool use and command mapping
4. Failure reporting — LogResult errors and diagnostics
5. Module-level functions
"""

from __future__ import annotations

import json
import os
from collections.abc import Callable
from datetime import timedelta
from pathlib import Path
from typing import Any
from unittest.mock import patch

import pytest

from working_memory.activity.diagnostics import Diagnostic, DiagnosticLevel, FileDiagnosticSink
from working_memory.activity.logger import (
    SKIP_SESSION_UNKNOWN,
    ActivityLogger,
    LogResult,
    default_diagnostic_sink,
    log_activity,
    log_command,
    log_tool_use,
)
from working_memory.activity.stream import read_stream
from working_memory.config import Settings
from working_memory.core.errors import (
    ConfigurationError,
    DirectoryCreateError,
    SerializationError,
    StreamWriteError,
)
from working_memory.core.models import EventType, ResultTag

ReadJsonl = Callable[[Path], list[dict[str, Any]]]


class RecordingSanitizer:
    """Sanitizer double that records its inputs."""

    def __init__(self) -> None:
        self.paths: list[str] = []
        self.commands: list[str] = []

    def sanitize_path(self, raw: str) -> str:
        self.paths.append(raw)
        return "sanitized-path"

    def sanitize_command(self, raw: str) -> str:
        self.commands.append(raw)
        return "sanitized-cmd"


# =============================================================================
# LogResult
# =============================================================================


@pytest.mark.unit
class TestLogResult:
    """Test the outcome record."""

    def test_ok_when_skipped(self) -> None:
        assert LogResult(skipped=True).ok

    def test_raise_for_error(self) -> None:
        result = LogResult(error=StreamWriteError("boom"))
        assert not result.ok
        with pytest.raises(StreamWriteError):
            result.raise_for_error()

    def test_raise_for_error_noop(self) -> None:
        LogResult(written=True).raise_for_error()


# =============================================================================
# Sentinel gating
# =============================================================================


@pytest.mark.unit
class TestSentinelGate:
    """Test that nothing is written without an active session."""

    def test_no_descriptor_is_noop(
        self, activity_logger: ActivityLogger, settings: Settings
    ) -> None:
        result = activity_logger.log_activity(EventType.INTERACTION, "app.py", ResultTag.SUCCESS)

        assert result.skipped
        assert result.skip_reason == SKIP_SESSION_UNKNOWN
        assert not result.written
        assert result.error is None
        assert not (Path(settings.base_dir) / settings.activity_dir).exists()

    def test_sentinel_adapters_noop(self, activity_logger: ActivityLogger) -> None:
        assert activity_logger.log_tool_use("Edit", "/x/a.py", True).skipped
        assert activity_logger.log_command("git status", 0).skipped

    def test_sentinel_reports_resolve_failure_only(
        self, activity_logger: ActivityLogger, diagnostics: list[Diagnostic]
    ) -> None:
        activity_logger.log_activity("routine")
        assert [d.operation for d in diagnostics] == ["resolve_session"]


# =============================================================================
# Written events
# =============================================================================


@pytest.mark.unit
class TestLogActivity:
    """Test successful appends."""

    def test_writes_one_line(
        self,
        activity_logger: ActivityLogger,
        active_session: dict[str, Any],
        stream_file: Path,
        read_jsonl: ReadJsonl,
    ) -> None:
        result = activity_logger.log_activity(EventType.REALIZATION, "cache.py", "success")

        assert result.written
        assert result.ok
        assert result.stream_path == str(stream_file)
        lines = read_jsonl(stream_file)
        assert len(lines) == 1
        assert lines[0]["session_id"] == active_session["session_id"]
        assert lines[0]["instance_id"] == "assistant-01"
        assert lines[0]["user_id"] == "dev-user"
        assert lines[0]["project_id"] == "working-memory"
        assert lines[0]["work_context"] == "~/projects/working-memory"
        assert lines[0]["event_type"] == "realization"
        assert lines[0]["context"] == "cache.py"
        assert lines[0]["felt_significant"] is False
        assert lines[0]["extensions"] == {"result": "success"}

    def test_result_event_matches_file(
        self, activity_logger: ActivityLogger, active_session: dict[str, Any], stream_file: Path
    ) -> None:
        result = activity_logger.log_activity("struggle", "flaky test", "failure", 3)
        events = list(read_stream(stream_file))
        assert events == [result.event]

    def test_appends_in_call_order(
        self,
        activity_logger: ActivityLogger,
        active_session: dict[str, Any],
        stream_file: Path,
        read_jsonl: ReadJsonl,
    ) -> None:
        activity_logger.log_tool_use("Edit", "/srv/app/main.py", True)
        activity_logger.log_command("git status", 0)
        activity_logger.log_activity("breakthrough", "found it", "success")

        types = [line["event_type"] for line in read_jsonl(stream_file)]
        assert types == ["interaction", "routine", "breakthrough"]

    def test_duration_recorded_when_positive(
        self,
        activity_logger: ActivityLogger,
        active_session: dict[str, Any],
        stream_file: Path,
        read_jsonl: ReadJsonl,
    ) -> None:
        activity_logger.log_activity("routine", "build", "success", timedelta(milliseconds=250))
        activity_logger.log_activity("routine", "build", "success", 0)

        first, second = read_jsonl(stream_file)
        assert first["extensions"]["duration_ms"] == 250
        assert "duration_ms" not in second["extensions"]

    def test_extra_extensions(
        self,
        activity_logger: ActivityLogger,
        active_session: dict[str, Any],
        stream_file: Path,
        read_jsonl: ReadJsonl,
    ) -> None:
        activity_logger.log_activity("interaction", extensions={"branch": "main"})
        assert read_jsonl(stream_file)[0]["extensions"] == {"branch": "main", "result": ""}

    def test_success_diagnostic(
        self,
        activity_logger: ActivityLogger,
        active_session: dict[str, Any],
        diagnostics: list[Diagnostic],
    ) -> None:
        activity_logger.log_activity("routine")
        assert [(d.level, d.operation) for d in diagnostics] == [
            (DiagnosticLevel.SUCCESS, "append")
        ]

    def test_session_switch_between_calls(
        self,
        activity_logger: ActivityLogger,
        write_descriptor: Callable[[Any], Path],
        identity_data: dict[str, Any],
        settings: Settings,
    ) -> None:
        write_descriptor(identity_data)
        first = activity_logger.log_activity("routine")
        write_descriptor({**identity_data, "session_id": "second-session"})
        second = activity_logger.log_activity("routine")

        assert first.stream_path != second.stream_path
        assert Path(second.stream_path) == (
            Path(settings.base_dir) / settings.activity_dir / "second-session.jsonl"
        )

    def test_base_dir_from_home(
        self, tmp_path: Path, identity_data: dict[str, Any], diagnostics: list[Diagnostic]
    ) -> None:
        settings = Settings(_env_file=None)
        descriptor = tmp_path / settings.session_file
        descriptor.parent.mkdir(parents=True)
        descriptor.write_text(json.dumps(identity_data), encoding="utf-8")

        with patch.dict(os.environ, {"HOME": str(tmp_path)}):
            result = ActivityLogger(settings, diagnostic_sink=diagnostics.append).log_activity(
                "routine"
            )

        assert result.written
        assert Path(result.stream_path).parent == tmp_path / settings.activity_dir


# =============================================================================
# Convenience adapters
# =============================================================================


@pytest.mark.unit
class TestAdapters:
    """Test LogToolUse and LogCommand mapping."""

    @pytest.mark.parametrize(("success", "expected"), [(True, "success"), (False, "failure")])
    def test_tool_use_result(
        self,
        activity_logger: ActivityLogger,
        active_session: dict[str, Any],
        stream_file: Path,
        read_jsonl: ReadJsonl,
        success: bool,
        expected: str,
    ) -> None:
        activity_logger.log_tool_use("Edit", "/srv/app/main.py", success)
        line = read_jsonl(stream_file)[0]
        assert line["event_type"] == "interaction"
        assert line["context"] == "main.py"
        assert line["extensions"] == {"tool": "Edit", "result": expected}

    @pytest.mark.parametrize(("exit_code", "expected"), [(0, "success"), (7, "failure")])
    def test_command_result(
        self,
        activity_logger: ActivityLogger,
        active_session: dict[str, Any],
        stream_file: Path,
        read_jsonl: ReadJsonl,
        exit_code: int,
        expected: str,
    ) -> None:
        activity_logger.log_command("go test ./...", exit_code, timedelta(seconds=2))
        line = read_jsonl(stream_file)[0]
        assert line["event_type"] == "routine"
        assert line["context"] == "go test"
        assert line["extensions"] == {
            "exit_code": exit_code,
            "result": expected,
            "duration_ms": 2000,
        }

    def test_adapters_sanitize_before_logging(
        self,
        settings: Settings,
        active_session: dict[str, Any],
        stream_file: Path,
        read_jsonl: ReadJsonl,
    ) -> None:
        sanitizer = RecordingSanitizer()
        activity_logger = ActivityLogger(settings, sanitizer=sanitizer)

        activity_logger.log_tool_use("Write", "/home/dev/.ssh/id_rsa", True)
        activity_logger.log_command("export API_KEY=abc", 0)

        assert sanitizer.paths == ["/home/dev/.ssh/id_rsa"]
        assert sanitizer.commands == ["export API_KEY=abc"]
        contexts = [line["context"] for line in read_jsonl(stream_file)]
        assert contexts == ["sanitized-path", "sanitized-cmd"]

    def test_sensitive_path_never_written(
        self,
        activity_logger: ActivityLogger,
        active_session: dict[str, Any],
        stream_file: Path,
    ) -> None:
        activity_logger.log_tool_use("Read", "/srv/deploy/credentials.json", True)
        text = stream_file.read_text(encoding="utf-8")
        assert "credentials" not in text
        assert "[PRIVATE]" in text


# =============================================================================
# Failure reporting
# =============================================================================


@pytest.mark.unit
class TestFailures:
    """Test that failures are returned and diagnosed, never raised."""

    def test_directory_create_failure(
        self,
        activity_logger: ActivityLogger,
        active_session: dict[str, Any],
        settings: Settings,
        diagnostics: list[Diagnostic],
    ) -> None:
        blocker = Path(settings.base_dir) / settings.activity_dir
        blocker.parent.mkdir(parents=True, exist_ok=True)
        blocker.write_text("not a directory", encoding="utf-8")

        result = activity_logger.log_activity("routine")

        assert isinstance(result.error, DirectoryCreateError)
        assert not result.written
        assert diagnostics[-1].level is DiagnosticLevel.FAILURE
        assert diagnostics[-1].operation == "create_dir"
        assert "base_dir=" in diagnostics[-1].message

    def test_write_failure(
        self,
        activity_logger: ActivityLogger,
        active_session: dict[str, Any],
        diagnostics: list[Diagnostic],
    ) -> None:
        with patch("working_memory.activity.stream.os.write", side_effect=OSError("disk full")):
            result = activity_logger.log_activity("routine")

        assert isinstance(result.error, StreamWriteError)
        assert diagnostics[-1].operation == "write"
        assert diagnostics[-1].error == "disk full"

    def test_serialization_failure(
        self,
        activity_logger: ActivityLogger,
        active_session: dict[str, Any],
        stream_file: Path,
        diagnostics: list[Diagnostic],
    ) -> None:
        result = activity_logger.log_activity("routine", extensions={"blob": object()})

        assert isinstance(result.error, SerializationError)
        assert diagnostics[-1].operation == "serialize"
        assert not stream_file.exists()

    @pytest.mark.parametrize("duration", [float("inf"), 1e20])
    def test_unrepresentable_duration_still_logged(
        self,
        activity_logger: ActivityLogger,
        active_session: dict[str, Any],
        stream_file: Path,
        read_jsonl: ReadJsonl,
        duration: float,
    ) -> None:
        result = activity_logger.log_command("make build", 0, duration)

        assert result.written
        assert result.error is None
        (line,) = read_jsonl(stream_file)
        assert line["extensions"] == {"exit_code": 0, "result": "success"}

    def test_bad_duration_type_is_serialization_failure(
        self, activity_logger: ActivityLogger, active_session: dict[str, Any]
    ) -> None:
        result = activity_logger.log_activity("routine", duration="soon")  # type: ignore[arg-type]
        assert isinstance(result.error, SerializationError)

    def test_empty_event_type_is_serialization_failure(
        self, activity_logger: ActivityLogger, active_session: dict[str, Any]
    ) -> None:
        result = activity_logger.log_activity("")
        assert isinstance(result.error, SerializationError)

    def test_broken_sink_does_not_affect_write(
        self,
        settings: Settings,
        active_session: dict[str, Any],
        stream_file: Path,
    ) -> None:
        def broken(diagnostic: Diagnostic) -> None:
            raise RuntimeError("sink down")

        result = ActivityLogger(settings, diagnostic_sink=broken).log_activity("routine")
        assert result.written
        assert stream_file.exists()


# =============================================================================
# Diagnostic sink selection
# =============================================================================


@pytest.mark.unit
class TestDefaultDiagnosticSink:
    """Test the sink implied by settings."""

    def test_disabled_by_default(self) -> None:
        assert default_diagnostic_sink(Settings(_env_file=None)) is None

    def test_file_sink_when_enabled(self, tmp_path: Path) -> None:
        sink = default_diagnostic_sink(
            Settings(_env_file=None, diagnostics_to_files=True, diagnostics_dir=tmp_path)
        )
        assert isinstance(sink, FileDiagnosticSink)
        assert sink.directory == tmp_path


# =============================================================================
# Module-level API
# =============================================================================


@pytest.mark.unit
class TestModuleLevelApi:
    """Test the functions that use process-wide settings."""

    def test_log_activity(
        self,
        global_settings: Settings,
        active_session: dict[str, Any],
        stream_file: Path,
    ) -> None:
        assert log_activity("realization", "note", "success").written
        assert stream_file.exists()

    def test_log_tool_use_and_command(
        self,
        global_settings: Settings,
        active_session: dict[str, Any],
        stream_file: Path,
        read_jsonl: ReadJsonl,
    ) -> None:
        log_tool_use("Edit", "/srv/a.py", True)
        log_command("make build", 2, 0.5)
        lines = read_jsonl(stream_file)
        assert [line["context"] for line in lines] == ["a.py", "make build"]

    def test_no_session_is_noop(self, global_settings: Settings) -> None:
        assert log_activity("routine").skipped

    def test_invalid_environment_returns_error(self) -> None:
        from working_memory.config import reset_settings

        reset_settings()
        try:
            with patch.dict(os.environ, {"WORKING_MEMORY_PRIVACY_PATH_MODE": "everything"}):
                result = log_command("ls", 0)
        finally:
            reset_settings()
        assert isinstance(result.error, ConfigurationError)
        assert not result.written
