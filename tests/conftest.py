"""Pytest fixtures for working-memory tests."""

from __future__ import annotations

import json
from collections.abc import Callable, Generator
from pathlib import Path
from typing import Any

import pytest

from working_memory.activity.diagnostics import Diagnostic
from working_memory.activity.logger import ActivityLogger
from working_memory.config import Settings, override_settings, reset_settings

SESSION_ID = "sess-2026-10-18-abc123"

# ---------------------------------------------------------------------------
# Basic fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def base_dir(tmp_path: Path) -> Path:
    """Provide an isolated base directory standing in for $HOME."""
    home = tmp_path / "home"
    home.mkdir()
    return home


@pytest.fixture
def settings(base_dir: Path) -> Settings:
    """Provide settings rooted at the temporary base directory."""
    return Settings(_env_file=None, base_dir=base_dir)


@pytest.fixture
def global_settings(settings: Settings) -> Generator[Settings, None, None]:
    """Install *settings* as the process-wide default for module-level calls."""
    override_settings(settings)
    yield settings
    reset_settings()


@pytest.fixture
def session_id() -> str:
    """Session id used by the default descriptor."""
    return SESSION_ID


@pytest.fixture
def identity_data() -> dict[str, Any]:
    """Provide a complete session descriptor."""
    return {
        "session_id": SESSION_ID,
        "instance_id": "assistant-01",
        "user_id": "dev-user",
        "project_id": "working-memory",
        "work_context": "~/projects/working-memory",
    }


@pytest.fixture
def write_descriptor(settings: Settings) -> Callable[[Any], Path]:
    """Return a function that writes the session descriptor file.

    Dicts and lists are JSON-encoded; strings are written verbatim.
    """

    def _write(content: Any) -> Path:
        path = Path(settings.base_dir) / settings.session_file
        path.parent.mkdir(parents=True, exist_ok=True)
        text = content if isinstance(content, str) else json.dumps(content)
        path.write_text(text, encoding="utf-8")
        return path

    return _write


@pytest.fixture
def active_session(
    write_descriptor: Callable[[Any], Path], identity_data: dict[str, Any]
) -> dict[str, Any]:
    """Write a valid descriptor and return its contents."""
    write_descriptor(identity_data)
    return identity_data


@pytest.fixture
def diagnostics() -> list[Diagnostic]:
    """Collect diagnostics emitted during a test."""
    return []


@pytest.fixture
def activity_logger(settings: Settings, diagnostics: list[Diagnostic]) -> ActivityLogger:
    """Provide an ActivityLogger wired to the temporary base directory."""
    return ActivityLogger(settings, diagnostic_sink=diagnostics.append)


@pytest.fixture
def stream_file(settings: Settings) -> Path:
    """Path of the stream file for the test session."""
    return Path(settings.base_dir) / settings.activity_dir / f"{SESSION_ID}.jsonl"


@pytest.fixture
def read_jsonl() -> Callable[[Path], list[dict[str, Any]]]:
    """Return a function that decodes every line of a JSONL file."""

    def _read(path: Path) -> list[dict[str, Any]]:
        return [json.loads(line) for line in path.read_text(encoding="utf-8").splitlines()]

    return _read
