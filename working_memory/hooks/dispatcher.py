"""Unified dispatcher for Claude Code hook events.

Translates the hook JSON received on stdin into activity events.  Paths
and commands are sanitized by the activity logger's adapters; free-text
fields (prompts, notification messages) are never logged, only their
shape (``length:42``) or a short tag.

CLI usage::

    echo '{"tool_name":"Edit","tool_input":{"file_path":"/x/app.py"}}' \\
        | python -m working_memory hook post-tool-use

All exceptions are caught (fail-open).  Exit code is always 0 and the
standard ``{"continue": true, "suppressOutput": true}`` response is always
written.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from datetime import timedelta
from typing import IO

from working_memory.activity.logger import ActivityLogger, LogResult
from working_memory.core.models import ResultTag
from working_memory.hooks.hook_helpers import (
    env_int,
    get_dict,
    get_str,
    read_stdin,
    write_stdout_response,
)

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_CANONICAL_EVENTS = (
    "SessionStart",
    "SessionEnd",
    "Stop",
    "SubagentStop",
    "PreCompact",
    "Notification",
    "UserPromptSubmit",
    "PreToolUse",
    "PostToolUse",
)


def _kebab(name: str) -> str:
    return re.sub(r"(?<!^)(?=[A-Z])", "-", name).lower()


_EVENT_ALIASES: dict[str, str] = {}
for _name in _CANONICAL_EVENTS:
    _EVENT_ALIASES[_name] = _name  # PascalCase (Claude Code canonical)
    _EVENT_ALIASES[_name[0].lower() + _name[1:]] = _name  # camelCase
    _EVENT_ALIASES[_kebab(_name)] = _name  # kebab-case (CLI)

SEARCH_TOOLS = frozenset({"Grep", "Glob"})
"""Tools whose input is a search pattern, not a path."""

COMMAND_TOOLS = frozenset({"Bash"})

_PATH_KEYS = ("file_path", "notebook_path", "path")

_TAG_RE = re.compile(r"^[A-Za-z0-9_.:-]{1,64}$")


# ---------------------------------------------------------------------------
# Input helpers
# ---------------------------------------------------------------------------


def _normalize_event(raw: str) -> str | None:
    """Normalize an event name to canonical PascalCase.

    Returns ``None`` if the event is not recognized.
    """
    return _EVENT_ALIASES.get(raw)


def _tag(value: object, default: str) -> str:
    """Use *value* as an event context only if it is a short plain token."""
    if isinstance(value, str) and _TAG_RE.match(value):
        return value
    return default


def _tool_path(tool_input: dict[str, object]) -> str:
    for key in _PATH_KEYS:
        value = tool_input.get(key)
        if isinstance(value, str) and value:
            return value
    return ""


def _tool_succeeded(tool_response: object) -> bool:
    """Best-effort success detection from a PostToolUse ``tool_response``."""
    if not isinstance(tool_response, dict):
        return True
    if tool_response.get("success") is False:
        return False
    if tool_response.get("is_error") or tool_response.get("error"):
        return False
    if tool_response.get("interrupted"):
        return False
    return True


def _bash_exit_code(tool_response: object) -> int:
    """Exit code from the tool response, else ``$BASH_EXIT_CODE``, else 0/1."""
    if isinstance(tool_response, dict):
        for key in ("exit_code", "exitCode", "returncode"):
            value = tool_response.get(key)
            if isinstance(value, int) and not isinstance(value, bool):
                return value
    code = env_int("BASH_EXIT_CODE", -1)
    if code >= 0:
        return code
    return 0 if _tool_succeeded(tool_response) else 1


def _bash_duration(tool_response: object) -> timedelta:
    ms = -1
    if isinstance(tool_response, dict):
        value = tool_response.get("duration_ms")
        if isinstance(value, int) and not isinstance(value, bool):
            ms = value
    if ms < 0:
        ms = env_int("BASH_DURATION_MS", 0)
    return timedelta(milliseconds=max(0, ms))


# ---------------------------------------------------------------------------
# Event handlers
# ---------------------------------------------------------------------------

_HandlerFn = Callable[[dict[str, object], ActivityLogger], LogResult | None]


def _handle_post_tool_use(data: dict[str, object], activity: ActivityLogger) -> LogResult | None:
    tool_name = get_str(data, "tool_name")
    if not tool_name:
        return None

    tool_input = get_dict(data, "tool_input")
    tool_response = data.get("tool_response")

    if tool_name in COMMAND_TOOLS:
        return activity.log_command(
            get_str(tool_input, "command"),
            _bash_exit_code(tool_response),
            _bash_duration(tool_response),
        )

    if tool_name in SEARCH_TOOLS:
        return activity.log_activity(tool_name, "search", ResultTag.SUCCESS)

    return activity.log_tool_use(tool_name, _tool_path(tool_input), _tool_succeeded(tool_response))


def _handle_pre_tool_use(data: dict[str, object], activity: ActivityLogger) -> LogResult | None:
    tool_name = get_str(data, "tool_name")
    if not tool_name:
        return None

    tool_input = get_dict(data, "tool_input")
    if tool_name in COMMAND_TOOLS:
        context = activity.sanitizer.sanitize_command(get_str(tool_input, "command"))
    elif tool_name in SEARCH_TOOLS:
        context = "search"
    else:
        context = activity.sanitizer.sanitize_path(_tool_path(tool_input))

    return activity.log_activity(f"{tool_name}-attempt", context, ResultTag.PENDING)


def _handle_session_start(data: dict[str, object], activity: ActivityLogger) -> LogResult | None:
    context = _tag(data.get("source"), "session-initialized")
    return activity.log_activity("SessionStart", context, ResultTag.SUCCESS)


def _handle_session_end(data: dict[str, object], activity: ActivityLogger) -> LogResult | None:
    return activity.log_activity("SessionEnd", _tag(data.get("reason"), "other"), ResultTag.SUCCESS)


def _handle_stop(data: dict[str, object], activity: ActivityLogger) -> LogResult | None:
    if data.get("stop_hook_active", False):
        return None  # Loop guard
    return activity.log_activity("SessionStop", _tag(data.get("reason"), "stop"), ResultTag.SUCCESS)


def _handle_subagent_stop(data: dict[str, object], activity: ActivityLogger) -> LogResult | None:
    if data.get("stop_hook_active", False):
        return None
    context = _tag(data.get("agent_type") or data.get("subagent_type"), "subagent")
    return activity.log_activity("SubagentStop", context, ResultTag.SUCCESS)


def _handle_pre_compact(data: dict[str, object], activity: ActivityLogger) -> LogResult | None:
    return activity.log_activity("PreCompact", _tag(data.get("trigger"), "auto"), ResultTag.SUCCESS)


def _handle_notification(data: dict[str, object], activity: ActivityLogger) -> LogResult | None:
    context = _tag(data.get("notification_type"), "notification")
    return activity.log_activity("Notification", context, ResultTag.INFO)


def _handle_prompt_submit(data: dict[str, object], activity: ActivityLogger) -> LogResult | None:
    # Prompt text is never logged, only its length
    prompt = get_str(data, "prompt")
    return activity.log_activity("PromptSubmit", f"length:{len(prompt)}", ResultTag.SUCCESS)


# ---------------------------------------------------------------------------
# Handler registry
# ---------------------------------------------------------------------------

_HANDLER_MAP: dict[str, _HandlerFn] = {
    "SessionStart": _handle_session_start,
    "SessionEnd": _handle_session_end,
    "Stop": _handle_stop,
    "SubagentStop": _handle_subagent_stop,
    "PreCompact": _handle_pre_compact,
    "Notification": _handle_notification,
    "UserPromptSubmit": _handle_prompt_submit,
    "PreToolUse": _handle_pre_tool_use,
    "PostToolUse": _handle_post_tool_use,
}


# ---------------------------------------------------------------------------
# Primary dispatch function (testable surface)
# ---------------------------------------------------------------------------


def dispatch(
    event: str,
    data: dict[str, object],
    activity: ActivityLogger | None = None,
) -> LogResult | None:
    """Dispatch a hook event to the appropriate handler.

    Args:
        event: Canonical event name (PascalCase).
        data: Parsed stdin JSON.
        activity: Logger to use; built from default settings if omitted.

    Returns:
        The handler's LogResult, or ``None`` if the event was ignored.
    """
    handler = _HANDLER_MAP.get(event)
    if handler is None:
        return None
    return handler(data, activity or ActivityLogger())


def run_hook(
    raw_event: str,
    *,
    stdin: IO[str] | None = None,
    stdout: IO[str] | None = None,
    activity: ActivityLogger | None = None,
) -> int:
    """Read stdin, dispatch, write the hook response.  Always returns 0."""
    try:
        event = _normalize_event(raw_event)
        if event is not None:
            data = read_stdin(stdin)
            result = dispatch(event, data, activity)
            if result is not None and result.error is not None:
                logger.debug("Hook %s did not log: %s", event, result.error)
    except Exception:
        # Fail-open: never disturb the host session
        logger.debug("Hook %s failed", raw_event, exc_info=True)

    write_stdout_response(stdout)
    return 0
