"""Shared utilities for the hook entrypoint: stdin, stdout and field coercion."""

from __future__ import annotations

import json
import os
import sys
from typing import IO

STDIN_LIMIT = 524_288  # 512KB
"""Maximum number of bytes read from stdin."""

HOOK_RESPONSE = {"continue": True, "suppressOutput": True}


def read_stdin(stream: IO[str] | None = None) -> dict[str, object]:
    """Read and parse JSON from stdin.

    Returns:
        Parsed dict, or empty dict on any error.
    """
    stream = stream if stream is not None else sys.stdin
    try:
        raw = stream.read(STDIN_LIMIT)
        if not raw or not raw.strip():
            return {}
        data = json.loads(raw)
        if not isinstance(data, dict):
            return {}
        return data
    except Exception:
        return {}


def write_stdout_response(stream: IO[str] | None = None) -> None:
    """Write the standard hook response to stdout and flush.

    Output: ``{"continue": true, "suppressOutput": true}``
    """
    stream = stream if stream is not None else sys.stdout
    try:
        json.dump(HOOK_RESPONSE, stream)
        stream.write("\n")
        stream.flush()
    except Exception:
        pass


def get_str(data: dict[str, object], key: str) -> str:
    """Return ``data[key]`` as a string, or ``""`` if missing or not a string."""
    value = data.get(key)
    return value if isinstance(value, str) else ""


def get_dict(data: dict[str, object], key: str) -> dict[str, object]:
    """Return ``data[key]`` if it is a dict, else an empty dict."""
    value = data.get(key)
    return value if isinstance(value, dict) else {}


def env_int(name: str, default: int = 0) -> int:
    """Parse an integer environment variable, falling back on *default*."""
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default
