"""Secure logging setup for the working-memory activity stream.

The library itself only creates module loggers; nothing is printed until a
host (or the CLI) calls :func:`configure_logging`.  Hook processes run
inside someone else's terminal session, so the default stays silent.

Records logged with ``extra={"session_id": ...}`` carry their session:
the text format prefixes the message with ``[session=...]`` and the JSON
format adds a ``session_id`` field.

Features:
    - Sensitive data masking (API keys, tokens, passwords, home directory)
    - JSON structured logging format
    - Session context on records that have one
"""

from __future__ import annotations

import json
import logging
import os
import re
import sys
from datetime import datetime, timezone

# Patterns to mask in logs
SENSITIVE_PATTERNS = [
    (re.compile(r'api[_-]?key["\']?\s*[:=]\s*["\']?[\w-]+', re.I), "api_key=***MASKED***"),
    (re.compile(r"sk-[a-zA-Z0-9_-]{20,}"), "***API_KEY***"),
    (re.compile(r"gh[pousr]_[A-Za-z0-9]{20,}"), "***GITHUB_TOKEN***"),
    (re.compile(r'password["\']?\s*[:=]\s*["\']?[^\s"\']+', re.I), "password=***MASKED***"),
    (re.compile(r'token["\']?\s*[:=]\s*["\']?[^\s"\']+', re.I), "token=***MASKED***"),
]

TEXT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def mask_secrets(message: str, home: str | None = None) -> str:
    """Apply every sensitive pattern to *message*.

    The home directory (``$HOME`` unless *home* is given) is replaced with
    ``~`` so logged paths do not reveal the account name.
    """
    for pattern, replacement in SENSITIVE_PATTERNS:
        message = pattern.sub(replacement, message)
    home = os.environ.get("HOME", "") if home is None else home
    if len(home) > 1:
        message = message.replace(home, "~")
    return message


def _session_of(record: logging.LogRecord) -> str | None:
    value = getattr(record, "session_id", None)
    return value if isinstance(value, str) and value else None


class SecureFormatter(logging.Formatter):
    """Formatter that masks sensitive data and shows the session."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record and mask sensitive data.

        Args:
            record: The log record to format.

        Returns:
            Formatted log message with sensitive data masked.
        """
        message = super().format(record)

        session_id = _session_of(record)
        if session_id:
            # "2026-10-18 10:30:00 - logger - LEVEL - [session=abc] message"
            parts = message.split(" - ", 3)
            prefix = f"[session={session_id}] "
            if len(parts) == 4:
                message = f"{parts[0]} - {parts[1]} - {parts[2]} - {prefix}{parts[3]}"
            else:
                message = prefix + message

        return mask_secrets(message)


class JSONFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, str | None] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        session_id = _session_of(record)
        if session_id:
            log_data["session_id"] = session_id

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return mask_secrets(json.dumps(log_data))


def configure_logging(
    level: str = "WARNING",
    json_format: bool = False,
    mask_sensitive: bool = True,
) -> None:
    """Configure logging for the application.

    Output goes to stderr; stdout belongs to the hook response.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR).
        json_format: Use JSON format for structured logging.
        mask_sensitive: Mask sensitive data in logs.
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Remove existing handlers
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)

    if json_format:
        formatter: logging.Formatter = JSONFormatter()
    elif mask_sensitive:
        formatter = SecureFormatter(fmt=TEXT_FORMAT, datefmt=DATE_FORMAT)
    else:
        formatter = logging.Formatter(fmt=TEXT_FORMAT, datefmt=DATE_FORMAT)

    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)
