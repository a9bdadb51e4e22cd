"""Privacy sanitization for paths and shell commands.

Raw paths and commands never reach the activity stream: the convenience
adapters pass them through a :class:`Sanitizer` first.  The default
:class:`PrivacySanitizer` keeps the *shape* of what happened (``a.py``,
``git commit``) and drops identifying detail (home directory, arguments,
anything that looks like a secret).

Filters can be extended with a JSONC file::

    {
      // keywords that redact the whole value
      "sensitive_keywords": {"work": ["acme-internal"]},
      "sensitive_path_patterns": ["*.pem", "id_rsa*"],
      "command_patterns": {
        "with_subcommand": [{"name": "git", "capture_args": 1}],
        "name_only": [{"name": "ssh"}]
      }
    }

If a configured filters file cannot be loaded the sanitizer switches to
emergency mode: command names only, basenames only, fallback keywords.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Protocol

from working_memory.config import Settings
from working_memory.core import jsonc

logger = logging.getLogger(__name__)

FALLBACK_KEYWORDS: tuple[str, ...] = (
    "password",
    "secret",
    "key",
    "token",
    "api_key",
    ".ssh",
    "credentials",
)

DEFAULT_PATH_PATTERNS: tuple[str, ...] = ("*.pem", "*.p12", "id_rsa*", "id_ed25519*")


class Sanitizer(Protocol):
    """Structural type for the privacy collaborator.

    Both methods must be deterministic and must not raise.
    """

    def sanitize_path(self, raw: str) -> str: ...

    def sanitize_command(self, raw: str) -> str: ...


@dataclass(frozen=True)
class CommandPattern:
    name: str
    capture_args: int = 0


@dataclass(frozen=True)
class PrivacyFilters:
    """Keyword and command rules applied by :class:`PrivacySanitizer`."""

    sensitive_keywords: tuple[str, ...] = FALLBACK_KEYWORDS
    sensitive_path_patterns: tuple[str, ...] = DEFAULT_PATH_PATTERNS
    with_subcommand: tuple[CommandPattern, ...] = field(
        default_factory=lambda: tuple(
            CommandPattern(name, 1)
            for name in ("git", "go", "npm", "pnpm", "yarn", "cargo", "docker", "make", "pip", "uv")
        )
    )
    name_only: tuple[str, ...] = ()

    @classmethod
    def from_json(cls, data: Any) -> PrivacyFilters:
        """Build filters from a decoded filters file.

        Keywords from the file are added to the fallback keywords, never
        substituted for them.

        Raises:
            ValueError: If the structure is not what the file format expects.
        """
        if not isinstance(data, dict):
            raise ValueError("filters file must contain a JSON object")

        keywords = list(FALLBACK_KEYWORDS)
        groups = data.get("sensitive_keywords", {})
        if not isinstance(groups, dict):
            raise ValueError("sensitive_keywords must be an object of string lists")
        for group in groups.values():
            if not isinstance(group, list) or not all(isinstance(k, str) for k in group):
                raise ValueError("sensitive_keywords must be an object of string lists")
            keywords.extend(k for k in group if k and k not in keywords)

        patterns = data.get("sensitive_path_patterns", list(DEFAULT_PATH_PATTERNS))
        if not isinstance(patterns, list) or not all(isinstance(p, str) for p in patterns):
            raise ValueError("sensitive_path_patterns must be a list of strings")

        commands = data.get("command_patterns", {})
        if not isinstance(commands, dict):
            raise ValueError("command_patterns must be an object")

        with_sub: list[CommandPattern] = []
        for entry in commands.get("with_subcommand", []):
            if not isinstance(entry, dict) or not isinstance(entry.get("name"), str):
                raise ValueError("with_subcommand entries need a string 'name'")
            capture = entry.get("capture_args", 1)
            if not isinstance(capture, int) or capture < 0:
                raise ValueError("capture_args must be a non-negative integer")
            with_sub.append(CommandPattern(entry["name"], capture))

        name_only: list[str] = []
        for entry in commands.get("name_only", []):
            if not isinstance(entry, dict) or not isinstance(entry.get("name"), str):
                raise ValueError("name_only entries need a string 'name'")
            name_only.append(entry["name"])

        kwargs: dict[str, Any] = {
            "sensitive_keywords": tuple(keywords),
            "sensitive_path_patterns": tuple(patterns),
            "name_only": tuple(name_only),
        }
        if "with_subcommand" in commands:
            kwargs["with_subcommand"] = tuple(with_sub)
        return cls(**kwargs)

    @classmethod
    def load(cls, path: str | Path) -> PrivacyFilters:
        """Load filters from a JSONC file.

        Raises:
            OSError: Unreadable file.
            ValueError: Invalid JSONC or structure.
        """
        return cls.from_json(jsonc.load(path))


class PrivacySanitizer:
    """Default :class:`Sanitizer` driven by :class:`Settings`."""

    def __init__(self, settings: Settings, filters: PrivacyFilters | None = None) -> None:
        self._settings = settings
        self.emergency = False

        if filters is None and settings.privacy_filters_file is not None:
            try:
                filters = PrivacyFilters.load(settings.privacy_filters_file)
            except (OSError, ValueError) as e:
                logger.warning("Privacy filters unavailable, using maximum privacy: %s", e)
                self.emergency = True
                filters = PrivacyFilters(with_subcommand=(), name_only=())

        self.filters = filters or PrivacyFilters()
        self._keywords = tuple(k.lower() for k in self.filters.sensitive_keywords if k)

    # -- public API --------------------------------------------------------

    def sanitize_path(self, raw: str) -> str:
        """Reduce a file path to a non-identifying form."""
        try:
            return self._sanitize_path(raw)
        except Exception:
            logger.debug("Path sanitization failed; redacting", exc_info=True)
            return self._settings.privacy_redaction_label

    def sanitize_command(self, raw: str) -> str:
        """Reduce a shell command to its command name (and allowed subcommands)."""
        try:
            return self._sanitize_command(raw)
        except Exception:
            logger.debug("Command sanitization failed; redacting", exc_info=True)
            return self._settings.privacy_redaction_label

    # -- internals ---------------------------------------------------------

    def _is_sensitive(self, value: str) -> bool:
        lowered = value.lower()
        return any(keyword in lowered for keyword in self._keywords)

    def _sanitize_path(self, raw: str) -> str:
        if not raw:
            return ""
        settings = self._settings
        if not settings.privacy_enabled:
            return raw

        if self._is_sensitive(raw):
            return settings.privacy_redaction_label
        for pattern in self.filters.sensitive_path_patterns:
            needle = pattern.strip("*")
            if needle and needle in raw:
                return settings.privacy_redaction_label

        path = raw
        home = os.environ.get("HOME", "")
        if home and path.startswith(home):
            path = settings.privacy_home_token + path[len(home) :]

        if settings.privacy_path_mode == "full" and not self.emergency:
            return path
        return os.path.basename(path.rstrip("/\\")) or path

    def _sanitize_command(self, raw: str) -> str:
        if not raw:
            return ""
        settings = self._settings
        if not settings.privacy_enabled:
            return raw

        parts = raw.split()
        if not parts:
            return ""

        name = os.path.basename(parts[0]) or parts[0]
        if self._is_sensitive(name):
            return settings.privacy_redaction_label
        if self.emergency:
            return name

        for prefix in self.filters.name_only:
            if name.startswith(prefix):
                return name

        for pattern in self.filters.with_subcommand:
            if name.startswith(pattern.name):
                capture = min(pattern.capture_args, settings.privacy_max_args_capture)
                return " ".join([name, *self._safe_args(parts[1:], capture)])

        mode = settings.privacy_command_capture
        if mode == "name_and_subcommand":
            return " ".join([name, *self._safe_args(parts[1:], 1)])
        if mode == "full_command":
            label = settings.privacy_redaction_label
            return " ".join(label if self._is_sensitive(p) else p for p in parts)
        return name

    def _safe_args(self, args: list[str], limit: int) -> list[str]:
        """Take up to *limit* leading arguments, stopping at flags or secrets."""
        captured: list[str] = []
        for arg in args[:limit]:
            if arg.startswith("-") or self._is_sensitive(arg):
                break
            captured.append(arg)
        return captured
