"""Session identity resolution.

The session descriptor is a small JSON file written by whatever starts a
session.  Until it exists the session is "not yet initialized", which is a
normal state: :meth:`SessionContextResolver.resolve` then returns the
sentinel identity instead of raising.
"""

from __future__ import annotations

import json
import logging

from pydantic import ValidationError

from working_memory.activity.diagnostics import DiagnosticChannel
from working_memory.config import Settings
from working_memory.core.models import SessionIdentity
from working_memory.core.paths import ActivityPaths, is_safe_session_id

logger = logging.getLogger(__name__)


class SessionContextResolver:
    """Reads the current session's identity from its descriptor file."""

    def __init__(self, settings: Settings, diagnostics: DiagnosticChannel | None = None) -> None:
        self._settings = settings
        self._diagnostics = diagnostics or DiagnosticChannel()

    def resolve(self, paths: ActivityPaths | None = None) -> SessionIdentity:
        """Resolve the identity every event must carry.

        Read fresh on every call, never cached.

        Args:
            paths: Pre-resolved locations; resolved from settings if omitted.

        Returns:
            The descriptor's identity, or ``SessionIdentity.sentinel()`` if
            it cannot be read, parsed or validated.
        """
        if paths is None:
            paths = ActivityPaths.resolve(self._settings)
        session_file = paths.session_file

        try:
            raw = session_file.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            return self._unresolved("Session descriptor unreadable", paths, e)

        try:
            data = json.loads(raw)
        except ValueError as e:
            return self._unresolved("Session descriptor is not valid JSON", paths, e)

        if not isinstance(data, dict):
            return self._unresolved(
                "Session descriptor is not a JSON object",
                paths,
                type(data).__name__,
            )

        try:
            identity = SessionIdentity.model_validate(data)
        except ValidationError as e:
            return self._unresolved("Session descriptor is missing identity fields", paths, e)

        if not identity.is_sentinel and not is_safe_session_id(identity.session_id):
            return self._unresolved(
                "Session id cannot be used as a file name",
                paths,
                repr(identity.session_id),
            )

        return identity

    def _unresolved(
        self, message: str, paths: ActivityPaths, error: BaseException | str
    ) -> SessionIdentity:
        logger.debug("%s: %s", message, error)
        self._diagnostics.failure(
            "resolve_session",
            f"{message} (base_dir={paths.base_dir})",
            path=paths.session_file,
            error=error,
        )
        return SessionIdentity.sentinel()
