"""Filesystem locations used by the activity stream.

Nothing here is cached: the base directory and the paths derived from it
are resolved again on every logging call, so a changed ``$HOME`` or
settings override takes effect immediately.
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from pathlib import Path

from working_memory.config import Settings

SCRATCH_DIR = Path("/tmp")
"""Last-resort base directory when no home directory can be determined."""

_SESSION_ID_RE = re.compile(r"^[a-zA-Z0-9_.-]+$")
"""Safe characters for session IDs used as filenames."""

_WINDOWS_DEVICE_RE = re.compile(r"^(CON|NUL|PRN|AUX|COM[1-9]|LPT[1-9])(\..+)?$", re.IGNORECASE)


def resolve_base_dir(explicit: Path | None = None) -> Path:
    """Resolve the base directory every other path hangs off.

    Resolution order:
    1. *explicit* (``WORKING_MEMORY_BASE_DIR`` via settings)
    2. ``$HOME``
    3. OS home-directory lookup (``Path.home()``)
    4. :data:`SCRATCH_DIR`

    Never raises; always returns a path (which may not exist yet).
    """
    if explicit is not None and str(explicit):
        return Path(explicit)

    home = os.environ.get("HOME", "")
    if home:
        return Path(home)

    try:
        return Path.home()
    except (RuntimeError, KeyError, OSError):
        return SCRATCH_DIR


def is_safe_session_id(session_id: str) -> bool:
    """Check that a session ID can be used as a stream file name.

    Rejects empty or overlong IDs, path separators, ``.``/``..`` and
    Windows device names.
    """
    if not session_id or len(session_id) > 128:
        return False
    if session_id in (".", ".."):
        return False
    if not _SESSION_ID_RE.match(session_id):
        return False
    if _WINDOWS_DEVICE_RE.match(session_id):
        return False
    return True


@dataclass(frozen=True)
class ActivityPaths:
    """Concrete locations for one logging call."""

    base_dir: Path
    session_file: Path
    activity_dir: Path

    @classmethod
    def resolve(cls, settings: Settings) -> ActivityPaths:
        base = resolve_base_dir(settings.base_dir)
        return cls(
            base_dir=base,
            session_file=base / settings.session_file,
            activity_dir=base / settings.activity_dir,
        )
