"""Append-only JSON Lines streams, one file per session.

Writing: the complete line (JSON plus ``\\n``) is encoded in memory first,
then handed to a single ``os.write`` on a descriptor opened with
``O_APPEND``.  The file is opened and closed on every append; nothing is
held open between calls and no lock is taken.  Concurrent writers in
other processes rely on the filesystem's atomic append for line-sized
writes.

Reading: lines are decoded one at a time and parsed into whichever event
schema they were written in (see :func:`~working_memory.core.models.parse_event`).
"""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Iterator
from pathlib import Path

from working_memory.core.errors import DirectoryCreateError, StreamReadError, StreamWriteError
from working_memory.core.models import AnyActivityEvent, parse_event

logger = logging.getLogger(__name__)

_OPEN_FLAGS = os.O_WRONLY | os.O_APPEND | os.O_CREAT | getattr(os, "O_BINARY", 0)
_FILE_MODE = 0o644
_DIR_MODE = 0o755

STREAM_SUFFIX = ".jsonl"


def ensure_dir(directory: Path) -> None:
    """Create *directory* (and parents) if it does not exist.

    Raises:
        DirectoryCreateError: If it cannot be created or is not a directory.
    """
    try:
        directory.mkdir(mode=_DIR_MODE, parents=True, exist_ok=True)
    except OSError as e:
        raise DirectoryCreateError(
            f"Failed to create activity dir: {e.strerror or e}", directory
        ) from e


def append_line(path: Path, line: str) -> int:
    """Append *line* plus a newline to *path* as one write.

    Args:
        path: Stream file; created if missing.
        line: A single line without its trailing newline.

    Returns:
        Number of bytes written.

    Raises:
        StreamWriteError: If the file cannot be opened or the write fails
            or comes up short.
    """
    data = (line + "\n").encode("utf-8")

    try:
        fd = os.open(path, _OPEN_FLAGS, _FILE_MODE)
    except OSError as e:
        raise StreamWriteError(f"Failed to open stream file: {e.strerror or e}", path) from e

    try:
        written = os.write(fd, data)
    except OSError as e:
        raise StreamWriteError(f"Failed to write event: {e.strerror or e}", path) from e
    finally:
        os.close(fd)

    if written != len(data):
        raise StreamWriteError(f"Short write: {written} of {len(data)} bytes", path)
    return written


class StreamWriter:
    """Appends serialized events to per-session stream files."""

    def __init__(self, activity_dir: Path) -> None:
        self.activity_dir = Path(activity_dir)

    def stream_path(self, session_id: str) -> Path:
        return self.activity_dir / f"{session_id}{STREAM_SUFFIX}"

    def append(self, session_id: str, line: str) -> Path:
        """Ensure the directory exists and append one line.

        Raises:
            DirectoryCreateError: Directory creation failed.
            StreamWriteError: Open or write failed.
        """
        ensure_dir(self.activity_dir)
        path = self.stream_path(session_id)
        append_line(path, line)
        return path


def parse_line(line: str) -> AnyActivityEvent:
    """Decode and parse one stream line.

    Raises:
        ValueError: Invalid JSON or neither schema matches.
    """
    return parse_event(json.loads(line))


def read_stream(path: str | Path, *, strict: bool = False) -> Iterator[AnyActivityEvent]:
    """Iterate over the events in a stream file, oldest first.

    Current and legacy lines may be mixed freely.  Blank lines are
    skipped.  A missing file yields nothing.

    Args:
        path: Stream file.
        strict: Raise on a bad line instead of skipping it.

    Yields:
        ``ActivityEvent`` or ``LegacyActivityEvent`` per line.

    Raises:
        StreamReadError: A line could not be parsed and *strict* is set.
    """
    path = Path(path)
    if not path.exists():
        return

    with open(path, encoding="utf-8", errors="replace") as f:
        for line_number, raw in enumerate(f, start=1):
            line = raw.strip()
            if not line:
                continue
            try:
                yield parse_line(line)
            except ValueError as e:
                if strict:
                    raise StreamReadError(str(e), line_number) from e
                logger.warning("Skipping unreadable line %d in %s: %s", line_number, path.name, e)
