"""Custom exceptions for the working-memory activity stream."""

from pathlib import Path


def sanitize_path_for_error(path: str | Path) -> str:
    """Extract only the filename from a path for safe error messages.

    Prevents leaking full system paths in error messages which could
    expose sensitive directory structure information.

    Args:
        path: Full path or filename.

    Returns:
        Just the filename portion.
    """
    if isinstance(path, Path):
        return path.name
    return Path(path).name


class WorkingMemoryError(Exception):
    """Base exception for all working-memory errors."""

    pass


class ConfigurationError(WorkingMemoryError):
    """Raised when configuration is invalid."""

    pass


class ActivityLogError(WorkingMemoryError):
    """Raised when an activity event could not be appended to its stream.

    The full attempted path is kept on the exception for debugging; the
    message itself only names the file.
    """

    def __init__(self, message: str, path: str | Path = "") -> None:
        self.path = str(path)
        if path:
            message = f"{message} ({sanitize_path_for_error(path)})"
        super().__init__(message)


class DirectoryCreateError(ActivityLogError):
    """Raised when the activity directory cannot be created."""

    pass


class SerializationError(ActivityLogError):
    """Raised when an event cannot be encoded as a JSON line."""

    pass


class StreamWriteError(ActivityLogError):
    """Raised when opening or appending to a stream file fails."""

    pass


class StreamReadError(WorkingMemoryError):
    """Raised when a stream line cannot be parsed in strict mode."""

    def __init__(self, message: str, line_number: int | None = None) -> None:
        self.line_number = line_number
        if line_number is not None:
            message = f"line {line_number}: {message}"
        super().__init__(message)
