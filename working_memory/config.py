"""Configuration system for the working-memory activity stream."""

from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Working Memory Configuration."""

    # Storage
    base_dir: Path | None = Field(
        default=None,
        description="Explicit base directory (overrides $HOME and the OS home lookup)",
    )
    session_file: Path = Field(
        default=Path(".claude/working-memory/session/current-log.json"),
        description="Session descriptor file, relative to the base directory",
    )
    activity_dir: Path = Field(
        default=Path(".claude/working-memory/session/activity"),
        description="Directory of per-session JSONL streams, relative to the base directory",
    )

    # Diagnostics
    diagnostics_to_files: bool = Field(
        default=False,
        description="Mirror success/failure diagnostics to plain-text scratch files",
    )
    diagnostics_dir: Path | None = Field(
        default=None,
        description="Directory for diagnostic scratch files (system temp dir if unset)",
    )

    # Logging
    log_level: str = Field(
        default="WARNING",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)",
    )
    log_json: bool = Field(
        default=False,
        description="Emit log records as JSON lines",
    )

    # Privacy
    privacy_enabled: bool = Field(
        default=True,
        description="Sanitize paths and commands before they are logged",
    )
    privacy_redaction_label: str = Field(
        default="[PRIVATE]",
        description="Replacement for values that match a sensitive keyword",
    )
    privacy_path_mode: Literal["basename", "full"] = Field(
        default="basename",
        description="How much of a sanitized path is kept",
    )
    privacy_home_token: str = Field(
        default="~",
        description="Token that replaces the home directory prefix",
    )
    privacy_command_capture: Literal["name_only", "name_and_subcommand", "full_command"] = Field(
        default="name_only",
        description="Default capture mode for commands without a matching pattern",
    )
    privacy_max_args_capture: int = Field(
        default=2,
        ge=0,
        description="Upper bound on arguments captured for subcommand patterns",
    )
    privacy_filters_file: Path | None = Field(
        default=None,
        description="Optional JSONC file with sensitive keywords and command patterns",
    )

    model_config = {
        "env_prefix": "WORKING_MEMORY_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
    }


# Settings singleton with dependency injection support
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get the settings instance (lazy-loaded singleton).

    Returns:
        The Settings instance.

    Example:
        from working_memory.config import get_settings
        settings = get_settings()
        print(settings.activity_dir)
    """
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def override_settings(new_settings: Settings) -> None:
    """Override the settings instance (for testing).

    Args:
        new_settings: The new Settings instance to use.
    """
    global _settings
    _settings = new_settings


def reset_settings() -> None:
    """Reset settings to None (forces reload on next get_settings call)."""
    global _settings
    _settings = None
