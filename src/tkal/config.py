"""Application settings and persisted UI preferences."""

import logging
import os
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


def default_config_dir() -> Path:
    """$XDG_CONFIG_HOME/tkal, falling back to ~/.config/tkal."""
    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / "tkal"
    return Path.home() / ".config" / "tkal"


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_prefix="TKAL_",
        env_file=[
            ".env",  # Project-level defaults (lower priority)
            default_config_dir() / ".env",  # User config (higher priority)
        ],
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Paths
    config_dir: Path = Field(
        default_factory=default_config_dir, description="Configuration directory"
    )
    preferences_file: str = Field(
        default="preferences.yaml", description="Preferences filename"
    )

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")
    log_dir: Path = Field(
        default=Path.home() / "Library" / "Logs",
        description="Directory for log files",
    )
    log_rotation_size_mb: int = Field(
        default=5, ge=1, description="Max size per log file in MB before rotation"
    )
    log_backup_count: int = Field(
        default=3, ge=0, description="Number of rotated log files to keep"
    )

    # Calendar store
    applescript_timeout: int = Field(
        default=120, ge=1, description="Seconds to wait for Calendar.app queries"
    )
    search_limit: int = Field(
        default=500, ge=1, description="Maximum number of search results"
    )

    # Interactive view
    event_window_days: int = Field(
        default=90, ge=1, description="Days of events listed from the selected date"
    )
    calendar_months: int = Field(
        default=12, ge=1, description="Months drawn in the calendar panel"
    )

    @property
    def preferences_path(self) -> Path:
        """Full path to the preferences file."""
        return self.config_dir / self.preferences_file

    def ensure_config_dir(self) -> None:
        """Create config directory if it doesn't exist."""
        self.config_dir.mkdir(parents=True, exist_ok=True)


class Preferences(BaseModel):
    """UI preferences persisted between interactive sessions."""

    enabled_calendars: list[str] = Field(default_factory=list)
    use_24_hour_time: bool = False


def load_preferences(path: Path) -> Preferences | None:
    """Load preferences, or None when the file is missing or unreadable."""
    if not path.exists():
        return None

    try:
        with open(path) as f:
            data = yaml.safe_load(f) or {}
        return Preferences.model_validate(data)
    except (OSError, yaml.YAMLError, ValidationError) as e:
        logger.error(f"Error loading preferences from {path}: {e}")
        return None


def save_preferences(path: Path, prefs: Preferences) -> bool:
    """Write preferences to disk. Failures are logged, not raised."""
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            yaml.safe_dump(prefs.model_dump(), f, default_flow_style=False, sort_keys=False)
    except OSError as e:
        logger.error(f"Error saving preferences to {path}: {e}")
        return False
    return True
