"""AppleScript execution helpers for the Calendar.app backend."""

from tkal.applescript.base import (
    applescript_date,
    escape_applescript_string,
    run_applescript,
)
from tkal.applescript.errors import (
    AppleScriptError,
    AppNotRunningError,
)

__all__ = [
    "run_applescript",
    "escape_applescript_string",
    "applescript_date",
    "AppleScriptError",
    "AppNotRunningError",
]
