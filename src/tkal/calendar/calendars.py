"""Calendar retrieval from Apple Calendar.app."""

import logging
import subprocess
import time
from dataclasses import dataclass

from tkal.applescript import AppleScriptError, AppNotRunningError, run_applescript
from tkal.errors import StoreError

logger = logging.getLogger(__name__)

# ASCII control characters for parsing AppleScript output
RECORD_SEP = "\x1e"  # ASCII 30 - Record Separator
UNIT_SEP = "\x1f"  # ASCII 31 - Unit Separator


class CalendarAppError(AppleScriptError, StoreError):
    """Raised when a Calendar.app AppleScript command fails."""

    pass


class CalendarAppNotRunningError(AppNotRunningError, StoreError):
    """Raised when Calendar.app is not running."""

    def __init__(self) -> None:
        super().__init__("Calendar")


@dataclass(frozen=True)
class Calendar:
    """A calendar from Calendar.app."""

    id: str
    title: str
    description: str
    is_writable: bool

    def __str__(self) -> str:
        return self.title


def _check_calendar_running(error: AppleScriptError) -> None:
    """Raise CalendarAppNotRunningError if the error says Calendar.app is down."""
    if error.error_number == -600 or "not running" in str(error).lower():
        raise CalendarAppNotRunningError() from error


def _ensure_calendar_running() -> None:
    """Launch Calendar.app if not running and wait for it to be ready."""
    result = subprocess.run(["pgrep", "-x", "Calendar"], capture_output=True)
    if result.returncode == 0:
        return

    logger.info("Calendar.app not running, launching it")
    subprocess.run(["open", "-a", "Calendar"], check=True)
    time.sleep(2)


def get_calendars(*, timeout: int = 30) -> list[Calendar]:
    """
    Get all calendars from Calendar.app.

    Returns:
        List of Calendar objects in Calendar.app order.

    Raises:
        CalendarAppNotRunningError: If Calendar.app is not running.
        CalendarAppError: If the AppleScript fails.
    """
    script = '''
    tell application "Calendar"
        set output to ""
        set RS to (ASCII character 30)  -- Record Separator
        set US to (ASCII character 31)  -- Unit Separator

        repeat with cal in calendars
            set calName to name of cal
            -- Calendar.app doesn't expose uid for calendars - use name as ID
            set calId to calName

            set calDesc to ""
            try
                set calDesc to description of cal
                if calDesc is missing value then set calDesc to ""
            on error
                set calDesc to ""
            end try

            set calWritable to writable of cal

            if output is not "" then set output to output & RS
            set output to output & calId & US & calName & US & calDesc & US & (calWritable as string)
        end repeat

        return output
    end tell
    '''

    try:
        result = run_applescript(script, timeout=timeout)
    except AppleScriptError as e:
        _check_calendar_running(e)
        raise CalendarAppError(str(e), e.script) from e

    if not result:
        return []

    calendars = []
    for record in result.split(RECORD_SEP):
        parts = record.split(UNIT_SEP)
        if len(parts) < 4:
            logger.warning(f"Skipping malformed calendar record: {record!r}")
            continue
        calendars.append(
            Calendar(
                id=parts[0],
                title=parts[1],
                description=parts[2],
                is_writable=parts[3].strip().lower() == "true",
            )
        )

    return calendars
