"""Calendar event retrieval from Apple Calendar.app."""

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta

from tkal.applescript import (
    AppleScriptError,
    applescript_date,
    escape_applescript_string,
    run_applescript,
)
from tkal.calendar.calendars import (
    RECORD_SEP,
    UNIT_SEP,
    CalendarAppError,
    _check_calendar_running,
    _ensure_calendar_running,
)

logger = logging.getLogger(__name__)

# Placeholder for empty trailing fields (AppleScript drops empty strings at the end)
EMPTY_FIELD = "-"
EVENT_FIELD_COUNT = 9


@dataclass(frozen=True)
class Event:
    """An event from the calendar store."""

    id: str
    title: str
    start: datetime
    end: datetime
    is_all_day: bool
    calendar_id: str
    calendar_title: str
    location: str | None = None
    notes: str | None = None
    url: str | None = None

    @property
    def day(self) -> date:
        """Calendar day the event starts on."""
        return self.start.date()

    @property
    def duration_minutes(self) -> int:
        """Event duration in minutes."""
        if self.is_all_day:
            return 24 * 60
        return int((self.end - self.start).total_seconds() / 60)

    @property
    def duration_str(self) -> str:
        """Human-readable duration string."""
        if self.is_all_day:
            return "all day"
        minutes = self.duration_minutes
        if minutes < 60:
            return f"{minutes}m"
        hours, mins = divmod(minutes, 60)
        if mins == 0:
            return f"{hours}h"
        return f"{hours}h {mins}m"

    def occurs_at(self, instant: datetime) -> bool:
        """True if the event is in progress at the given instant."""
        return self.start <= instant <= self.end

    def __str__(self) -> str:
        if self.is_all_day:
            time_str = self.start.strftime("%Y-%m-%d") + " (all day)"
        else:
            time_str = self.start.strftime("%Y-%m-%d %H:%M")
        return f"{time_str}: {self.title}"


def _events_script(calendars_expr: str, where: str, limit: int, setup: str = "") -> str:
    """Build the AppleScript that dumps matching events as separated records."""
    return f'''
    tell application "Calendar"
        set output to ""
        set RS to (ASCII character 30)  -- Record Separator
        set US to (ASCII character 31)  -- Unit Separator
        set eventCount to 0
        set maxEvents to {limit}
        {setup}

        repeat with cal in {calendars_expr}
            if eventCount >= maxEvents then exit repeat
            set calName to name of cal
            set calEvents to {{}}
            try
                set calEvents to (every event of cal whose {where})
            end try

            repeat with evt in calEvents
                if eventCount >= maxEvents then exit repeat
                set eventCount to eventCount + 1

                set evtId to uid of evt
                set evtSummary to summary of evt
                if evtSummary is missing value then set evtSummary to ""

                set evtDesc to description of evt
                if evtDesc is missing value then set evtDesc to ""

                set evtLocation to location of evt
                if evtLocation is missing value then set evtLocation to ""

                set evtStart to start date of evt as string
                set evtEnd to end date of evt as string
                set evtAllDay to allday event of evt

                set evtUrl to url of evt
                if evtUrl is missing value then set evtUrl to ""
                if evtUrl is "" then set evtUrl to "{EMPTY_FIELD}"

                if output is not "" then set output to output & RS
                set output to output & evtId & US & evtSummary & US & evtDesc & US & evtLocation & US & evtStart & US & evtEnd & US & (evtAllDay as string) & US & calName & US & evtUrl
            end repeat
        end repeat

        return output
    end tell
    '''


def _calendars_expr(calendar_id: str | None) -> str:
    if calendar_id:
        return f'{{calendar "{escape_applescript_string(calendar_id)}"}}'
    return "calendars"


def _run_events_script(script: str, timeout: int) -> list[Event]:
    _ensure_calendar_running()
    try:
        result = run_applescript(script, timeout=timeout)
    except AppleScriptError as e:
        _check_calendar_running(e)
        raise CalendarAppError(str(e), e.script) from e

    events = _parse_event_records(result)
    events.sort(key=lambda e: e.start)
    return events


def get_events(
    calendar_id: str | None = None,
    start: datetime | None = None,
    end: datetime | None = None,
    limit: int = 1000,
    *,
    timeout: int = 120,
) -> list[Event]:
    """
    Get events overlapping a time range.

    Args:
        calendar_id: Restrict to one calendar, or None for all.
        start: Start of the range (default: now).
        end: End of the range (default: 30 days after start).
        limit: Maximum number of events to retrieve.
        timeout: osascript timeout in seconds.

    Returns:
        List of Event objects sorted by start.

    Raises:
        CalendarAppNotRunningError: If Calendar.app is not running.
        CalendarAppError: If the AppleScript fails.
    """
    if start is None:
        start = datetime.now()
    if end is None:
        end = start + timedelta(days=30)

    setup = (
        f'set startFilter to date "{applescript_date(start)}"\n'
        f'        set endFilter to date "{applescript_date(end)}"'
    )
    script = _events_script(
        _calendars_expr(calendar_id),
        "start date < endFilter and end date > startFilter",
        limit,
        setup,
    )
    # Calendar.app can be very slow with many events
    return _run_events_script(script, timeout)


def search_events(query: str, limit: int = 500, *, timeout: int = 120) -> list[Event]:
    """
    Find events whose title, notes or location contain the query.

    AppleScript `contains` ignores case by default. The search covers every
    calendar with no date bound.
    """
    q = escape_applescript_string(query)
    where = f'summary contains "{q}" or description contains "{q}" or location contains "{q}"'
    script = _events_script("calendars", where, limit)
    return _run_events_script(script, timeout)


def _parse_event_records(result: str | None) -> list[Event]:
    if not result:
        return []

    events = []
    for record in result.split(RECORD_SEP):
        parts = record.split(UNIT_SEP)
        if len(parts) < EVENT_FIELD_COUNT:
            logger.warning(f"Skipping malformed event record ({len(parts)} fields)")
            continue

        start = _parse_date(parts[4])
        end = _parse_date(parts[5])
        if start is None or end is None:
            continue

        url = parts[8].strip()
        events.append(
            Event(
                id=parts[0],
                title=parts[1],
                notes=parts[2] or None,
                location=parts[3] or None,
                start=start,
                end=end,
                is_all_day=parts[6].strip().lower() == "true",
                calendar_id=parts[7],
                calendar_title=parts[7],
                url=url if url and url != EMPTY_FIELD else None,
            )
        )
    return events


# AppleScript returns dates in various formats depending on locale
_APPLESCRIPT_DATE_FORMATS = [
    "%A, %B %d, %Y at %I:%M:%S %p",  # Friday, December 20, 2024 at 10:30:00 AM
    "%A, %B %d, %Y at %H:%M:%S",  # Friday, December 20, 2024 at 22:30:00
    "%a, %b %d, %Y at %I:%M:%S %p",  # Fri, Dec 20, 2024 at 10:30:00 AM
    "%a, %b %d, %Y at %H:%M:%S",  # Fri, Dec 20, 2024 at 22:30:00
    "%B %d, %Y at %I:%M:%S %p",  # December 20, 2024 at 10:30:00 AM
    "%B %d, %Y at %H:%M:%S",  # December 20, 2024 at 22:30:00
    "%A %d %B %Y at %H:%M:%S",  # Friday 20 December 2024 at 22:30:00
    "%A, %d %B %Y at %H:%M:%S",  # Friday, 20 December 2024 at 22:30:00
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%dT%H:%M:%S",
    "%Y-%m-%d",
    "%d/%m/%Y %H:%M:%S",
    "%m/%d/%Y %H:%M:%S",
    "%m/%d/%Y %I:%M:%S %p",
    "%A, %B %d, %Y at %I:%M %p",  # Friday, December 20, 2024 at 10:30 AM
    "%Y-%m-%d %H:%M",
]


def _parse_date(date_str: str) -> datetime | None:
    """Parse an AppleScript date string into a naive local datetime."""
    date_str = date_str.strip().replace("\u202f", " ")
    if not date_str or date_str == "missing value":
        return None

    for fmt in _APPLESCRIPT_DATE_FORMATS:
        try:
            return datetime.strptime(date_str, fmt)
        except ValueError:
            continue

    logger.warning(f"Unrecognized date format from Calendar.app: {date_str!r}")
    return None
