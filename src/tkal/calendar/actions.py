"""Write operations for Apple Calendar.app.

Direct event creation may not work on every macOS version/configuration.
If it fails, see: https://mjtsai.com/blog/2024/10/23/the-sad-state-of-mac-calendar-scripting/
"""

import logging
from datetime import datetime, timedelta

from tkal.applescript import (
    AppleScriptError,
    applescript_date,
    escape_applescript_string,
    run_applescript,
)
from tkal.calendar.calendars import CalendarAppError, _check_calendar_running
from tkal.calendar.events import Event

logger = logging.getLogger(__name__)


def create_event(
    title: str,
    start: datetime,
    end: datetime | None = None,
    calendar_id: str = "Calendar",
    location: str | None = None,
    notes: str | None = None,
    is_all_day: bool = False,
    url: str | None = None,
    *,
    timeout: int = 30,
) -> Event:
    """
    Create a calendar event.

    Args:
        title: Event title.
        start: Event start.
        end: Event end (default: start + 1 hour).
        calendar_id: Target calendar.
        location: Event location.
        notes: Event notes.
        is_all_day: Whether this is an all-day event.
        url: URL attached to the event.

    Returns:
        The created Event, carrying the uid Calendar.app assigned.

    Raises:
        CalendarAppNotRunningError: If Calendar.app is not running.
        CalendarAppError: If event creation fails.

    Example:
        >>> from datetime import datetime, timedelta
        >>> start = datetime.now() + timedelta(days=1, hours=14)
        >>> event = create_event("Team Meeting", start, calendar_id="Work")
    """
    if end is None:
        end = start + timedelta(hours=1)

    props = [
        f'summary:"{escape_applescript_string(title)}"',
        f'start date:date "{applescript_date(start)}"',
        f'end date:date "{applescript_date(end)}"',
    ]

    if is_all_day:
        props.append("allday event:true")
    if location:
        props.append(f'location:"{escape_applescript_string(location)}"')
    if notes:
        props.append(f'description:"{escape_applescript_string(notes)}"')
    if url:
        props.append(f'url:"{escape_applescript_string(url)}"')

    props_str = ", ".join(props)
    cal_escaped = escape_applescript_string(calendar_id)

    script = f'''
    tell application "Calendar"
        set theCal to calendar "{cal_escaped}"
        set newEvent to make new event at end of events of theCal with properties {{{props_str}}}
        return uid of newEvent
    end tell
    '''

    try:
        result = run_applescript(script, timeout=timeout)
    except AppleScriptError as e:
        _check_calendar_running(e)
        raise CalendarAppError(str(e), e.script) from e

    event_id = result.strip()
    logger.info(f"Created event {event_id} '{title}' in {calendar_id} at {start:%Y-%m-%d %H:%M}")
    return Event(
        id=event_id,
        title=title,
        start=start,
        end=end,
        is_all_day=is_all_day,
        calendar_id=calendar_id,
        calendar_title=calendar_id,
        location=location or None,
        notes=notes or None,
        url=url or None,
    )
