"""Apple Calendar.app integration via AppleScript."""

from tkal.calendar.actions import create_event
from tkal.calendar.calendars import (
    Calendar,
    CalendarAppError,
    CalendarAppNotRunningError,
    get_calendars,
)
from tkal.calendar.events import (
    Event,
    get_events,
    search_events,
)
from tkal.calendar.store import AppleCalendarStore, CachingStore, CalendarStore

__all__ = [
    # Data classes
    "Calendar",
    "Event",
    # Error classes
    "CalendarAppError",
    "CalendarAppNotRunningError",
    # Read operations
    "get_calendars",
    "get_events",
    "search_events",
    # Write operations
    "create_event",
    # Store capability
    "CalendarStore",
    "AppleCalendarStore",
    "CachingStore",
]
