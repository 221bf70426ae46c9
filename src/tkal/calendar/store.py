"""The calendar store capability consumed by the CLI and the TUI."""

import logging
from collections import OrderedDict
from datetime import datetime
from typing import Protocol

from tkal.calendar import actions, calendars, events
from tkal.calendar.calendars import Calendar
from tkal.calendar.events import Event

logger = logging.getLogger(__name__)


class CalendarStore(Protocol):
    """Interface for reading and writing events in any calendar backend."""

    def list_calendars(self) -> list[Calendar]:
        """All known calendars."""
        ...

    def list_events(
        self, calendar_id: str | None, start: datetime, end: datetime
    ) -> list[Event]:
        """Events overlapping [start, end), optionally for one calendar."""
        ...

    def search_events(self, query: str) -> list[Event]:
        """Case-insensitive substring search over title/notes/location."""
        ...

    def create_event(
        self,
        title: str,
        start: datetime,
        end: datetime,
        calendar_id: str,
        location: str | None = None,
        notes: str | None = None,
        is_all_day: bool = False,
        url: str | None = None,
    ) -> Event:
        """Create an event and return it."""
        ...


class AppleCalendarStore:
    """CalendarStore backed by macOS Calendar.app via AppleScript."""

    def __init__(self, *, timeout: int = 120, search_limit: int = 500) -> None:
        self.timeout = timeout
        self.search_limit = search_limit

    def list_calendars(self) -> list[Calendar]:
        return calendars.get_calendars(timeout=self.timeout)

    def list_events(
        self, calendar_id: str | None, start: datetime, end: datetime
    ) -> list[Event]:
        return events.get_events(calendar_id, start, end, timeout=self.timeout)

    def search_events(self, query: str) -> list[Event]:
        return events.search_events(query, limit=self.search_limit, timeout=self.timeout)

    def create_event(
        self,
        title: str,
        start: datetime,
        end: datetime,
        calendar_id: str,
        location: str | None = None,
        notes: str | None = None,
        is_all_day: bool = False,
        url: str | None = None,
    ) -> Event:
        return actions.create_event(
            title,
            start,
            end,
            calendar_id=calendar_id,
            location=location,
            notes=notes,
            is_all_day=is_all_day,
            url=url,
        )


class CachingStore:
    """Wraps a CalendarStore and memoizes range queries.

    Entries are keyed by (calendar_id, start, end). At most max_entries
    ranges are kept; the least recently used one is dropped first. Creating
    an event or calling invalidate() drops every entry.
    """

    def __init__(self, store: CalendarStore, max_entries: int = 8) -> None:
        self._store = store
        self._max_entries = max_entries
        self._events: OrderedDict[tuple[str | None, datetime, datetime], list[Event]] = OrderedDict()
        self._calendars: list[Calendar] | None = None

    def invalidate(self) -> None:
        """Forget all cached results."""
        logger.debug(f"Invalidating {len(self._events)} cached event range(s)")
        self._events.clear()
        self._calendars = None

    def list_calendars(self) -> list[Calendar]:
        if self._calendars is None:
            self._calendars = self._store.list_calendars()
        return list(self._calendars)

    def list_events(
        self, calendar_id: str | None, start: datetime, end: datetime
    ) -> list[Event]:
        key = (calendar_id, start, end)
        if key in self._events:
            self._events.move_to_end(key)
            return list(self._events[key])
        result = self._store.list_events(calendar_id, start, end)
        self._events[key] = result
        while len(self._events) > self._max_entries:
            evicted, _ = self._events.popitem(last=False)
            logger.debug(f"Evicting cached event range {evicted}")
        return list(result)

    def search_events(self, query: str) -> list[Event]:
        return self._store.search_events(query)

    def create_event(
        self,
        title: str,
        start: datetime,
        end: datetime,
        calendar_id: str,
        location: str | None = None,
        notes: str | None = None,
        is_all_day: bool = False,
        url: str | None = None,
    ) -> Event:
        try:
            return self._store.create_event(
                title,
                start,
                end,
                calendar_id,
                location=location,
                notes=notes,
                is_all_day=is_all_day,
                url=url,
            )
        finally:
            self.invalidate()
