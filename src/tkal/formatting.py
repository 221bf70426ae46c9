"""Text formatting for events, shared by the CLI and the TUI."""

import calendar
from collections.abc import Iterable
from datetime import date, datetime, time, timedelta
from itertools import groupby

from tkal.calendar.events import Event

# Typographic characters that render badly in many terminals
_ASCII_REPLACEMENTS = {
    "\u2019": "'",  # right single quotation mark
    "\u2018": "'",  # left single quotation mark
    "\u201c": '"',  # left double quotation mark
    "\u201d": '"',  # right double quotation mark
    "\u2013": "-",  # en dash
    "\u2014": "--",  # em dash
    "\u2026": "...",  # ellipsis
}

DATE_FORMAT = "%b %d, %Y"
LONG_DATE_FORMAT = "%B %d, %Y"
DAY_HEADER_FORMAT = "%A, %B %d, %Y"


def clean_text(value: str) -> str:
    """Replace typographic punctuation with plain ASCII equivalents."""
    for src, dst in _ASCII_REPLACEMENTS.items():
        value = value.replace(src, dst)
    return value


def truncate(value: str, width: int) -> str:
    """Shorten value to width characters, ending in '...' when cut."""
    if width <= 0:
        return ""
    if len(value) <= width:
        return value
    if width <= 3:
        return value[:width]
    return value[: width - 3] + "..."


def format_clock(value: datetime, use_24_hour: bool = False) -> str:
    """Time of day as ``14:05`` or `` 2:05 PM``."""
    if use_24_hour:
        return f"{value.hour:02d}:{value.minute:02d}"
    period = "PM" if value.hour >= 12 else "AM"
    hour = value.hour % 12 or 12
    return f"{hour:2d}:{value.minute:02d} {period}"


def format_timestamp(value: datetime, use_24_hour: bool = False) -> str:
    """Date plus clock time, e.g. ``Jan 15, 2025 at  2:05 PM``."""
    return f"{value.strftime(DATE_FORMAT)} at {format_clock(value, use_24_hour).strip()}"


def format_event(event: Event, show_calendar: bool = True, use_24_hour: bool = False) -> str:
    """One-line summary: when, title, [calendar], @ location."""
    if event.is_all_day:
        when = event.start.strftime(DATE_FORMAT)
    else:
        when = (
            f"{format_timestamp(event.start, use_24_hour)} - "
            f"{format_clock(event.end, use_24_hour).strip()}"
        )

    parts = [when, clean_text(event.title or "Untitled")]
    if show_calendar:
        parts.append(f"[{event.calendar_title}]")
    if event.location:
        parts.append(f"@ {clean_text(event.location)}")
    return " ".join(parts)


def format_event_detail(event: Event, show_notes: bool = False, use_24_hour: bool = False) -> str:
    """Multi-line description of an event."""
    lines = [f"Title: {clean_text(event.title or 'Untitled')}"]

    if event.is_all_day:
        lines.append(f"Date: {event.start.strftime(DATE_FORMAT)}")
    else:
        lines.append(f"Start: {format_timestamp(event.start, use_24_hour)}")
        lines.append(f"End: {format_timestamp(event.end, use_24_hour)}")

    lines.append(f"Calendar: {event.calendar_title}")

    if event.location:
        lines.append(f"Location: {clean_text(event.location)}")
    if event.url:
        lines.append(f"URL: {event.url}")
    if show_notes and event.notes:
        lines.append(f"Notes: {clean_text(event.notes)}")

    return "\n".join(lines)


def group_by_day(events: Iterable[Event]) -> list[tuple[date, list[Event]]]:
    """Sort events by start and bucket them by the day they start on."""
    ordered = sorted(events, key=lambda e: e.start)
    return [(day, list(items)) for day, items in groupby(ordered, key=lambda e: e.day)]


def month_grid(year: int, month: int, first_weekday: int = calendar.MONDAY) -> list[list[int]]:
    """Weeks of a month as rows of day numbers, 0 for padding cells."""
    return calendar.Calendar(first_weekday).monthdayscalendar(year, month)


def weekday_header(first_weekday: int = calendar.MONDAY) -> str:
    """Two-letter weekday labels in grid order, e.g. ``Mo Tu We Th Fr Sa Su``."""
    names = ["Mo", "Tu", "We", "Th", "Fr", "Sa", "Su"]
    return " ".join(names[(first_weekday + i) % 7] for i in range(7))


def event_days(event: Event) -> Iterable[date]:
    """Every calendar day an event touches."""
    day = event.start.date()
    last = event.end.date()
    if event.end > event.start and event.end.time() == time.min:
        last -= timedelta(days=1)
    while day <= max(last, event.start.date()):
        yield day
        day += timedelta(days=1)


