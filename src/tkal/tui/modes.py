"""Screens of the interactive session.

Every screen is a ``Mode`` on the session's stack. The session routes each
key to the top mode; a mode leaves the stack with ``session.finish(result)``
or ``session.cancel()``, and the mode underneath is told through
``resume()`` or ``cancelled()``. Multi-step flows such as event creation
push one sub-mode per step and collect the results as they come back.
"""

from __future__ import annotations

import logging
import textwrap
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from enum import Enum
from typing import TYPE_CHECKING, Any

from tkal.calendar.calendars import Calendar
from tkal.calendar.events import Event
from tkal.dates import DEFAULT_DURATION, parse, parse_duration, parse_time_of_day
from tkal.errors import ParseError, StoreError, ValidationError
from tkal.formatting import (
    DATE_FORMAT,
    clean_text,
    format_clock,
    format_event_detail,
    month_grid,
    truncate,
    weekday_header,
)
from tkal.tui.render import CONTENT_TOP, content_capacity, draw_modal_frame
from tkal.tui.state import Focus
from tkal.tui.surface import Key, KeyPress, Rect, ScreenSurface, Style

if TYPE_CHECKING:
    from tkal.tui.session import InteractiveSession

logger = logging.getLogger(__name__)

QUIT_KEYS = ("q", "Q")

HELP_TEXT = """\
Navigation
  Tab           Switch between calendar and events
  Up/Down, k/j  Previous/next week or event
  Left/Right    Previous/next day (calendar panel)
  h/l           Same as Left/Right
  Enter, l      Open the selected event

Actions
  n             New event
  t             Jump to today
  r             Refresh events
  c             Choose visible calendars
  /             Search all events
  T             Toggle 12/24-hour time

Event Detail View
  o             Open the event URL
  q, Esc        Back

General
  ?             This help
  q             Quit"""


def vertical_step(key: KeyPress) -> int:
    """-1 for up, 1 for down, 0 for anything else."""
    if key in (Key.DOWN, "j"):
        return 1
    if key in (Key.UP, "k"):
        return -1
    return 0


def is_back(key: KeyPress) -> bool:
    return key is Key.ESCAPE or key in QUIT_KEYS


@dataclass
class ListCursor:
    """Cursor and scroll position over a list of count rows."""

    count: int
    index: int = 0
    offset: int = 0

    def move(self, delta: int) -> None:
        if self.count == 0:
            self.index = 0
            return
        self.index = max(0, min(self.index + delta, self.count - 1))

    def visible(self, capacity: int) -> range:
        """Indexes to draw, scrolled so the cursor stays on screen."""
        capacity = max(capacity, 1)
        if self.index < self.offset:
            self.offset = self.index
        elif self.index >= self.offset + capacity:
            self.offset = self.index - capacity + 1
        return range(self.offset, min(self.count, self.offset + capacity))


class Mode:
    """One screen on the session's mode stack."""

    def enter(self, session: InteractiveSession) -> None:
        """Called right after the mode is pushed."""

    def render(self, session: InteractiveSession, surface: ScreenSurface, area: Rect) -> None:
        """Draw the mode inside area (the event panel)."""

    def handle_key(self, session: InteractiveSession, key: KeyPress) -> None:
        raise NotImplementedError

    def resume(self, session: InteractiveSession, result: Any) -> None:
        """A mode pushed on top of this one finished with result."""

    def cancelled(self, session: InteractiveSession) -> None:
        """A mode pushed on top of this one was cancelled."""


def _draw_footer(surface: ScreenSurface, area: Rect, hint: str) -> None:
    surface.draw_text(area.bottom - 1, area.left + 2, truncate(hint, area.width - 4), Style.HEADER)


def _list_capacity(area: Rect) -> int:
    # Title row, blank row and footer row take three lines of the content
    return max(1, content_capacity(area) - 2)


class BrowseMode(Mode):
    """The two main panels. Bottom of the stack, never popped."""

    def handle_key(self, session: InteractiveSession, key: KeyPress) -> None:
        state = session.state

        if key in QUIT_KEYS:
            session.quit()
        elif key is Key.TAB:
            state.focus = Focus.EVENTS if state.focus is Focus.CALENDAR else Focus.CALENDAR
        elif vertical_step(key):
            self._move_vertical(session, vertical_step(key))
        elif key in (Key.LEFT, "h"):
            if state.focus is Focus.CALENDAR:
                state.move_to_date(state.selected_date - timedelta(days=1))
            else:
                state.focus = Focus.CALENDAR
        elif key in (Key.RIGHT, "l"):
            if state.focus is Focus.CALENDAR:
                state.move_to_date(state.selected_date + timedelta(days=1))
            else:
                self._open_selected(session)
        elif key is Key.ENTER:
            if state.focus is Focus.EVENTS:
                self._open_selected(session)
        elif key == "n":
            self._start_wizard(session)
        elif key == "r":
            session.invalidate()
            state.status_message = "Events refreshed"
        elif key == "t":
            state.move_to_date(session.today())
            state.calendar_scroll = 0
        elif key == "c":
            session.push(ToggleCalendarsMode(session.calendars()))
        elif key == "/":
            session.push(SearchMode())
        elif key == "?":
            session.push(HelpMode())
        elif key == "T":
            state.use_24_hour_time = not state.use_24_hour_time
            session.save_preferences()
            state.status_message = (
                "Switched to 24-hour time" if state.use_24_hour_time else "Switched to 12-hour time"
            )
        elif key is Key.RESIZE:
            pass
        else:
            state.status_message = "Press ? for help"

    def _move_vertical(self, session: InteractiveSession, step: int) -> None:
        state = session.state
        if state.focus is Focus.CALENDAR:
            state.move_to_date(state.selected_date + timedelta(weeks=step))
            return

        if not state.events:
            return
        state.selected_event_index = max(
            0, min(state.selected_event_index + step, len(state.events) - 1)
        )
        # The cursor follows the event; the list window stays anchored
        state.selected_date = state.events[state.selected_event_index].day

    def _open_selected(self, session: InteractiveSession) -> None:
        event = session.state.selected_event
        if event is not None:
            session.push(EventDetailMode(event))

    def _start_wizard(self, session: InteractiveSession) -> None:
        writable = [cal for cal in session.calendars() if cal.is_writable]
        if not writable:
            session.state.status_message = "No writable calendars available"
            return
        session.push(CreateEventWizard(writable))


class EventDetailMode(Mode):
    """Full description of one event."""

    def __init__(self, event: Event) -> None:
        self.event = event

    def render(self, session: InteractiveSession, surface: ScreenSurface, area: Rect) -> None:
        draw_modal_frame(surface, area, "Event Details")
        text = format_event_detail(
            self.event, show_notes=True, use_24_hour=session.state.use_24_hour_time
        )
        width = max(area.width - 4, 10)
        lines = []
        for paragraph in text.splitlines():
            lines.extend(textwrap.wrap(paragraph, width) or [""])

        row = area.top + CONTENT_TOP + 1
        for line in lines[: max(0, area.height - 6)]:
            surface.draw_text(row, area.left + 2, line)
            row += 1
        _draw_footer(surface, area, "o:Open URL  q:Back")

    def handle_key(self, session: InteractiveSession, key: KeyPress) -> None:
        if is_back(key) or key in (Key.LEFT, "h"):
            session.cancel()
        elif key == "o":
            if self.event.url:
                session.open_url(self.event.url)
            else:
                session.state.status_message = "This event has no URL"


class ToggleCalendarsMode(Mode):
    """Checklist of calendars; space flips whether one is shown."""

    def __init__(self, calendars: list[Calendar]) -> None:
        self.calendars = calendars
        self.cursor = ListCursor(len(calendars))

    def render(self, session: InteractiveSession, surface: ScreenSurface, area: Rect) -> None:
        draw_modal_frame(surface, area, "Toggle Calendars")
        enabled = session.state.enabled_calendar_ids
        row = area.top + CONTENT_TOP + 1
        for index in self.cursor.visible(_list_capacity(area)):
            cal = self.calendars[index]
            mark = "[X]" if cal.id in enabled else "[ ]"
            line = truncate(f"{mark} {clean_text(cal.title)}", area.width - 6)
            selected = index == self.cursor.index
            surface.draw_text(
                row, area.left + 2, line, Style.SELECTED if selected else Style.NORMAL, selected
            )
            row += 1
        _draw_footer(surface, area, "Arrows:Navigate  Space:Toggle  q:Done")

    def handle_key(self, session: InteractiveSession, key: KeyPress) -> None:
        if is_back(key) or key is Key.ENTER:
            session.finish()
        elif vertical_step(key):
            self.cursor.move(vertical_step(key))
        elif key == " " and self.calendars:
            cal = self.calendars[self.cursor.index]
            enabled = session.state.enabled_calendar_ids
            if cal.id in enabled:
                enabled.discard(cal.id)
            else:
                enabled.add(cal.id)
            logger.debug(f"Calendar {cal.title!r} enabled={cal.id in enabled}")
            session.save_preferences()


class HelpMode(Mode):
    """Key reference. Any key closes it."""

    def render(self, session: InteractiveSession, surface: ScreenSurface, area: Rect) -> None:
        draw_modal_frame(surface, area, "Help")
        row = area.top + CONTENT_TOP + 1
        for line in HELP_TEXT.splitlines()[: max(0, area.height - 6)]:
            bold = bool(line) and not line.startswith(" ")
            surface.draw_text(row, area.left + 2, line, bold=bold)
            row += 1
        _draw_footer(surface, area, "Press any key to return")

    def handle_key(self, session: InteractiveSession, key: KeyPress) -> None:
        session.cancel()


class TextInputMode(Mode):
    """Single-line text prompt. Finishes with the stripped text."""

    def __init__(self, prompt: str, *, required: bool = False, marker: str = "> ") -> None:
        self.prompt = prompt
        self.required = required
        self.marker = marker
        self.buffer = ""

    def value(self) -> str:
        text = self.buffer.strip()
        if self.required and not text:
            raise ValidationError(f"{self.prompt} cannot be empty")
        return text

    def render(self, session: InteractiveSession, surface: ScreenSurface, area: Rect) -> None:
        draw_modal_frame(surface, area, self.prompt)
        row = area.top + CONTENT_TOP + 1
        width = area.width - 4 - len(self.marker)
        visible = self.buffer[-width:] if width > 0 else ""
        surface.draw_text(row, area.left + 2, self.marker + visible)
        hint = "Type and press Enter  ESC:Cancel"
        if not self.required:
            hint = "Type and press Enter (empty to skip)  ESC:Cancel"
        _draw_footer(surface, area, hint)
        surface.set_cursor(row, area.left + 2 + len(self.marker) + len(visible))

    def handle_key(self, session: InteractiveSession, key: KeyPress) -> None:
        if key is Key.ESCAPE:
            session.cancel()
        elif key is Key.ENTER:
            try:
                text = self.value()
            except ValidationError as e:
                session.state.status_message = str(e)
                return
            session.finish(text)
        elif key is Key.BACKSPACE:
            self.buffer = self.buffer[:-1]
        elif isinstance(key, str):
            self.buffer += key


class SearchMode(Mode):
    """Query prompt, then a browsable list of every matching event."""

    def __init__(self) -> None:
        self.query = ""
        self.results: list[Event] | None = None
        self.cursor = ListCursor(0)

    def enter(self, session: InteractiveSession) -> None:
        session.push(TextInputMode("Search events", required=True, marker="/"))

    def resume(self, session: InteractiveSession, result: Any) -> None:
        if self.results is not None:
            return
        self.query = result
        try:
            found = session.store.search_events(result)
        except StoreError as e:
            logger.error(f"Search for {result!r} failed: {e}")
            session.state.status_message = f"Search failed: {e}"
            session.cancel()
            return
        self.results = sorted(found, key=lambda e: e.start)
        self.cursor = ListCursor(len(self.results))
        logger.info(f"Search {result!r} matched {len(self.results)} event(s)")

    def cancelled(self, session: InteractiveSession) -> None:
        # Leaving the query prompt leaves search; leaving a detail view returns here
        if self.results is None:
            session.cancel()

    def _row(self, event: Event, width: int, use_24_hour: bool) -> str:
        day = f"{event.start.month}/{event.start.day}/{event.start:%y}"
        when = " All Day" if event.is_all_day else format_clock(event.start, use_24_hour)
        return truncate(f"{day:>8} {when}  {clean_text(event.title or 'Untitled')}", width)

    def render(self, session: InteractiveSession, surface: ScreenSurface, area: Rect) -> None:
        count = len(self.results or [])
        draw_modal_frame(
            surface, area, f"Search Results: {count} events matching '{self.query}'"
        )
        row = area.top + CONTENT_TOP + 1
        if not self.results:
            surface.draw_text(row, area.left + 2, "No matching events")
        else:
            for index in self.cursor.visible(_list_capacity(area)):
                line = self._row(self.results[index], area.width - 4, session.state.use_24_hour_time)
                selected = index == self.cursor.index
                surface.draw_text(
                    row, area.left + 2, line, Style.SELECTED if selected else Style.NORMAL, selected
                )
                row += 1
        _draw_footer(surface, area, "Arrows:Navigate  Enter:View  q:Back")

    def handle_key(self, session: InteractiveSession, key: KeyPress) -> None:
        if is_back(key):
            session.cancel()
        elif vertical_step(key):
            self.cursor.move(vertical_step(key))
        elif key in (Key.ENTER, Key.RIGHT, "l") and self.results:
            session.push(EventDetailMode(self.results[self.cursor.index]))


class SelectCalendarMode(Mode):
    """Pick one calendar. Finishes with the Calendar."""

    def __init__(self, calendars: list[Calendar]) -> None:
        self.calendars = calendars
        self.cursor = ListCursor(len(calendars))

    def render(self, session: InteractiveSession, surface: ScreenSurface, area: Rect) -> None:
        draw_modal_frame(surface, area, "Select Calendar")
        row = area.top + CONTENT_TOP + 1
        for index in self.cursor.visible(_list_capacity(area)):
            selected = index == self.cursor.index
            title = truncate(clean_text(self.calendars[index].title), area.width - 6)
            surface.draw_text(
                row, area.left + 2, title, Style.SELECTED if selected else Style.NORMAL, selected
            )
            row += 1
        _draw_footer(surface, area, "Arrows:Navigate  Enter:Select  q:Cancel")

    def handle_key(self, session: InteractiveSession, key: KeyPress) -> None:
        if is_back(key):
            session.cancel()
        elif vertical_step(key):
            self.cursor.move(vertical_step(key))
        elif key is Key.ENTER and self.calendars:
            session.finish(self.calendars[self.cursor.index])


class DatePickerMode(Mode):
    """Month grid with a day cursor, or a typed date expression.

    Finishes with a ``date``.
    """

    PROMPT = "Enter date (e.g., 'tomorrow', 'next friday', '2025-12-25')"

    def __init__(self, initial: date) -> None:
        self.cursor = initial

    def render(self, session: InteractiveSession, surface: ScreenSurface, area: Rect) -> None:
        draw_modal_frame(surface, area, "Select Date")
        today = session.today()
        row = area.top + CONTENT_TOP + 1
        left = area.left + 2
        first = self.cursor.replace(day=1)

        surface.draw_text(row, left, first.strftime("%B %Y"), bold=True)
        surface.draw_text(row + 1, left, weekday_header())
        row += 2
        for week in month_grid(first.year, first.month):
            for col, day_number in enumerate(week):
                if not day_number:
                    continue
                day = first.replace(day=day_number)
                style, bold = Style.NORMAL, False
                if day == self.cursor:
                    style, bold = Style.SELECTED, True
                elif day == today:
                    style, bold = Style.TODAY, True
                surface.draw_text(row, left + col * 3, f"{day_number:2d}", style, bold)
            row += 1

        surface.draw_text(row + 1, left, self.cursor.strftime("%A, " + DATE_FORMAT))
        _draw_footer(surface, area, "Arrows:Navigate  Enter:Select  t:Type  q:Cancel")

    def handle_key(self, session: InteractiveSession, key: KeyPress) -> None:
        if is_back(key):
            session.cancel()
        elif key is Key.ENTER:
            session.finish(self.cursor)
        elif key == "t":
            session.push(TextInputMode(self.PROMPT, required=True))
        elif key in (Key.LEFT, "h"):
            self.cursor -= timedelta(days=1)
        elif key in (Key.RIGHT, "l"):
            self.cursor += timedelta(days=1)
        elif vertical_step(key):
            self.cursor += timedelta(weeks=vertical_step(key))

    def resume(self, session: InteractiveSession, result: Any) -> None:
        try:
            resolved = parse(result, session.now())
        except ParseError:
            session.state.status_message = "Invalid date format"
            return
        session.finish(resolved.date())

    def cancelled(self, session: InteractiveSession) -> None:
        # Escaping the typed-date prompt returns to the grid
        pass


class ConfirmMode(Mode):
    """Summary screen; finishes on 'y', anything else cancels."""

    def __init__(self, title: str, lines: list[str]) -> None:
        self.title = title
        self.lines = lines

    def render(self, session: InteractiveSession, surface: ScreenSurface, area: Rect) -> None:
        draw_modal_frame(surface, area, self.title)
        row = area.top + CONTENT_TOP + 1
        for line in self.lines:
            surface.draw_text(row, area.left + 2, truncate(line, area.width - 4))
            row += 1
        surface.draw_text(row + 1, area.left + 2, "Press 'y' to create, any other key to cancel", bold=True)

    def handle_key(self, session: InteractiveSession, key: KeyPress) -> None:
        if key in ("y", "Y"):
            session.finish(True)
        else:
            session.cancel()


class WizardStep(Enum):
    CALENDAR = "calendar"
    TITLE = "title"
    DATE = "date"
    START_TIME = "start_time"
    DURATION = "duration"
    LOCATION = "location"
    NOTES = "notes"
    CONFIRM = "confirm"


class CreateEventWizard(Mode):
    """Collects a new event one prompt at a time, then submits it.

    Cancelling any step abandons the whole event.
    """

    def __init__(self, calendars: list[Calendar]) -> None:
        self.calendars = calendars
        self.step = WizardStep.CALENDAR
        self.calendar: Calendar | None = None
        self.title = ""
        self.day: date | None = None
        self.start_time: time | None = None
        self.duration = DEFAULT_DURATION
        self.location: str | None = None
        self.notes: str | None = None

    @property
    def is_all_day(self) -> bool:
        return self.start_time is None

    def enter(self, session: InteractiveSession) -> None:
        self._ask(session, WizardStep.CALENDAR)

    def _ask(self, session: InteractiveSession, step: WizardStep) -> None:
        self.step = step
        if step is WizardStep.CALENDAR:
            session.push(SelectCalendarMode(self.calendars))
        elif step is WizardStep.TITLE:
            session.push(TextInputMode("Event Title", required=True))
        elif step is WizardStep.DATE:
            session.push(DatePickerMode(session.state.selected_date))
        elif step is WizardStep.START_TIME:
            session.push(TextInputMode("Start Time (or press Enter for all-day)"))
        elif step is WizardStep.DURATION:
            session.push(TextInputMode("Duration (e.g., '1h', '30min', or press Enter for 1h)"))
        elif step is WizardStep.LOCATION:
            session.push(TextInputMode("Location (optional)"))
        elif step is WizardStep.NOTES:
            session.push(TextInputMode("Notes (optional)"))
        elif step is WizardStep.CONFIRM:
            session.push(ConfirmMode("Confirm New Event", self.summary(session)))

    def resume(self, session: InteractiveSession, result: Any) -> None:
        step = self.step
        if step is WizardStep.CALENDAR:
            self.calendar = result
            self._ask(session, WizardStep.TITLE)
        elif step is WizardStep.TITLE:
            self.title = result
            self._ask(session, WizardStep.DATE)
        elif step is WizardStep.DATE:
            self.day = result
            self._ask(session, WizardStep.START_TIME)
        elif step is WizardStep.START_TIME:
            self.start_time = self._resolve_time(session, result) if result else None
            if result and self.start_time is None:
                session.state.status_message = "Invalid time format. Using all-day event."
            if self.is_all_day:
                self._ask(session, WizardStep.LOCATION)
            else:
                self._ask(session, WizardStep.DURATION)
        elif step is WizardStep.DURATION:
            self.duration = (parse_duration(result) if result else None) or DEFAULT_DURATION
            self._ask(session, WizardStep.LOCATION)
        elif step is WizardStep.LOCATION:
            self.location = result or None
            self._ask(session, WizardStep.NOTES)
        elif step is WizardStep.NOTES:
            self.notes = result or None
            self._ask(session, WizardStep.CONFIRM)
        elif step is WizardStep.CONFIRM:
            self._submit(session)

    def cancelled(self, session: InteractiveSession) -> None:
        session.state.status_message = "Event creation cancelled"
        session.cancel()

    def _resolve_time(self, session: InteractiveSession, text: str) -> time | None:
        resolved = parse_time_of_day(text)
        if resolved is not None:
            return resolved
        try:
            return parse(text, session.now()).time()
        except ParseError:
            return None

    def span(self) -> tuple[datetime, datetime]:
        """Start and end of the event being built."""
        if self.is_all_day:
            start = datetime.combine(self.day, time.min)
            return start, start + timedelta(days=1)
        start = datetime.combine(self.day, self.start_time)
        return start, start + self.duration

    def summary(self, session: InteractiveSession) -> list[str]:
        start, end = self.span()
        use_24_hour = session.state.use_24_hour_time
        lines = [
            f"Title:    {self.title}",
            f"Calendar: {self.calendar.title}",
            f"Date:     {start.strftime('%A, ' + DATE_FORMAT)}",
        ]
        if self.is_all_day:
            lines.append("Time:     All Day")
        else:
            lines.append(
                f"Time:     {format_clock(start, use_24_hour).strip()} - "
                f"{format_clock(end, use_24_hour).strip()}"
            )
        if self.location:
            lines.append(f"Location: {self.location}")
        if self.notes:
            lines.append(f"Notes:    {self.notes}")
        return lines

    def _submit(self, session: InteractiveSession) -> None:
        start, end = self.span()
        try:
            session.store.create_event(
                self.title,
                start,
                end,
                self.calendar.id,
                location=self.location,
                notes=self.notes,
                is_all_day=self.is_all_day,
            )
        except StoreError as e:
            logger.error(f"Failed to create event {self.title!r}: {e}")
            session.state.status_message = f"Failed to create event: {e}"
        else:
            session.state.status_message = "Event created successfully!"
        session.finish()
