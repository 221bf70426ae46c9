"""Mutable state owned by one interactive session."""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum

from tkal.calendar.events import Event


class Focus(Enum):
    """Which main panel receives navigation keys."""

    CALENDAR = "calendar"
    EVENTS = "events"


@dataclass
class SessionState:
    """Cursor, selection and preference state for the interactive view.

    ``window_start`` anchors the event list: it follows ``selected_date``
    when the date is moved from the calendar panel, but stays put while the
    event panel drags the calendar cursor along with the selected event.
    """

    selected_date: date
    window_start: date
    focus: Focus = Focus.EVENTS
    events: list[Event] = field(default_factory=list)
    selected_event_index: int = 0
    scroll_offset: int = 0
    enabled_calendar_ids: set[str] = field(default_factory=set)
    use_24_hour_time: bool = False
    status_message: str = ""
    # Month offset of the first month in the calendar panel, relative to today
    calendar_scroll: int = 0

    @property
    def selected_event(self) -> Event | None:
        if 0 <= self.selected_event_index < len(self.events):
            return self.events[self.selected_event_index]
        return None

    def move_to_date(self, day: date) -> None:
        """Place the calendar cursor and re-anchor the event list there."""
        self.selected_date = day
        self.window_start = day
        self.selected_event_index = 0
        self.scroll_offset = 0

    def clamp_selection(self) -> None:
        """Keep 0 <= scroll_offset <= selected_event_index < len(events)."""
        if not self.events:
            self.selected_event_index = 0
            self.scroll_offset = 0
            return
        self.selected_event_index = max(0, min(self.selected_event_index, len(self.events) - 1))
        self.scroll_offset = max(0, min(self.scroll_offset, self.selected_event_index))
