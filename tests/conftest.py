"""Pytest fixtures for tkal tests."""

from collections.abc import Callable, Iterable
from datetime import datetime, timedelta
from pathlib import Path

import pytest
from rich.console import Console

from tkal.calendar import Calendar, Event
from tkal.tui.session import InteractiveSession
from tkal.tui.surface import KeyPress, Rect, Style

# Wednesday
NOW = datetime(2025, 1, 15, 10, 30)


def make_event(
    title: str,
    start: datetime,
    end: datetime | None = None,
    *,
    calendar_id: str = "Work",
    is_all_day: bool = False,
    location: str | None = None,
    notes: str | None = None,
    url: str | None = None,
    event_id: str | None = None,
) -> Event:
    """Build an Event with sensible defaults."""
    if end is None:
        end = start + (timedelta(days=1) if is_all_day else timedelta(hours=1))
    return Event(
        id=event_id or f"evt-{title.lower().replace(' ', '-')}",
        title=title,
        start=start,
        end=end,
        is_all_day=is_all_day,
        calendar_id=calendar_id,
        calendar_title=calendar_id,
        location=location,
        notes=notes,
        url=url,
    )


class FakeStore:
    """In-memory CalendarStore."""

    def __init__(
        self,
        calendars: Iterable[Calendar] | None = None,
        events: Iterable[Event] | None = None,
    ) -> None:
        self.calendars = list(calendars) if calendars is not None else default_calendars()
        self.events = list(events or [])
        self.created: list[Event] = []
        self.list_calls: list[tuple[str | None, datetime, datetime]] = []
        self.error: Exception | None = None
        self.create_error: Exception | None = None

    def list_calendars(self) -> list[Calendar]:
        if self.error:
            raise self.error
        return list(self.calendars)

    def list_events(self, calendar_id: str | None, start: datetime, end: datetime) -> list[Event]:
        self.list_calls.append((calendar_id, start, end))
        if self.error:
            raise self.error
        return [
            e
            for e in self.events
            if e.start < end and e.end > start and calendar_id in (None, e.calendar_id)
        ]

    def search_events(self, query: str) -> list[Event]:
        if self.error:
            raise self.error
        needle = query.lower()
        return [
            e
            for e in self.events
            if any(needle in (field or "").lower() for field in (e.title, e.notes, e.location))
        ]

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
        if self.create_error:
            raise self.create_error
        event = make_event(
            title,
            start,
            end,
            calendar_id=calendar_id,
            is_all_day=is_all_day,
            location=location,
            notes=notes,
            url=url,
            event_id=f"new-{len(self.created) + 1}",
        )
        self.created.append(event)
        self.events.append(event)
        return event


class FakeSurface:
    """ScreenSurface that records drawing into a character grid."""

    def __init__(self, rows: int = 40, cols: int = 120, keys: Iterable[KeyPress] = ()) -> None:
        self.rows = rows
        self.cols = cols
        self.keys = list(keys)
        self.cursor: tuple[int, int] | None = None
        self.refreshes = 0
        self.clear()

    def size(self) -> tuple[int, int]:
        return self.rows, self.cols

    def clear(self) -> None:
        self.grid = [[" "] * self.cols for _ in range(self.rows)]
        self.styles: dict[tuple[int, int], tuple[Style, bool]] = {}

    def draw_text(
        self, row: int, col: int, text: str, style: Style = Style.NORMAL, bold: bool = False
    ) -> None:
        if not 0 <= row < self.rows:
            return
        for offset, char in enumerate(text):
            c = col + offset
            if 0 <= c < self.cols:
                self.grid[row][c] = char
                self.styles[(row, c)] = (style, bold)

    def draw_box(self, rect: Rect, style: Style = Style.NORMAL) -> None:
        self.draw_text(rect.top, rect.left, "+" + "-" * (rect.width - 2) + "+", style)
        self.draw_text(rect.bottom, rect.left, "+" + "-" * (rect.width - 2) + "+", style)
        for row in range(rect.top + 1, rect.bottom):
            self.draw_text(row, rect.left, "|", style)
            self.draw_text(row, rect.right, "|", style)

    def fill_row(self, row: int, col: int, width: int, style: Style) -> None:
        self.draw_text(row, col, " " * width, style)

    def set_cursor(self, row: int | None, col: int = 0) -> None:
        self.cursor = None if row is None else (row, col)

    def refresh(self) -> None:
        self.refreshes += 1

    def get_key(self) -> KeyPress:
        # Quit once the scripted keys run out
        return self.keys.pop(0) if self.keys else "q"

    def row_text(self, row: int) -> str:
        return "".join(self.grid[row])

    def text(self) -> str:
        return "\n".join(self.row_text(row) for row in range(self.rows))

    def style_at(self, row: int, col: int) -> tuple[Style, bool]:
        return self.styles.get((row, col), (Style.NORMAL, False))


def default_calendars() -> list[Calendar]:
    return [
        Calendar(id="Work", title="Work", description="", is_writable=True),
        Calendar(id="Personal", title="Personal", description="", is_writable=True),
        Calendar(id="Holidays", title="Holidays", description="", is_writable=False),
    ]


def sample_events() -> list[Event]:
    return [
        make_event("Standup", datetime(2025, 1, 15, 9, 0), datetime(2025, 1, 15, 9, 30)),
        make_event(
            "Lunch with Sam",
            datetime(2025, 1, 15, 12, 0),
            calendar_id="Personal",
            location="Cafe Luna",
        ),
        make_event("Dentist", datetime(2025, 1, 17, 14, 0), calendar_id="Personal"),
        make_event(
            "Company Holiday", datetime(2025, 1, 20), calendar_id="Holidays", is_all_day=True
        ),
        make_event(
            "Planning",
            datetime(2025, 1, 22, 10, 0),
            url="https://example.com/plan",
            notes="Bring the roadmap",
        ),
    ]


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def store() -> FakeStore:
    return FakeStore(events=sample_events())


@pytest.fixture
def prefs_path(tmp_path: Path) -> Path:
    return tmp_path / "config" / "preferences.yaml"


@pytest.fixture
def opened_urls() -> list[str]:
    return []


@pytest.fixture
def make_session(
    store: FakeStore, prefs_path: Path, opened_urls: list[str]
) -> Callable[..., InteractiveSession]:
    """Factory for a session over the fake store, with its events loaded."""

    def factory(rows: int = 40, cols: int = 120, **kwargs) -> InteractiveSession:
        kwargs.setdefault("url_opener", opened_urls.append)
        session = InteractiveSession(
            kwargs.pop("store", store),
            FakeSurface(rows, cols),
            preferences_path=prefs_path,
            clock=lambda: NOW,
            **kwargs,
        )
        session.refresh_events()
        return session

    return factory


def press(session: InteractiveSession, *keys: KeyPress) -> None:
    """Feed keys through the session's input cycle."""
    for key in keys:
        session.handle_key(key)


def type_text(session: InteractiveSession, text: str) -> None:
    press(session, *text)


@pytest.fixture
def output(monkeypatch: pytest.MonkeyPatch) -> Console:
    """Plain-text console shared by the CLI, the shell and display helpers."""
    plain = Console(force_terminal=False, no_color=True, highlight=False, width=120)
    for module in ("tkal.display", "tkal.cli", "tkal.shell"):
        monkeypatch.setattr(f"{module}.console", plain)
    return plain
