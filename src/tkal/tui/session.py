"""The interactive session: one loop driving a stack of modes."""

import curses
import logging
import subprocess
from collections.abc import Callable
from datetime import date, datetime, time, timedelta
from pathlib import Path
from typing import Any

from tkal.calendar.calendars import Calendar
from tkal.calendar.store import CachingStore, CalendarStore
from tkal.config import Preferences, Settings, load_preferences, save_preferences
from tkal.errors import StoreError
from tkal.formatting import event_days
from tkal.tui.modes import BrowseMode, Mode
from tkal.tui.render import (
    Layout,
    compute_layout,
    content_capacity,
    draw_calendar_panel,
    draw_event_panel,
    draw_status_bar,
    fully_visible_months,
    layout_event_rows,
    marked_range,
    month_offset,
    month_start,
)
from tkal.tui.state import SessionState
from tkal.tui.surface import CursesSurface, KeyPress, ScreenSurface

logger = logging.getLogger(__name__)

MIN_ROWS = 10
MIN_COLS = 40


def open_with_system(url: str) -> None:
    """Hand a URL to the macOS ``open`` command."""
    subprocess.run(["open", url], capture_output=True, check=False)


class InteractiveSession:
    """Owns the session state and routes keys to the top-most mode.

    Every key press runs one cycle: clear the status line, let the top mode
    handle the key, then re-derive the event list from the store. Store
    failures are turned into status messages and never end the session.
    """

    def __init__(
        self,
        store: CalendarStore,
        surface: ScreenSurface,
        *,
        preferences_path: Path | None = None,
        clock: Callable[[], datetime] = datetime.now,
        window_days: int = 90,
        calendar_months: int = 12,
        url_opener: Callable[[str], None] = open_with_system,
    ) -> None:
        self.store = store if isinstance(store, CachingStore) else CachingStore(store)
        self.surface = surface
        self.preferences_path = preferences_path
        self.clock = clock
        self.window_days = window_days
        self.calendar_months = calendar_months
        self.url_opener = url_opener
        self.running = True
        self.marked_days: set[date] = set()

        today = clock().date()
        self.state = SessionState(selected_date=today, window_start=today)
        self._modes: list[Mode] = [BrowseMode()]
        self._load_preferences()

    def _load_preferences(self) -> None:
        prefs = load_preferences(self.preferences_path) if self.preferences_path else None
        if prefs is not None:
            self.state.enabled_calendar_ids = set(prefs.enabled_calendars)
            self.state.use_24_hour_time = prefs.use_24_hour_time
            return

        # First run: every calendar visible, 12-hour clock
        try:
            self.state.enabled_calendar_ids = {cal.id for cal in self.calendars()}
        except StoreError as e:
            logger.error(f"Could not list calendars: {e}")
            self.state.status_message = f"Could not list calendars: {e}"

    # Clock

    def now(self) -> datetime:
        return self.clock()

    def today(self) -> date:
        return self.clock().date()

    # Mode stack

    @property
    def top(self) -> Mode:
        return self._modes[-1]

    @property
    def modes(self) -> list[Mode]:
        return list(self._modes)

    def push(self, mode: Mode) -> None:
        self._modes.append(mode)
        mode.enter(self)

    def finish(self, result: Any = None) -> None:
        """Pop the top mode and hand result to the one below."""
        if len(self._modes) > 1:
            self._modes.pop()
            self.top.resume(self, result)

    def cancel(self) -> None:
        """Pop the top mode without a result."""
        if len(self._modes) > 1:
            self._modes.pop()
            self.top.cancelled(self)

    def quit(self) -> None:
        self.running = False

    # Store and preferences

    def calendars(self) -> list[Calendar]:
        return self.store.list_calendars()

    def invalidate(self) -> None:
        self.store.invalidate()

    def save_preferences(self) -> None:
        if self.preferences_path is None:
            return
        prefs = Preferences(
            enabled_calendars=sorted(self.state.enabled_calendar_ids),
            use_24_hour_time=self.state.use_24_hour_time,
        )
        if not save_preferences(self.preferences_path, prefs):
            self.state.status_message = "Could not save preferences"

    def open_url(self, url: str) -> None:
        try:
            self.url_opener(url)
        except OSError as e:
            logger.error(f"Failed to open {url}: {e}")
            self.state.status_message = f"Could not open URL: {e}"

    # Input cycle

    def handle_key(self, key: KeyPress) -> None:
        """Run one input cycle for key."""
        self.state.status_message = ""
        try:
            self.top.handle_key(self, key)
        except StoreError as e:
            logger.error(f"Calendar store error: {e}")
            self.state.status_message = f"Calendar error: {e}"
        self.refresh_events()

    def refresh_events(self) -> None:
        """Re-derive the event list, selection and calendar markers."""
        state = self.state
        start = datetime.combine(state.window_start, time.min)
        end = start + timedelta(days=self.window_days)
        try:
            fetched = self.store.list_events(None, start, end)
        except StoreError as e:
            logger.error(f"Failed to load events: {e}")
            state.status_message = f"Failed to load events: {e}"
            fetched = []

        state.events = sorted(
            (e for e in fetched if e.calendar_id in state.enabled_calendar_ids),
            key=lambda e: e.start,
        )
        state.clamp_selection()
        self._ensure_selection_visible()
        self._sync_calendar_scroll()
        self._refresh_marked_days()

    def _layout(self) -> Layout:
        rows, cols = self.surface.size()
        return compute_layout(rows, cols)

    def _ensure_selection_visible(self) -> None:
        state = self.state
        if not state.events:
            return
        capacity = content_capacity(self._layout().events)
        index = state.selected_event_index
        if index < state.scroll_offset:
            state.scroll_offset = index
        while state.scroll_offset < index:
            rows = layout_event_rows(state.events, state.scroll_offset, capacity)
            if any(row.index == index for row in rows):
                break
            state.scroll_offset += 1

    def _sync_calendar_scroll(self) -> None:
        state = self.state
        today = self.today()
        target = month_offset(today, state.selected_date)
        if target < state.calendar_scroll:
            state.calendar_scroll = target
            return
        rect = self._layout().calendar
        wanted = month_start(today, target)
        while state.calendar_scroll < target:
            visible = fully_visible_months(rect, today, state.calendar_scroll, self.calendar_months)
            if wanted in visible:
                break
            state.calendar_scroll += 1

    def _refresh_marked_days(self) -> None:
        start, end = marked_range(self.today(), self.state.calendar_scroll, self.calendar_months)
        try:
            fetched = self.store.list_events(None, start, end)
        except StoreError as e:
            logger.warning(f"Could not load events for the calendar grid: {e}")
            self.marked_days = set()
            return
        enabled = self.state.enabled_calendar_ids
        self.marked_days = {
            day for event in fetched if event.calendar_id in enabled for day in event_days(event)
        }

    # Drawing

    def render(self) -> None:
        surface = self.surface
        surface.clear()
        surface.set_cursor(None)

        rows, cols = surface.size()
        if rows < MIN_ROWS or cols < MIN_COLS:
            surface.draw_text(0, 0, "Terminal too small")
            surface.refresh()
            return

        layout = compute_layout(rows, cols)
        draw_calendar_panel(
            surface, layout.calendar, self.state, self.today(), self.marked_days, self.calendar_months
        )
        draw_event_panel(surface, layout.events, self.state)
        draw_status_bar(surface, layout.status, self.state.status_message)
        if len(self._modes) > 1:
            self.top.render(self, surface, layout.events)
        surface.refresh()

    def run(self) -> None:
        """Read keys and redraw until the quit key is pressed."""
        logger.info("Interactive session started")
        self.refresh_events()
        while self.running:
            self.render()
            self.handle_key(self.surface.get_key())
        logger.info("Interactive session ended")


def run_interactive(store: CalendarStore, settings: Settings) -> None:
    """Run a session on the real terminal until the user quits."""

    def main(stdscr: "curses.window") -> None:
        session = InteractiveSession(
            store,
            CursesSurface(stdscr),
            preferences_path=settings.preferences_path,
            window_days=settings.event_window_days,
            calendar_months=settings.calendar_months,
        )
        session.run()

    curses.wrapper(main)
