"""Tests for the main two-panel view."""

from datetime import date, datetime, timedelta

from conftest import FakeStore, make_event, press

from tkal.config import load_preferences
from tkal.errors import StoreError
from tkal.tui.modes import BrowseMode, EventDetailMode, HelpMode, ToggleCalendarsMode
from tkal.tui.state import Focus
from tkal.tui.surface import Key


def titles(session) -> list[str]:
    return [e.title for e in session.state.events]


class TestInitialState:
    """Tests for a freshly opened session."""

    def test_starts_on_today_with_events_focused(self, make_session) -> None:
        """The session opens on today with the event list focused."""
        session = make_session()
        assert session.state.selected_date == date(2025, 1, 15)
        assert session.state.window_start == date(2025, 1, 15)
        assert session.state.focus is Focus.EVENTS
        assert isinstance(session.top, BrowseMode)

    def test_events_sorted_from_window_start(self, make_session) -> None:
        session = make_session()
        assert titles(session) == ["Standup", "Lunch with Sam", "Dentist", "Company Holiday", "Planning"]

    def test_first_run_enables_every_calendar(self, make_session) -> None:
        session = make_session()
        assert session.state.enabled_calendar_ids == {"Work", "Personal", "Holidays"}
        assert session.state.use_24_hour_time is False

    def test_days_with_events_are_marked(self, make_session) -> None:
        session = make_session()
        assert {date(2025, 1, 15), date(2025, 1, 17), date(2025, 1, 20)} <= session.marked_days
        # An all-day event ending at midnight does not mark the next day
        assert date(2025, 1, 21) not in session.marked_days

    def test_window_length(self, make_session, store: FakeStore) -> None:
        """Events are requested for window_days from the window start."""
        make_session(window_days=30)
        _, start, end = store.list_calls[0]
        assert start == datetime(2025, 1, 15)
        assert end - start == timedelta(days=30)


class TestEventPanelNavigation:
    """Tests for moving through the event list."""

    def test_down_moves_selection_and_calendar_cursor(self, make_session) -> None:
        """The calendar cursor follows the selected event."""
        session = make_session()
        press(session, "j", "j")
        assert session.state.selected_event_index == 2
        assert session.state.selected_event.title == "Dentist"
        assert session.state.selected_date == date(2025, 1, 17)

    def test_list_stays_anchored(self, make_session) -> None:
        """Following an event with the cursor does not shift the list."""
        session = make_session()
        press(session, Key.DOWN, Key.DOWN, Key.DOWN)
        assert session.state.window_start == date(2025, 1, 15)
        assert titles(session)[0] == "Standup"

    def test_selection_clamped(self, make_session) -> None:
        session = make_session()
        press(session, "k")
        assert session.state.selected_event_index == 0
        press(session, *["j"] * 10)
        assert session.state.selected_event_index == 4

    def test_left_returns_focus_to_calendar(self, make_session) -> None:
        session = make_session()
        press(session, "h")
        assert session.state.focus is Focus.CALENDAR
        assert session.state.selected_date == date(2025, 1, 15)

    def test_scrolls_to_keep_selection_visible(self, make_session) -> None:
        """A short terminal scrolls the list as the selection moves down."""
        events = [
            make_event(f"Event {n}", datetime(2025, 1, 15 + n, 9, 0)) for n in range(10)
        ]
        session = make_session(rows=12, store=FakeStore(events=events))
        press(session, "j")
        assert session.state.scroll_offset == 0
        press(session, "j")
        assert session.state.selected_event_index == 2
        assert session.state.scroll_offset == 1
        press(session, "k", "k")
        assert session.state.scroll_offset == 0


class TestCalendarPanelNavigation:
    """Tests for moving the day cursor."""

    def test_tab_toggles_focus(self, make_session) -> None:
        session = make_session()
        press(session, Key.TAB)
        assert session.state.focus is Focus.CALENDAR
        press(session, Key.TAB)
        assert session.state.focus is Focus.EVENTS

    def test_day_steps_reanchor_list(self, make_session) -> None:
        """Moving a day re-anchors the list at the new date."""
        session = make_session()
        press(session, Key.TAB, Key.RIGHT)
        assert session.state.selected_date == date(2025, 1, 16)
        assert session.state.window_start == date(2025, 1, 16)
        assert titles(session) == ["Dentist", "Company Holiday", "Planning"]
        press(session, "h", "h")
        assert session.state.selected_date == date(2025, 1, 14)

    def test_week_steps(self, make_session) -> None:
        session = make_session()
        press(session, Key.TAB, "j")
        assert session.state.selected_date == date(2025, 1, 22)
        assert titles(session) == ["Planning"]
        press(session, Key.UP, Key.UP)
        assert session.state.selected_date == date(2025, 1, 8)

    def test_long_walk_keeps_cache_bounded(self, make_session) -> None:
        """Stepping day by day for months does not grow the range cache."""
        session = make_session()
        press(session, Key.TAB, *["l"] * 200)
        assert session.state.selected_date == date(2025, 8, 3)
        assert len(session.store._events) <= 8

    def test_moving_resets_selection(self, make_session) -> None:
        session = make_session()
        press(session, "j", "j", Key.TAB, "l")
        assert session.state.selected_event_index == 0
        assert session.state.scroll_offset == 0

    def test_calendar_scrolls_to_selected_month(self, make_session) -> None:
        """Months scroll up until the selected month is fully drawn."""
        session = make_session()
        session.state.move_to_date(date(2025, 6, 10))
        session.refresh_events()
        assert session.state.calendar_scroll == 2
        session.state.move_to_date(date(2025, 1, 2))
        session.refresh_events()
        assert session.state.calendar_scroll == 0

    def test_today_key_resets(self, make_session) -> None:
        session = make_session()
        session.state.move_to_date(date(2025, 6, 10))
        session.refresh_events()
        press(session, "t")
        assert session.state.selected_date == date(2025, 1, 15)
        assert session.state.window_start == date(2025, 1, 15)
        assert session.state.calendar_scroll == 0


class TestActions:
    """Tests for the single-key actions."""

    def test_quit(self, make_session) -> None:
        session = make_session()
        press(session, "q")
        assert session.running is False

    def test_unknown_key_hints_help(self, make_session) -> None:
        """An unbound key shows a hint that the next key clears."""
        session = make_session()
        press(session, "x")
        assert session.state.status_message == "Press ? for help"
        press(session, "j")
        assert session.state.status_message == ""

    def test_resize_is_silent(self, make_session) -> None:
        session = make_session()
        press(session, Key.RESIZE)
        assert session.state.status_message == ""

    def test_toggle_24_hour_is_saved(self, make_session, prefs_path) -> None:
        session = make_session()
        press(session, "T")
        assert session.state.use_24_hour_time is True
        assert session.state.status_message == "Switched to 24-hour time"
        assert load_preferences(prefs_path).use_24_hour_time is True
        press(session, "T")
        assert session.state.status_message == "Switched to 12-hour time"
        assert load_preferences(prefs_path).use_24_hour_time is False

    def test_saved_preferences_are_loaded(self, make_session, prefs_path) -> None:
        press(make_session(), "T")
        session = make_session()
        assert session.state.use_24_hour_time is True

    def test_refresh_refetches(self, make_session, store: FakeStore) -> None:
        """r drops cached ranges so new events appear."""
        session = make_session()
        store.events.append(make_event("Late addition", datetime(2025, 1, 16, 8, 0)))
        press(session, "j")
        assert "Late addition" not in titles(session)
        press(session, "r")
        assert session.state.status_message == "Events refreshed"
        assert "Late addition" in titles(session)

    def test_help(self, make_session) -> None:
        session = make_session()
        press(session, "?")
        assert isinstance(session.top, HelpMode)
        press(session, "z")
        assert isinstance(session.top, BrowseMode)
        assert session.running is True


class TestToggleCalendars:
    """Tests for choosing which calendars are shown."""

    def test_disabling_calendar_hides_events(self, make_session, prefs_path) -> None:
        session = make_session()
        press(session, "c")
        assert isinstance(session.top, ToggleCalendarsMode)
        press(session, " ")
        assert "Standup" not in titles(session)
        assert "Planning" not in titles(session)
        prefs = load_preferences(prefs_path)
        assert prefs.enabled_calendars == ["Holidays", "Personal"]

    def test_reenable_and_close(self, make_session) -> None:
        session = make_session()
        press(session, "c", "j", " ", " ", Key.ENTER)
        assert isinstance(session.top, BrowseMode)
        assert "Personal" in session.state.enabled_calendar_ids
        assert len(titles(session)) == 5

    def test_q_closes_without_quitting(self, make_session) -> None:
        session = make_session()
        press(session, "c", "q")
        assert isinstance(session.top, BrowseMode)
        assert session.running is True

    def test_marks_follow_enabled_calendars(self, make_session) -> None:
        session = make_session()
        press(session, "c", "j", "j", " ", Key.ESCAPE)
        assert date(2025, 1, 20) not in session.marked_days


class TestEventDetail:
    """Tests for the detail view and opening URLs."""

    def test_enter_opens_detail(self, make_session) -> None:
        session = make_session()
        press(session, Key.ENTER)
        assert isinstance(session.top, EventDetailMode)
        assert session.top.event.title == "Standup"

    def test_enter_ignored_on_calendar_panel(self, make_session) -> None:
        session = make_session()
        press(session, Key.TAB, Key.ENTER)
        assert isinstance(session.top, BrowseMode)

    def test_open_url(self, make_session, opened_urls: list[str]) -> None:
        session = make_session()
        press(session, "j", "j", "j", "j", "l", "o")
        assert opened_urls == ["https://example.com/plan"]

    def test_no_url(self, make_session, opened_urls: list[str]) -> None:
        session = make_session()
        press(session, Key.RIGHT, "o")
        assert session.state.status_message == "This event has no URL"
        assert opened_urls == []

    def test_back_keys(self, make_session) -> None:
        session = make_session()
        for key in ("q", Key.ESCAPE, "h", Key.LEFT):
            press(session, Key.ENTER, key)
            assert isinstance(session.top, BrowseMode)
        assert session.running is True

    def test_url_opener_failure(self, make_session) -> None:
        def broken(url: str) -> None:
            raise OSError("no handler")

        session = make_session(url_opener=broken)
        press(session, "j", "j", "j", "j", Key.ENTER, "o")
        assert session.state.status_message == "Could not open URL: no handler"


class TestStoreFailures:
    """Store errors surface as status messages."""

    def test_failed_load_keeps_session_alive(self, make_session, store: FakeStore) -> None:
        session = make_session()
        store.error = StoreError("Calendar.app is not running")
        press(session, "r")
        assert session.running is True
        assert session.state.events == []
        assert session.state.status_message == "Failed to load events: Calendar.app is not running"

    def test_calendar_listing_failure_on_start(self, make_session, store: FakeStore) -> None:
        store.error = StoreError("denied")
        session = make_session()
        assert session.state.enabled_calendar_ids == set()
        assert "denied" in session.state.status_message

    def test_failure_inside_a_mode(self, make_session, store: FakeStore) -> None:
        """A store error raised by a key handler becomes a status message."""
        session = make_session()
        session.invalidate()

        def unavailable() -> list:
            raise StoreError("timed out")

        store.list_calendars = unavailable
        press(session, "c")
        assert isinstance(session.top, BrowseMode)
        assert session.state.status_message == "Calendar error: timed out"
