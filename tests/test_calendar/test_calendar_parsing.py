"""Tests for calendar list parsing."""

from unittest.mock import patch

import pytest

from tkal.applescript import AppleScriptError
from tkal.calendar.calendars import (
    CalendarAppError,
    CalendarAppNotRunningError,
    get_calendars,
)
from tkal.errors import StoreError

RECORD_SEP = "\x1e"
UNIT_SEP = "\x1f"


class TestGetCalendarsEmptyResults:
    """Tests for empty result handling."""

    @patch("tkal.calendar.calendars.run_applescript")
    def test_empty_string_returns_empty_list(self, mock_run: pytest.fixture) -> None:
        """Empty string from AppleScript should return empty list."""
        mock_run.return_value = ""
        assert get_calendars() == []

    @patch("tkal.calendar.calendars.run_applescript")
    def test_none_returns_empty_list(self, mock_run: pytest.fixture) -> None:
        """None result should be handled as empty."""
        mock_run.return_value = None
        assert get_calendars() == []


class TestGetCalendarsRecordParsing:
    """Tests for record parsing logic."""

    @patch("tkal.calendar.calendars.run_applescript")
    def test_single_calendar_parsing(self, mock_run: pytest.fixture) -> None:
        """Single calendar record should parse correctly."""
        mock_run.return_value = UNIT_SEP.join(["Work", "Work", "Work calendar", "true"])

        result = get_calendars()

        assert len(result) == 1
        cal = result[0]
        assert cal.id == "Work"
        assert cal.title == "Work"
        assert cal.description == "Work calendar"
        assert cal.is_writable is True
        assert str(cal) == "Work"

    @patch("tkal.calendar.calendars.run_applescript")
    def test_multiple_calendars_keep_order(self, mock_run: pytest.fixture) -> None:
        """Calendars come back in Calendar.app order."""
        cal1 = UNIT_SEP.join(["Work", "Work", "", "true"])
        cal2 = UNIT_SEP.join(["Personal", "Personal", "", "true"])
        cal3 = UNIT_SEP.join(["Holidays", "Holidays", "Public holidays", "false"])
        mock_run.return_value = RECORD_SEP.join([cal1, cal2, cal3])

        result = get_calendars()

        assert [c.title for c in result] == ["Work", "Personal", "Holidays"]
        assert [c.is_writable for c in result] == [True, True, False]

    @patch("tkal.calendar.calendars.run_applescript")
    def test_malformed_record_skipped(self, mock_run: pytest.fixture) -> None:
        """Records with fewer than 4 fields should be skipped."""
        good = UNIT_SEP.join(["Work", "Work", "Description", "true"])
        bad = UNIT_SEP.join(["Bad", "Calendar"])
        mock_run.return_value = RECORD_SEP.join([good, bad])

        result = get_calendars()

        assert len(result) == 1
        assert result[0].title == "Work"

    @patch("tkal.calendar.calendars.run_applescript")
    def test_writable_flag_case_insensitive(self, mock_run: pytest.fixture) -> None:
        """Writable flag parsing tolerates case and whitespace."""
        mock_run.return_value = UNIT_SEP.join(["A", "A", "", " TRUE "])
        assert get_calendars()[0].is_writable is True


class TestGetCalendarsErrors:
    """Tests for AppleScript failure handling."""

    @patch("tkal.calendar.calendars.run_applescript")
    def test_not_running_error(self, mock_run: pytest.fixture) -> None:
        """Error -600 means Calendar.app is not running."""
        mock_run.side_effect = AppleScriptError("Application isn't running. (-600)")

        with pytest.raises(CalendarAppNotRunningError):
            get_calendars()

    @patch("tkal.calendar.calendars.run_applescript")
    def test_other_errors_become_store_errors(self, mock_run: pytest.fixture) -> None:
        """Other failures surface as CalendarAppError, a StoreError."""
        mock_run.side_effect = AppleScriptError("Syntax error (-2741)", "script")

        with pytest.raises(CalendarAppError) as exc_info:
            get_calendars()

        assert isinstance(exc_info.value, StoreError)
        assert exc_info.value.script == "script"
