"""Tests for natural-language date expressions."""

from datetime import datetime

import pytest

from tkal.dates import ABSOLUTE_FORMATS, RULES, parse, parse_time_of_day
from tkal.errors import ParseError

# Wednesday 2025-01-15 10:30
NOW = datetime(2025, 1, 15, 10, 30)
FRIDAY = datetime(2025, 1, 17, 10, 30)
SUNDAY = datetime(2025, 1, 19, 10, 30)
MONDAY_FIRST = 0
SUNDAY_FIRST = 6


def p(text: str, now: datetime = NOW, first_weekday: int = MONDAY_FIRST) -> datetime:
    return parse(text, now, first_weekday=first_weekday)


class TestKeywords:
    """Tests for literal keywords."""

    def test_now_and_today(self) -> None:
        """now and today both resolve to the reference instant."""
        assert p("now") == NOW
        assert p("today") == NOW

    def test_case_and_whitespace_ignored(self) -> None:
        """Keywords match regardless of case and surrounding space."""
        assert p("  Tomorrow ") == datetime(2025, 1, 16, 10, 30)
        assert p("NEXT   WEEK") == datetime(2025, 1, 22, 10, 30)

    def test_tomorrow_keeps_time_of_day(self) -> None:
        """tomorrow is exactly one calendar day later."""
        assert p("tomorrow") == datetime(2025, 1, 16, 10, 30)

    def test_yesterday(self) -> None:
        assert p("yesterday") == datetime(2025, 1, 14, 10, 30)

    def test_weeks(self) -> None:
        assert p("next week") == datetime(2025, 1, 22, 10, 30)
        assert p("last week") == datetime(2025, 1, 8, 10, 30)

    def test_months_clamp_day(self) -> None:
        """Month arithmetic clamps to the end of shorter months."""
        assert p("next month", datetime(2025, 1, 31, 9, 0)) == datetime(2025, 2, 28, 9, 0)
        assert p("last month", datetime(2025, 3, 31, 9, 0)) == datetime(2025, 2, 28, 9, 0)


class TestWeekdays:
    """Tests for weekday expressions."""

    def test_next_weekday_lands_in_following_week(self) -> None:
        """next friday from a Wednesday skips this week's Friday."""
        assert p("next friday") == datetime(2025, 1, 24, 10, 30)

    def test_next_weekday_never_today(self) -> None:
        """next friday on a Friday is a week later."""
        result = p("next friday", FRIDAY)
        assert result != FRIDAY
        assert result == datetime(2025, 1, 24, 10, 30)

    def test_next_weekday_respects_week_start(self) -> None:
        """On a Sunday the following week depends on the locale week start."""
        assert p("next monday", SUNDAY, MONDAY_FIRST) == datetime(2025, 1, 20, 10, 30)
        assert p("next monday", SUNDAY, SUNDAY_FIRST) == datetime(2025, 1, 27, 10, 30)

    def test_this_weekday_today_is_start_of_day(self) -> None:
        """this friday on a Friday is midnight of that day."""
        assert p("this friday", FRIDAY) == datetime(2025, 1, 17, 0, 0)

    def test_this_weekday_later_this_week(self) -> None:
        assert p("this friday") == datetime(2025, 1, 17, 10, 30)

    def test_this_weekday_already_passed(self) -> None:
        """A weekday that already passed rolls into next week."""
        assert p("this monday") == datetime(2025, 1, 20, 10, 30)

    def test_last_weekday(self) -> None:
        """last <weekday> is the most recent one at least a full week back."""
        assert p("last friday") == datetime(2025, 1, 3, 10, 30)
        assert p("last monday") == datetime(2025, 1, 6, 10, 30)
        assert p("last wednesday") == datetime(2025, 1, 8, 10, 30)

    def test_last_weekday_is_a_week_or_more_back(self) -> None:
        for name in ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"):
            days_back = (NOW - p(f"last {name}")).days
            assert 7 <= days_back <= 13

    def test_last_weekday_ignores_week_start(self) -> None:
        """The first day of the week does not move last <weekday>."""
        assert p("last friday", first_weekday=SUNDAY_FIRST) == p("last friday")
        assert p("last monday", first_weekday=SUNDAY_FIRST) == p("last monday")

    def test_bare_weekday_skips_today(self) -> None:
        """A bare weekday is the next one strictly after today."""
        assert p("wednesday") == datetime(2025, 1, 22, 10, 30)
        assert p("Friday") == datetime(2025, 1, 17, 10, 30)

    def test_bare_weekday_differs_from_this(self) -> None:
        """On a Friday, 'friday' is next week but 'this friday' is today."""
        assert p("friday", FRIDAY).date() != p("this friday", FRIDAY).date()


class TestIntervals:
    """Tests for 'in N units' expressions."""

    def test_weeks(self) -> None:
        assert p("in 2 weeks") == datetime(2025, 1, 29, 10, 30)

    def test_singular_and_plural(self) -> None:
        assert p("in 1 day") == datetime(2025, 1, 16, 10, 30)
        assert p("in 3 days") == datetime(2025, 1, 18, 10, 30)

    def test_months_and_years(self) -> None:
        assert p("in 3 months") == datetime(2025, 4, 15, 10, 30)
        assert p("in 1 year") == datetime(2026, 1, 15, 10, 30)


class TestCombined:
    """Tests for '<date> <time>' expressions."""

    def test_absolute_date_with_hour(self) -> None:
        assert p("2025-01-15 10am") == datetime(2025, 1, 15, 10, 0, 0)

    def test_keyword_with_time(self) -> None:
        assert p("tomorrow 3pm") == datetime(2025, 1, 16, 15, 0)
        assert p("tomorrow 14:30:15") == datetime(2025, 1, 16, 14, 30, 15)

    def test_multi_word_date_with_time(self) -> None:
        assert p("next friday 9:30") == datetime(2025, 1, 24, 9, 30)
        assert p("in 2 days 8:15pm") == datetime(2025, 1, 17, 20, 15)

    def test_bad_time_fails(self) -> None:
        with pytest.raises(ParseError):
            p("tomorrow 25pm")


class TestAbsoluteFormats:
    """Tests for the fixed-format fallback."""

    def test_date_formats(self) -> None:
        assert p("2025-12-25") == datetime(2025, 12, 25)
        assert p("12/25/2025") == datetime(2025, 12, 25)
        assert p("25.12.2025 18:00") == datetime(2025, 12, 25, 18, 0)
        assert p("2025-01-15 10:30:45") == datetime(2025, 1, 15, 10, 30, 45)

    def test_time_only_lands_on_today(self) -> None:
        assert p("14:30") == datetime(2025, 1, 15, 14, 30)
        assert p("3:30 PM") == datetime(2025, 1, 15, 15, 30)
        assert p("9am") == datetime(2025, 1, 15, 9, 0)

    def test_reparsing_formatted_value(self) -> None:
        """Formatting with any absolute format and parsing back loses only
        the components that format leaves out."""
        value = datetime(2025, 3, 7, 16, 45, 30)
        for fmt, time_only in ABSOLUTE_FORMATS:
            parsed = p(value.strftime(fmt))
            expected = datetime.strptime(value.strftime(fmt), fmt)
            if time_only:
                expected = expected.replace(year=NOW.year, month=NOW.month, day=NOW.day)
            assert parsed == expected, fmt


class TestFailures:
    """Tests for unparseable input."""

    @pytest.mark.parametrize("text", ["", "garbage", "next fortnight", "in two weeks", "13/45/2025"])
    def test_parse_error(self, text: str) -> None:
        with pytest.raises(ParseError) as exc_info:
            p(text)
        assert exc_info.value.text == text

    def test_parse_error_is_value_error(self) -> None:
        with pytest.raises(ValueError):
            p("whenever")


class TestRuleTable:
    """Tests for the ordered rule table."""

    def test_keywords_before_weekdays(self) -> None:
        """'next week' must not be taken for a weekday expression."""
        names = [rule.name for rule in RULES]
        assert names.index("next-week") < names.index("next-weekday")
        assert names.index("next-weekday") < names.index("weekday")

    def test_rules_match_whole_text(self) -> None:
        """A keyword embedded in other text is not a match."""
        with pytest.raises(ParseError):
            p("the day after tomorrow")


class TestParseTimeOfDay:
    """Tests for the single-token time parser."""

    @pytest.mark.parametrize(
        ("token", "hour", "minute"),
        [("14:30", 14, 30), ("2:30pm", 14, 30), ("2pm", 14, 0), ("12am", 0, 0), ("09:05:00", 9, 5)],
    )
    def test_formats(self, token: str, hour: int, minute: int) -> None:
        result = parse_time_of_day(token)
        assert (result.hour, result.minute) == (hour, minute)

    def test_rejects_non_times(self) -> None:
        assert parse_time_of_day("noonish") is None
        assert parse_time_of_day("25:00") is None
