"""Natural-language date/time expressions.

Turns strings such as ``"tomorrow 3pm"``, ``"next friday"``, ``"in 2 weeks"``
or ``"2025-01-15 10:30"`` into naive local datetimes. Resolution goes
through an ordered rule table; the first rule that matches wins:

1. keywords (now, today, tomorrow, yesterday, next/last week, next/last month)
2. weekday expressions (next/this/last <weekday>, bare <weekday>)
3. relative intervals ("in N days/weeks/months/years")
4. "<date expression> <time of day>" combinations
5. fixed absolute formats

Everything here is pure: given the same ``now`` and week start, the same
input always yields the same result.
"""

import calendar
import re
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, time, timedelta

from dateutil.relativedelta import relativedelta

from tkal.errors import ParseError

# Index matches datetime.weekday() (Monday == 0)
WEEKDAYS = ["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]
_WEEKDAY_RE = "|".join(WEEKDAYS)

# Time-of-day formats tried on the last token of a combined expression
TIME_OF_DAY_FORMATS = [
    "%H:%M:%S",  # HH:mm:ss
    "%H:%M",  # HH:mm
    "%I:%M%p",  # h:mma
    "%I:%M %p",  # h:mm a
    "%I%p",  # ha
    "%I %p",  # h a
]

# Absolute formats; the flag marks time-only formats that land on today's date
ABSOLUTE_FORMATS: list[tuple[str, bool]] = [
    ("%Y-%m-%d %H:%M:%S", False),
    ("%Y-%m-%d %H:%M", False),
    ("%Y-%m-%d", False),
    ("%m/%d/%Y %H:%M", False),
    ("%m/%d/%Y", False),
    ("%d.%m.%Y %H:%M", False),
    ("%d.%m.%Y", False),
    ("%H:%M", True),
    ("%I:%M %p", True),
    ("%I%p", True),
]

DEFAULT_DURATION = timedelta(hours=1)

_UNITS = {
    "day": lambda n: relativedelta(days=n),
    "week": lambda n: relativedelta(weeks=n),
    "month": lambda n: relativedelta(months=n),
    "year": lambda n: relativedelta(years=n),
}


@dataclass(frozen=True)
class _Context:
    now: datetime
    first_weekday: int


Resolver = Callable[[re.Match[str], _Context], datetime]


@dataclass(frozen=True)
class Rule:
    """One entry of the resolution table: a full-match pattern and its resolver."""

    name: str
    pattern: re.Pattern[str]
    resolve: Resolver

    def apply(self, text: str, ctx: _Context) -> datetime | None:
        match = self.pattern.fullmatch(text)
        if match is None:
            return None
        return self.resolve(match, ctx)


def start_of_day(value: datetime) -> datetime:
    """Midnight at the start of value's calendar day."""
    return datetime.combine(value.date(), time.min)


def day_range(value: datetime) -> tuple[datetime, datetime]:
    """The calendar day containing value, as [midnight, next midnight)."""
    start = start_of_day(value)
    return start, start + relativedelta(days=1)


def week_range(value: datetime, first_weekday: int | None = None) -> tuple[datetime, datetime]:
    """The calendar week containing value, starting on the locale's first weekday."""
    if first_weekday is None:
        first_weekday = calendar.firstweekday()
    start = start_of_day(value) - relativedelta(days=(value.weekday() - first_weekday) % 7)
    return start, start + relativedelta(weeks=1)


def _weekday_index(match: re.Match[str]) -> int:
    return WEEKDAYS.index(match.group("weekday"))


def _position_in_week(weekday: int, first_weekday: int) -> int:
    return (weekday - first_weekday) % 7


def _resolve_next_weekday(match: re.Match[str], ctx: _Context) -> datetime:
    # The target weekday inside the following calendar week
    target = _weekday_index(match)
    current = ctx.now.weekday()
    days = (
        7
        - _position_in_week(current, ctx.first_weekday)
        + _position_in_week(target, ctx.first_weekday)
    )
    return ctx.now + relativedelta(days=days)


def _resolve_last_weekday(match: re.Match[str], ctx: _Context) -> datetime:
    # The most recent occurrence at least one full week back
    target = _weekday_index(match)
    days_back = 7 + (ctx.now.weekday() - target) % 7
    return ctx.now - relativedelta(days=days_back)


def _resolve_this_weekday(match: re.Match[str], ctx: _Context) -> datetime:
    target = _weekday_index(match)
    days = (target - ctx.now.weekday()) % 7
    if days == 0:
        return start_of_day(ctx.now)
    return ctx.now + relativedelta(days=days)


def _resolve_bare_weekday(match: re.Match[str], ctx: _Context) -> datetime:
    # Never today: a bare weekday always means the next one ahead
    target = _weekday_index(match)
    days = (target - ctx.now.weekday()) % 7 or 7
    return ctx.now + relativedelta(days=days)


def _resolve_interval(match: re.Match[str], ctx: _Context) -> datetime:
    amount = int(match.group("amount"))
    return ctx.now + _UNITS[match.group("unit")](amount)


def _shift(delta: relativedelta) -> Resolver:
    return lambda match, ctx: ctx.now + delta


def _rule(name: str, pattern: str, resolve: Resolver) -> Rule:
    return Rule(name, re.compile(pattern), resolve)


RULES: list[Rule] = [
    _rule("now", r"now|today", _shift(relativedelta())),
    _rule("tomorrow", r"tomorrow", _shift(relativedelta(days=1))),
    _rule("yesterday", r"yesterday", _shift(relativedelta(days=-1))),
    _rule("next-week", r"next\s+week", _shift(relativedelta(weeks=1))),
    _rule("last-week", r"last\s+week", _shift(relativedelta(weeks=-1))),
    _rule("next-month", r"next\s+month", _shift(relativedelta(months=1))),
    _rule("last-month", r"last\s+month", _shift(relativedelta(months=-1))),
    _rule("next-weekday", rf"next\s+(?P<weekday>{_WEEKDAY_RE})", _resolve_next_weekday),
    _rule("this-weekday", rf"this\s+(?P<weekday>{_WEEKDAY_RE})", _resolve_this_weekday),
    _rule("last-weekday", rf"last\s+(?P<weekday>{_WEEKDAY_RE})", _resolve_last_weekday),
    _rule("weekday", rf"(?P<weekday>{_WEEKDAY_RE})", _resolve_bare_weekday),
    _rule(
        "interval",
        r"in\s+(?P<amount>\d+)\s+(?P<unit>day|week|month|year)s?",
        _resolve_interval,
    ),
]


def parse_time_of_day(token: str) -> time | None:
    """Parse a single token such as ``14:30``, ``3pm`` or ``3:30pm``."""
    token = token.strip()
    for fmt in TIME_OF_DAY_FORMATS:
        try:
            return datetime.strptime(token, fmt).time()
        except ValueError:
            continue
    return None


def _parse_combined(text: str, ctx: _Context) -> datetime | None:
    parts = text.split()
    if len(parts) < 2:
        return None

    base = _parse(" ".join(parts[:-1]), ctx)
    if base is None:
        return None

    time_of_day = parse_time_of_day(parts[-1])
    if time_of_day is None:
        return None

    return base.replace(
        hour=time_of_day.hour,
        minute=time_of_day.minute,
        second=time_of_day.second,
        microsecond=0,
    )


def _parse_absolute(text: str, ctx: _Context) -> datetime | None:
    for fmt, time_only in ABSOLUTE_FORMATS:
        try:
            parsed = datetime.strptime(text, fmt)
        except ValueError:
            continue
        if time_only:
            return datetime.combine(ctx.now.date(), parsed.time())
        return parsed
    return None


def _parse(text: str, ctx: _Context) -> datetime | None:
    text = text.strip()
    lowered = text.lower()

    for rule in RULES:
        result = rule.apply(lowered, ctx)
        if result is not None:
            return result

    result = _parse_combined(text, ctx)
    if result is not None:
        return result

    return _parse_absolute(text, ctx)


def _context(now: datetime | None, first_weekday: int | None) -> _Context:
    return _Context(
        now=now if now is not None else datetime.now(),
        first_weekday=calendar.firstweekday() if first_weekday is None else first_weekday,
    )


def parse(
    text: str,
    now: datetime | None = None,
    *,
    first_weekday: int | None = None,
) -> datetime:
    """
    Resolve a date/time expression to an absolute datetime.

    Args:
        text: The expression, e.g. "tomorrow 2pm" or "2025-12-25".
        now: Reference instant (default: datetime.now()).
        first_weekday: Week start, 0 = Monday (default: calendar.firstweekday()).

    Returns:
        The resolved naive local datetime.

    Raises:
        ParseError: If no rule or format matches.
    """
    result = _parse(text, _context(now, first_weekday))
    if result is None:
        raise ParseError(text)
    return result


def parse_range(
    tokens: list[str],
    now: datetime | None = None,
    *,
    first_weekday: int | None = None,
) -> tuple[datetime, datetime]:
    """
    Resolve zero, one or two expressions to a (start, end) range.

    No tokens gives today; one token gives that whole day; two tokens are
    parsed independently. The order of two explicit bounds is not checked,
    so an end before the start comes back as-is.

    Raises:
        ParseError: If a token does not parse or more than two are given.
    """
    ctx = _context(now, first_weekday)

    if not tokens:
        return day_range(ctx.now)

    if len(tokens) == 1:
        return day_range(parse(tokens[0], ctx.now, first_weekday=ctx.first_weekday))

    if len(tokens) > 2:
        raise ParseError(" ".join(tokens), f"Expected at most START and END, got {len(tokens)} values")

    start = parse(tokens[0], ctx.now, first_weekday=ctx.first_weekday)
    end = parse(tokens[1], ctx.now, first_weekday=ctx.first_weekday)
    return start, end


def parse_duration(text: str) -> timedelta | None:
    """Parse ``2h``, ``2`` (hours), ``45min`` or ``1:30``; None if unrecognized."""
    value = text.strip().lower()

    if match := re.fullmatch(r"(\d+)\s*h?", value):
        return timedelta(hours=int(match.group(1)))

    if match := re.fullmatch(r"(\d+)\s*min", value):
        return timedelta(minutes=int(match.group(1)))

    if match := re.fullmatch(r"(\d+):(\d{1,2})", value):
        return timedelta(hours=int(match.group(1)), minutes=int(match.group(2)))

    return None
