"""Command-line interface for tkal."""

import logging
from datetime import datetime, timedelta
from typing import Annotated, NoReturn

import typer

from tkal import __version__
from tkal.calendar import AppleCalendarStore, Calendar, CalendarAppNotRunningError, CalendarStore
from tkal.config import Settings, load_preferences
from tkal.dates import DEFAULT_DURATION, day_range, parse, parse_range, start_of_day, week_range
from tkal.display import (
    console,
    month_lines,
    print_agenda,
    print_calendars,
    print_event_detail,
    print_events,
    print_rule,
)
from tkal.errors import ParseError, StoreError
from tkal.formatting import event_days, format_timestamp
from tkal.logging import setup_logging

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="tkal",
    help="Terminal calendar for macOS Calendar.app",
    invoke_without_command=True,
)

NOTES_SEPARATOR = "::"
UPCOMING_LIMIT = 10


def get_settings() -> Settings:
    """Load application settings."""
    return Settings()


def get_store(settings: Settings) -> CalendarStore:
    """The calendar store the commands talk to."""
    return AppleCalendarStore(
        timeout=settings.applescript_timeout, search_limit=settings.search_limit
    )


def use_24_hour(settings: Settings) -> bool:
    prefs = load_preferences(settings.preferences_path)
    return prefs.use_24_hour_time if prefs else False


def fail(message: str) -> NoReturn:
    console.print(f"[red]{message}[/red]")
    raise typer.Exit(1)


def fail_store(error: StoreError) -> NoReturn:
    logger.error(f"Calendar store error: {error}")
    if isinstance(error, CalendarAppNotRunningError):
        console.print("[red]Error: Calendar.app is not running.[/red]")
        console.print("Please open Calendar.app and try again.")
        raise typer.Exit(1)
    fail(f"Error accessing Calendar.app: {error}")


def find_calendar(store: CalendarStore, name_or_id: str) -> Calendar | None:
    """Look a calendar up by title first, then by identifier."""
    known = store.list_calendars()
    for cal in known:
        if cal.title == name_or_id:
            return cal
    for cal in known:
        if cal.id == name_or_id:
            return cal
    return None


def resolve_calendar_id(store: CalendarStore, name: str | None) -> str | None:
    if name is None:
        return None
    cal = find_calendar(store, name)
    if cal is None:
        fail(f"Calendar '{name}' not found")
    return cal.id


def show_events_at(store: CalendarStore, target: datetime, calendar_id: str | None, settings: Settings) -> None:
    """Print the events in progress at target."""
    start, end = day_range(target)
    events = store.list_events(calendar_id, start, end)
    active = sorted((e for e in events if e.occurs_at(target)), key=lambda e: e.start)

    when = format_timestamp(target)
    if not active:
        console.print(f"No events at {when}")
        return
    console.print(f"Events at {when}:\n")
    print_events(active, use_24_hour(settings))


@app.callback()
def main(
    ctx: typer.Context,
    interactive: Annotated[
        bool, typer.Option("--interactive", "-i", help="Launch interactive TUI mode")
    ] = False,
    simple: Annotated[
        bool, typer.Option("--simple", "-s", help="Launch simple interactive mode")
    ] = False,
    version: Annotated[bool, typer.Option("--version", "-v", help="Show version")] = False,
) -> None:
    """Show the events happening right now, or run a subcommand."""
    settings = get_settings()
    setup_logging(
        log_dir=settings.log_dir,
        log_level=settings.log_level,
        max_bytes=settings.log_rotation_size_mb * 1024 * 1024,
        backup_count=settings.log_backup_count,
    )
    ctx.obj = settings

    if ctx.invoked_subcommand is not None:
        return

    if version:
        console.print(f"tkal version {__version__}")
        return

    store = get_store(settings)
    if interactive:
        from tkal.tui import run_interactive

        run_interactive(store, settings)
    elif simple:
        from tkal.shell import run_shell

        run_shell(store, settings)
    else:
        try:
            show_events_at(store, datetime.now(), None, settings)
        except StoreError as e:
            fail_store(e)


@app.command("list")
def list_events(
    ctx: typer.Context,
    date_range: Annotated[
        list[str] | None, typer.Argument(help="Date range [START [END]]")
    ] = None,
    calendar: Annotated[
        str | None, typer.Option("--calendar", "-c", help="Calendar to include")
    ] = None,
    days: Annotated[
        int | None, typer.Option("--days", "-d", min=1, help="Number of days to include")
    ] = None,
    week: Annotated[
        bool, typer.Option("--week", "-w", help="Include all events in this week")
    ] = False,
) -> None:
    """List all events between START and END (default: today)."""
    settings: Settings = ctx.obj
    store = get_store(settings)

    if week:
        start, end = week_range(datetime.now())
    elif days is not None:
        start = start_of_day(datetime.now())
        end = start + timedelta(days=days)
    else:
        try:
            start, end = parse_range(date_range or [])
        except ParseError as e:
            fail(f"Invalid date range: {e}")
        if end < start:
            fail(f"End {format_timestamp(end)} is before start {format_timestamp(start)}")

    try:
        calendar_id = resolve_calendar_id(store, calendar)
        events = store.list_events(calendar_id, start, end)
    except StoreError as e:
        fail_store(e)

    print_agenda(events, use_24_hour(settings))


@app.command("calendar")
def calendar_view(
    ctx: typer.Context,
    when: Annotated[
        list[str] | None, typer.Argument(help="Any date in the month to show")
    ] = None,
    calendar: Annotated[
        str | None, typer.Option("--calendar", "-c", help="Calendar to include")
    ] = None,
) -> None:
    """Print a month calendar with the upcoming agenda."""
    settings: Settings = ctx.obj
    store = get_store(settings)
    now = datetime.now()

    shown = now
    if when:
        try:
            shown = parse(" ".join(when))
        except ParseError as e:
            fail(str(e))

    month_start = start_of_day(shown.replace(day=1))
    next_month = (month_start + timedelta(days=32)).replace(day=1)

    try:
        calendar_id = resolve_calendar_id(store, calendar)
        events = store.list_events(calendar_id, month_start, next_month)
    except StoreError as e:
        fail_store(e)

    marked = {day for event in events for day in event_days(event)}
    for line in month_lines(month_start.year, month_start.month, marked, now.date()):
        console.print(line)

    upcoming = sorted((e for e in events if e.start >= now), key=lambda e: e.start)
    if upcoming:
        console.print("\n[bold]Upcoming Events:[/bold]")
        print_rule("=")
        print_events(upcoming[:UPCOMING_LIMIT], use_24_hour(settings))


@app.command()
def new(
    ctx: typer.Context,
    details: Annotated[
        list[str], typer.Argument(help="Event details: START [END] TITLE [:: NOTES]")
    ],
    calendar: Annotated[
        str | None, typer.Option("--calendar", "-c", help="Calendar to add event to")
    ] = None,
    location: Annotated[
        str | None, typer.Option("--location", "-l", help="Event location")
    ] = None,
    url: Annotated[str | None, typer.Option("--url", "-u", help="Event URL")] = None,
    all_day: Annotated[bool, typer.Option("--all-day", help="All-day event")] = False,
) -> None:
    """Create a new event.

    The second value is taken as the end time only when it parses as a date;
    otherwise it starts the title. Text after '::' becomes the notes.
    """
    settings: Settings = ctx.obj

    if len(details) < 2:
        fail("Usage: tkal new START [END] TITLE [:: NOTES]")

    remaining = list(details)
    start_text = remaining.pop(0)
    try:
        start = parse(start_text)
    except ParseError:
        fail(f"Invalid start date: {start_text}")

    end = None
    try:
        end = parse(remaining[0])
        remaining.pop(0)
    except ParseError:
        pass

    combined = " ".join(remaining)
    title, separator, notes = combined.partition(NOTES_SEPARATOR)
    title = title.strip()
    notes = notes.strip() if separator else None
    if not title:
        fail("Event title is required")

    if all_day:
        start = start_of_day(start)
        end = start_of_day(end) if end is not None and end > start else start + timedelta(days=1)
    elif end is None:
        end = start + DEFAULT_DURATION

    store = get_store(settings)
    try:
        if calendar is not None:
            target = find_calendar(store, calendar)
            if target is None:
                fail(f"Calendar '{calendar}' not found")
        else:
            writable = [cal for cal in store.list_calendars() if cal.is_writable]
            if not writable:
                fail("No writable calendars found")
            target = writable[0]

        event = store.create_event(
            title,
            start,
            end,
            target.id,
            location=location,
            notes=notes or None,
            is_all_day=all_day,
            url=url,
        )
    except StoreError as e:
        fail_store(e)

    console.print("[green]Event created successfully:[/green]")
    print_event_detail(event, use_24_hour(settings))


@app.command()
def search(
    ctx: typer.Context,
    query: Annotated[str, typer.Argument(help="Search string")],
) -> None:
    """Search all events for a string in the title, notes or location."""
    settings: Settings = ctx.obj
    try:
        events = get_store(settings).search_events(query)
    except StoreError as e:
        fail_store(e)

    if not events:
        console.print(f"[yellow]No events found matching '{query}'[/yellow]")
        return

    console.print(f"Found {len(events)} event(s):")
    print_agenda(events, use_24_hour(settings))


@app.command()
def calendars(ctx: typer.Context) -> None:
    """List all calendars."""
    settings: Settings = ctx.obj
    try:
        known = get_store(settings).list_calendars()
    except StoreError as e:
        fail_store(e)
    print_calendars(known)


@app.command()
def at(
    ctx: typer.Context,
    when: Annotated[
        list[str] | None, typer.Argument(help="Datetime (defaults to now)")
    ] = None,
    calendar: Annotated[
        str | None, typer.Option("--calendar", "-c", help="Calendar to include")
    ] = None,
) -> None:
    """Print all events in progress at a datetime."""
    settings: Settings = ctx.obj
    target = datetime.now()
    if when and when != ["now"]:
        try:
            target = parse(" ".join(when))
        except ParseError:
            fail("Invalid datetime")

    store = get_store(settings)
    try:
        show_events_at(store, target, resolve_calendar_id(store, calendar), settings)
    except StoreError as e:
        fail_store(e)


@app.command()
def interactive(ctx: typer.Context) -> None:
    """Browse and create events in a full-screen view."""
    from tkal.tui import run_interactive

    settings: Settings = ctx.obj
    run_interactive(get_store(settings), settings)


@app.command()
def shell(ctx: typer.Context) -> None:
    """Simple line-based interactive mode."""
    from tkal.shell import run_shell

    settings: Settings = ctx.obj
    run_shell(get_store(settings), settings)


if __name__ == "__main__":
    app()
