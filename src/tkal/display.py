"""Rich console output shared by the CLI commands and the line shell."""

from collections.abc import Iterable
from datetime import date

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from tkal.calendar.calendars import Calendar
from tkal.calendar.events import Event
from tkal.formatting import (
    DAY_HEADER_FORMAT,
    format_event,
    format_event_detail,
    group_by_day,
    month_grid,
    weekday_header,
)

console = Console()

RULE_WIDTH = 60


def print_rule(char: str = "─") -> None:
    console.print(char * RULE_WIDTH, style="dim")


def print_events(events: Iterable[Event], use_24_hour: bool = False) -> None:
    """One line per event, in the given order."""
    for event in events:
        console.print(escape(format_event(event, use_24_hour=use_24_hour)))


def print_agenda(events: Iterable[Event], use_24_hour: bool = False) -> None:
    """Events grouped under a bold header per day."""
    grouped = group_by_day(events)
    if not grouped:
        console.print("[yellow]No events found[/yellow]")
        return

    for day, items in grouped:
        console.print(f"\n[bold]{day.strftime(DAY_HEADER_FORMAT)}[/bold]")
        for event in items:
            console.print(f"  {escape(format_event(event, use_24_hour=use_24_hour))}")


def print_event_detail(event: Event, use_24_hour: bool = False) -> None:
    console.print(escape(format_event_detail(event, show_notes=True, use_24_hour=use_24_hour)))


def print_calendars(calendars: list[Calendar]) -> None:
    """Table of calendars with a writable marker."""
    if not calendars:
        console.print("[yellow]No calendars found[/yellow]")
        return

    table = Table(title="Available Calendars")
    table.add_column("", width=3)  # Writable marker
    table.add_column("Name", style="cyan")
    table.add_column("Identifier", style="dim")

    for cal in calendars:
        marker = "[green]✓[/green]" if cal.is_writable else "[red]✗[/red]"
        table.add_row(marker, escape(cal.title), escape(cal.id))

    console.print(table)
    console.print("[dim]✓ = writable, ✗ = read-only[/dim]")


def month_lines(year: int, month: int, event_days: set[date], today: date) -> list[str]:
    """Markup lines for a Monday-first month grid.

    Days with events are bold; today is reversed.
    """
    first = date(year, month, 1)
    header = weekday_header()
    lines = [f"[bold]{first.strftime('%B %Y').center(len(header))}[/bold]", header]

    for week in month_grid(year, month):
        cells = []
        for day_number in week:
            if not day_number:
                cells.append("  ")
                continue
            cell = f"{day_number:2d}"
            day = first.replace(day=day_number)
            if day == today:
                cell = f"[reverse]{cell}[/reverse]"
            elif day in event_days:
                cell = f"[bold green]{cell}[/bold green]"
            cells.append(cell)
        lines.append(" ".join(cells))

    return lines
