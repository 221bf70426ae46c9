"""Line-based interactive mode (``tkal --simple``)."""

import logging
from datetime import datetime

import typer

from tkal.calendar import CalendarStore
from tkal.config import Settings, load_preferences
from tkal.dates import DEFAULT_DURATION, day_range, parse, week_range
from tkal.display import (
    console,
    print_agenda,
    print_calendars,
    print_event_detail,
    print_events,
    print_rule,
)
from tkal.errors import ParseError, StoreError

logger = logging.getLogger(__name__)

SEARCH_DISPLAY_LIMIT = 20

HELP = """\
Available commands:
  t/today     - Show today's events
  w/week      - Show this week's events
  n/new       - Create a new event
  s/search    - Search events
  l/list      - List calendars
  h/help/?    - Show this help
  q/quit      - Exit"""


class Shell:
    """Read-eval loop over a handful of one-word commands."""

    def __init__(self, store: CalendarStore, use_24_hour: bool = False) -> None:
        self.store = store
        self.use_24_hour = use_24_hour
        self.commands = {
            "t": self.today,
            "today": self.today,
            "w": self.week,
            "week": self.week,
            "n": self.new,
            "new": self.new,
            "s": self.search,
            "search": self.search,
            "l": self.calendars,
            "list": self.calendars,
            "h": self.help,
            "help": self.help,
            "?": self.help,
        }

    def ask(self, prompt: str) -> str:
        return typer.prompt(
            prompt.rstrip(), default="", show_default=False, prompt_suffix=" "
        ).strip()

    def run(self) -> None:
        console.print(HELP + "\n")
        while True:
            try:
                line = self.ask("tkal> ").lower()
            except (EOFError, KeyboardInterrupt, typer.Abort):
                console.print()
                break

            if line in ("q", "quit", "exit"):
                console.print("Goodbye!")
                break
            if not line:
                continue

            command = self.commands.get(line)
            if command is None:
                console.print("Unknown command. Type 'h' for help or 'q' to quit")
            else:
                try:
                    command()
                except typer.Abort:
                    console.print("\nCancelled")
                except StoreError as e:
                    logger.error(f"Shell command {line!r} failed: {e}")
                    console.print(f"[red]Error accessing Calendar.app:[/red] {e}")
            console.print()

    def help(self) -> None:
        console.print("\n" + HELP)

    def today(self) -> None:
        start, end = day_range(datetime.now())
        events = sorted(self.store.list_events(None, start, end), key=lambda e: e.start)
        if not events:
            console.print("No events today")
            return
        console.print(f"\n[bold]Today's Events ({len(events)}):[/bold]")
        print_rule()
        print_events(events, self.use_24_hour)

    def week(self) -> None:
        start, end = week_range(datetime.now())
        events = self.store.list_events(None, start, end)
        console.print(f"\n[bold]This Week's Events ({len(events)}):[/bold]")
        print_rule()
        print_agenda(events, self.use_24_hour)

    def calendars(self) -> None:
        print_calendars(self.store.list_calendars())

    def search(self) -> None:
        query = self.ask("Search for: ")
        if not query:
            console.print("Search cancelled")
            return

        events = sorted(self.store.search_events(query), key=lambda e: e.start)
        if not events:
            console.print(f"No events found matching '{query}'")
            return

        console.print(f"\n[bold]Found {len(events)} event(s) matching '{query}':[/bold]")
        print_rule()
        print_events(events[:SEARCH_DISPLAY_LIMIT], self.use_24_hour)
        if len(events) > SEARCH_DISPLAY_LIMIT:
            console.print(f"\n... and {len(events) - SEARCH_DISPLAY_LIMIT} more")

    def new(self) -> None:
        title = self.ask("Event title: ")
        if not title:
            console.print("Event creation cancelled")
            return

        try:
            start = parse(self.ask("Start date/time (e.g., 'tomorrow 2pm', 'next friday 9am'): "))
        except ParseError:
            console.print("[red]Invalid start date[/red]")
            return

        end_text = self.ask("End date/time (press Enter for 1 hour from start): ")
        end = start + DEFAULT_DURATION
        if end_text:
            try:
                end = parse(end_text)
            except ParseError:
                console.print("[yellow]Unrecognized end time, using 1 hour[/yellow]")

        writable = [cal for cal in self.store.list_calendars() if cal.is_writable]
        if not writable:
            console.print("[red]No writable calendars available[/red]")
            return

        console.print("\nSelect calendar:")
        for number, cal in enumerate(writable, start=1):
            console.print(f"  {number}. {cal.title}")
        choice = self.ask(f"Calendar number (1-{len(writable)}): ")
        index = int(choice) - 1 if choice.isdigit() and 1 <= int(choice) <= len(writable) else 0

        location = self.ask("Location (optional): ") or None

        event = self.store.create_event(title, start, end, writable[index].id, location=location)
        console.print("\n[green]✓ Event created successfully![/green]")
        print_event_detail(event, self.use_24_hour)


def run_shell(store: CalendarStore, settings: Settings) -> None:
    prefs = load_preferences(settings.preferences_path)
    Shell(store, use_24_hour=prefs.use_24_hour_time if prefs else False).run()
