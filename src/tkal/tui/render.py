"""Drawing of the calendar panel, the event list and the status bar."""

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date, datetime, time
from enum import Enum

from dateutil.relativedelta import relativedelta

from tkal.calendar.events import Event
from tkal.formatting import clean_text, format_clock, month_grid, truncate, weekday_header
from tkal.tui.state import Focus, SessionState
from tkal.tui.surface import Rect, ScreenSurface, Style

CALENDAR_PANEL_WIDTH = 30
STATUS_HEIGHT = 2
# First content row inside a panel, relative to its top border
CONTENT_TOP = 2


@dataclass(frozen=True)
class Layout:
    calendar: Rect
    events: Rect
    status: Rect


def compute_layout(rows: int, cols: int) -> Layout:
    """Calendar on the left, events on the right, status bar along the bottom."""
    body = max(rows - STATUS_HEIGHT, 3)
    cal_width = min(CALENDAR_PANEL_WIDTH, cols // 3)
    return Layout(
        calendar=Rect(0, 0, body, cal_width),
        events=Rect(0, cal_width, body, cols - cal_width),
        status=Rect(body, 0, STATUS_HEIGHT, cols),
    )


def content_capacity(rect: Rect) -> int:
    """Number of text rows between the title row and the bottom border."""
    return max(0, rect.height - CONTENT_TOP - 1)


def month_start(today: date, offset: int) -> date:
    """First day of the month offset months away from today's month."""
    return today.replace(day=1) + relativedelta(months=offset)


def month_offset(today: date, day: date) -> int:
    return (day.year - today.year) * 12 + (day.month - today.month)


def _month_height(first: date) -> int:
    # Month title + weekday header + week rows
    return 2 + len(month_grid(first.year, first.month))


def fully_visible_months(rect: Rect, today: date, scroll: int, months: int) -> list[date]:
    """Months whose every week row fits in the calendar panel."""
    row = CONTENT_TOP
    visible = []
    for offset in range(scroll, scroll + months):
        first = month_start(today, offset)
        height = _month_height(first)
        if row + height > rect.height - 1:
            break
        visible.append(first)
        row += height + 1
    return visible


class RowKind(Enum):
    BLANK = "blank"
    DAY = "day"
    EVENT = "event"


@dataclass(frozen=True)
class EventRow:
    kind: RowKind
    day: date | None = None
    event: Event | None = None
    index: int = -1


def layout_event_rows(events: Sequence[Event], offset: int, capacity: int) -> list[EventRow]:
    """Rows of the event list starting at offset, grouped under day headers."""
    rows: list[EventRow] = []
    current_day = None
    for index in range(offset, len(events)):
        event = events[index]
        if event.day != current_day:
            current_day = event.day
            header_rows = 2 if rows else 1
            # A day header is only worth drawing with room for one event below it
            if len(rows) + header_rows + 1 > capacity:
                break
            if rows:
                rows.append(EventRow(RowKind.BLANK))
            rows.append(EventRow(RowKind.DAY, day=event.day))
        if len(rows) >= capacity:
            break
        rows.append(EventRow(RowKind.EVENT, day=event.day, event=event, index=index))
    return rows


def draw_panel_frame(surface: ScreenSurface, rect: Rect, title: str, focused: bool) -> None:
    surface.draw_box(rect, Style.EVENT_DAY if focused else Style.NORMAL)
    surface.draw_text(rect.top, rect.left + 2, f" {title} ", Style.HEADER, bold=True)


def draw_modal_frame(surface: ScreenSurface, rect: Rect, title: str) -> None:
    """Frame used by dialogs drawn over the event panel."""
    for row in range(rect.top + 1, rect.bottom):
        surface.fill_row(row, rect.left + 1, rect.width - 2, Style.NORMAL)
    surface.draw_box(rect)
    surface.draw_text(
        rect.top + 1, rect.left + 2, truncate(title, rect.width - 4), Style.HEADER, bold=True
    )


def draw_calendar_panel(
    surface: ScreenSurface,
    rect: Rect,
    state: SessionState,
    today: date,
    marked_days: set[date],
    months: int,
) -> None:
    """Scrollable stack of Monday-first month grids."""
    draw_panel_frame(surface, rect, "Calendar", state.focus is Focus.CALENDAR)

    def put(row: int, col: int, text: str, style: Style, bold: bool = False) -> None:
        surface.draw_text(rect.top + row, rect.left + col, text, style, bold)

    last_row = rect.height - 1
    row = CONTENT_TOP
    for offset in range(state.calendar_scroll, state.calendar_scroll + months):
        if row >= last_row:
            break
        first = month_start(today, offset)
        base = Style.ALT_MONTH if offset % 2 else Style.NORMAL

        put(row, 2, first.strftime("%B %Y"), base, bold=True)
        row += 1
        if row >= last_row:
            break
        put(row, 2, weekday_header(), base)
        row += 1

        for week in month_grid(first.year, first.month):
            if row >= last_row:
                break
            for col, day_number in enumerate(week):
                if not day_number:
                    continue
                day = first.replace(day=day_number)
                style, bold = base, False
                if day == state.selected_date:
                    style, bold = Style.SELECTED, True
                elif day == today:
                    style, bold = Style.TODAY, True
                elif day in marked_days:
                    style = Style.EVENT_DAY
                put(row, 2 + col * 3, f"{day_number:2d}", style, bold)
            row += 1

        row += 1


def event_line(event: Event, width: int, use_24_hour: bool) -> str:
    """``  9:30 AM Title`` sized for an event panel of the given width."""
    if event.is_all_day:
        time_str = "All Day "
    else:
        time_str = format_clock(event.start, use_24_hour)
    title = truncate(clean_text(event.title or "Untitled"), width - 15)
    return f"  {time_str} {title}"


def draw_event_panel(surface: ScreenSurface, rect: Rect, state: SessionState) -> None:
    """Events from the window start onward, grouped by day."""
    focused = state.focus is Focus.EVENTS
    draw_panel_frame(surface, rect, "Events", focused)

    if not state.events:
        surface.draw_text(rect.top + CONTENT_TOP, rect.left + 2, "No upcoming events")
        return

    rows = layout_event_rows(state.events, state.scroll_offset, content_capacity(rect))
    for i, item in enumerate(rows):
        row = rect.top + CONTENT_TOP + i
        if item.kind is RowKind.DAY:
            surface.draw_text(row, rect.left + 2, item.day.strftime("%b %d, %Y"), bold=True)
        elif item.kind is RowKind.EVENT:
            line = event_line(item.event, rect.width, state.use_24_hour_time)
            selected = focused and item.index == state.selected_event_index
            style = Style.SELECTED if selected else Style.NORMAL
            if selected:
                surface.draw_text(row, rect.left + 1, ">", style, bold=True)
            surface.draw_text(row, rect.left + 2, truncate(line, rect.width - 3), style, bold=selected)


def draw_status_bar(surface: ScreenSurface, rect: Rect, message: str) -> None:
    surface.fill_row(rect.top, rect.left, rect.width, Style.HEADER)
    text = f" {message} " if message else " ?:Help "
    surface.draw_text(rect.top, rect.left + 2, truncate(text, rect.width - 2), Style.HEADER)


def marked_range(today: date, scroll: int, months: int) -> tuple[datetime, datetime]:
    """Datetime span covered by the months drawn in the calendar panel."""
    start = month_start(today, scroll)
    end = month_start(today, scroll + months)
    return datetime.combine(start, time.min), datetime.combine(end, time.min)
