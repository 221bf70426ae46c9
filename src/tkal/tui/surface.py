"""Screen abstraction the interactive session draws on."""

import curses
from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Protocol, Union


class Key(Enum):
    """Named special keys. Printable input arrives as a one-character str."""

    UP = "up"
    DOWN = "down"
    LEFT = "left"
    RIGHT = "right"
    ENTER = "enter"
    ESCAPE = "escape"
    BACKSPACE = "backspace"
    TAB = "tab"
    RESIZE = "resize"


KeyPress = Union[Key, str]


class Style(IntEnum):
    """Color roles; values double as curses color pair numbers."""

    NORMAL = 0
    HEADER = 1
    SELECTED = 2
    TODAY = 3
    EVENT_DAY = 4
    ALT_MONTH = 5


@dataclass(frozen=True)
class Rect:
    """A screen region in character cells."""

    top: int
    left: int
    height: int
    width: int

    @property
    def bottom(self) -> int:
        return self.top + self.height - 1

    @property
    def right(self) -> int:
        return self.left + self.width - 1


class ScreenSurface(Protocol):
    """Fixed-size character grid with styled text and blocking key reads."""

    def size(self) -> tuple[int, int]:
        """(rows, columns) of the whole screen."""
        ...

    def clear(self) -> None:
        ...

    def draw_text(
        self, row: int, col: int, text: str, style: Style = Style.NORMAL, bold: bool = False
    ) -> None:
        """Draw text at an absolute position, clipped to the screen."""
        ...

    def draw_box(self, rect: Rect, style: Style = Style.NORMAL) -> None:
        """Draw a single-line border around rect."""
        ...

    def fill_row(self, row: int, col: int, width: int, style: Style) -> None:
        """Paint width blank cells in the given style."""
        ...

    def set_cursor(self, row: int | None, col: int = 0) -> None:
        """Show the text cursor at a position, or hide it with None."""
        ...

    def refresh(self) -> None:
        ...

    def get_key(self) -> KeyPress:
        """Block until a key is pressed."""
        ...


_CURSES_KEYS = {
    curses.KEY_UP: Key.UP,
    curses.KEY_DOWN: Key.DOWN,
    curses.KEY_LEFT: Key.LEFT,
    curses.KEY_RIGHT: Key.RIGHT,
    curses.KEY_ENTER: Key.ENTER,
    curses.KEY_BACKSPACE: Key.BACKSPACE,
    curses.KEY_RESIZE: Key.RESIZE,
}

_CONTROL_CHARS = {
    "\n": Key.ENTER,
    "\r": Key.ENTER,
    "\t": Key.TAB,
    "\x1b": Key.ESCAPE,
    "\x7f": Key.BACKSPACE,
    "\b": Key.BACKSPACE,
}


class CursesSurface:
    """ScreenSurface over a curses standard screen."""

    def __init__(self, stdscr: "curses.window") -> None:
        self.stdscr = stdscr
        curses.cbreak()
        curses.noecho()
        stdscr.keypad(True)
        curses.set_escdelay(25)
        self.set_cursor(None)

        self._colors = curses.has_colors()
        if self._colors:
            curses.start_color()
            curses.init_pair(Style.HEADER, curses.COLOR_WHITE, curses.COLOR_BLUE)
            curses.init_pair(Style.SELECTED, curses.COLOR_BLACK, curses.COLOR_WHITE)
            curses.init_pair(Style.TODAY, curses.COLOR_YELLOW, curses.COLOR_BLACK)
            curses.init_pair(Style.EVENT_DAY, curses.COLOR_GREEN, curses.COLOR_BLACK)
            curses.init_pair(Style.ALT_MONTH, curses.COLOR_WHITE, curses.COLOR_BLACK)

    def _attr(self, style: Style, bold: bool = False) -> int:
        attr = curses.color_pair(style) if self._colors and style else 0
        if style is Style.SELECTED and not self._colors:
            attr |= curses.A_REVERSE
        if bold:
            attr |= curses.A_BOLD
        return attr

    def size(self) -> tuple[int, int]:
        return self.stdscr.getmaxyx()

    def clear(self) -> None:
        self.stdscr.erase()

    def draw_text(
        self, row: int, col: int, text: str, style: Style = Style.NORMAL, bold: bool = False
    ) -> None:
        rows, cols = self.size()
        if not (0 <= row < rows) or not (0 <= col < cols) or not text:
            return
        # Writing the bottom-right cell moves the cursor off-screen
        limit = cols - col - (1 if row == rows - 1 else 0)
        if limit <= 0:
            return
        self.stdscr.addnstr(row, col, text, limit, self._attr(style, bold))

    def draw_box(self, rect: Rect, style: Style = Style.NORMAL) -> None:
        attr = self._attr(style)
        win = self.stdscr
        inner = rect.width - 2
        win.addch(rect.top, rect.left, curses.ACS_ULCORNER, attr)
        win.hline(rect.top, rect.left + 1, curses.ACS_HLINE | attr, inner)
        win.addch(rect.top, rect.right, curses.ACS_URCORNER, attr)
        win.vline(rect.top + 1, rect.left, curses.ACS_VLINE | attr, rect.height - 2)
        win.vline(rect.top + 1, rect.right, curses.ACS_VLINE | attr, rect.height - 2)
        win.addch(rect.bottom, rect.left, curses.ACS_LLCORNER, attr)
        win.hline(rect.bottom, rect.left + 1, curses.ACS_HLINE | attr, inner)
        win.addch(rect.bottom, rect.right, curses.ACS_LRCORNER, attr)

    def fill_row(self, row: int, col: int, width: int, style: Style) -> None:
        self.draw_text(row, col, " " * width, style)

    def set_cursor(self, row: int | None, col: int = 0) -> None:
        if row is None:
            curses.curs_set(0)
            return
        curses.curs_set(1)
        self.stdscr.move(row, col)

    def refresh(self) -> None:
        self.stdscr.refresh()

    def get_key(self) -> KeyPress:
        while True:
            ch = self.stdscr.get_wch()
            if isinstance(ch, int):
                key = _CURSES_KEYS.get(ch)
                if key is not None:
                    return key
                continue
            if ch in _CONTROL_CHARS:
                return _CONTROL_CHARS[ch]
            if ch.isprintable():
                return ch
