"""Full-screen terminal interface."""

from tkal.tui.session import InteractiveSession, run_interactive
from tkal.tui.state import Focus, SessionState
from tkal.tui.surface import CursesSurface, Key, Rect, ScreenSurface, Style

__all__ = [
    "CursesSurface",
    "Focus",
    "InteractiveSession",
    "Key",
    "Rect",
    "ScreenSurface",
    "SessionState",
    "Style",
    "run_interactive",
]
