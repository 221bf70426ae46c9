"""tkal - terminal calendar for macOS Calendar.app."""

__version__ = "1.0.0"
