"""Error hierarchy shared by the parser, the store layer and the UI."""


class TkalError(Exception):
    """Base class for tkal errors."""


class ParseError(TkalError, ValueError):
    """Raised when a date/time expression cannot be understood."""

    def __init__(self, text: str, message: str | None = None) -> None:
        super().__init__(message or f"Could not parse date/time: {text!r}")
        self.text = text


class StoreError(TkalError):
    """Raised when an operation against the calendar store fails."""


class ValidationError(TkalError, ValueError):
    """Raised when user input is rejected before reaching the store."""
