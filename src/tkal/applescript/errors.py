"""AppleScript error classes."""


class AppleScriptError(Exception):
    """Raised when an osascript invocation fails."""

    def __init__(self, message: str, script: str | None = None) -> None:
        super().__init__(message)
        self.script = script

    @property
    def error_number(self) -> int | None:
        """AppleScript error number from the message, e.g. -600, if present."""
        marker = self.args[0].rsplit("(", 1)
        if len(marker) != 2 or not marker[1].endswith(")"):
            return None
        try:
            return int(marker[1][:-1])
        except ValueError:
            return None


class AppNotRunningError(AppleScriptError):
    """Raised when the target macOS app is not running."""

    def __init__(self, app_name: str = "Application") -> None:
        super().__init__(
            f"{app_name} is not running. Please open {app_name} and try again.",
            script=None,
        )
        self.app_name = app_name
