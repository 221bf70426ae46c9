"""osascript wrapper used by the Calendar.app backend."""

import logging
import subprocess
from datetime import datetime

from tkal.applescript.errors import AppleScriptError

logger = logging.getLogger(__name__)

# Format understood by AppleScript `date "..."` literals (US-style numeric)
APPLESCRIPT_DATE_FORMAT = "%m/%d/%Y %H:%M:%S"


def run_applescript(script: str, *, timeout: int = 30) -> str:
    """
    Execute an AppleScript and return its output.

    Args:
        script: The AppleScript source.
        timeout: Maximum seconds to wait for osascript.

    Returns:
        The stripped stdout of the script.

    Raises:
        AppleScriptError: If osascript exits non-zero or times out.
    """
    logger.debug(f"Running AppleScript ({len(script)} chars, timeout={timeout}s)")
    try:
        result = subprocess.run(
            ["osascript", "-e", script],
            capture_output=True,
            text=True,
            timeout=timeout,
        )
    except subprocess.TimeoutExpired as e:
        raise AppleScriptError(f"AppleScript timed out after {timeout}s", script) from e

    if result.returncode != 0:
        error_msg = result.stderr.strip() or "Unknown AppleScript error"
        logger.debug(f"AppleScript failed: {error_msg}")
        raise AppleScriptError(error_msg, script)

    return result.stdout.strip()


def escape_applescript_string(value: str) -> str:
    """Escape a string for inclusion inside an AppleScript string literal.

    Backslashes and double quotes are escaped; newlines, tabs and carriage
    returns become spaces.
    """
    result = value.replace("\\", "\\\\").replace('"', '\\"')
    result = result.replace("\n", " ").replace("\r", " ").replace("\t", " ")
    return result


def applescript_date(value: datetime) -> str:
    """Render a datetime for an AppleScript `date "..."` literal."""
    return value.strftime(APPLESCRIPT_DATE_FORMAT)
