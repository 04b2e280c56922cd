"""ANSI color primitives shared by the service layer and the terminal helpers.

Service modules (bridge, mysql, archive) may colorize or strip escape codes
without importing ``ui_utils.terminal``, which re-exports these functions.
"""

import os
import re
import sys

ANSI_RE = re.compile(r"\x1B\[[0-?]*[ -/]*[@-~]")


def supports_color(stream=None) -> bool:
    """Return True when *stream* (default: stdout) should receive color.

    ``NO_COLOR`` always disables color. ``FORCE_COLOR`` set to anything but
    ``"0"`` enables it even when the stream is not a TTY.
    """
    if "NO_COLOR" in os.environ:
        return False
    force = os.environ.get("FORCE_COLOR")
    if force is not None and force != "0":
        return True
    stream = stream if stream is not None else sys.stdout
    try:
        return stream.isatty()
    except (AttributeError, ValueError):
        return False


def color(text: str, code: str, enabled: bool) -> str:
    """Wrap *text* in the SGR *code* when *enabled*, else return it unchanged."""
    if not enabled:
        return text
    return f"\x1b[{code}m{text}\x1b[0m"


def strip_ansi(text: str) -> str:
    """Remove ANSI escape sequences (WP-CLI colorizes some of its output)."""
    return ANSI_RE.sub("", text)


def yellow(text: str, enabled: bool) -> str:
    return color(text, "33", enabled)


def green(text: str, enabled: bool) -> str:
    return color(text, "32", enabled)


def red(text: str, enabled: bool) -> str:
    return color(text, "31", enabled)


def cyan(text: str, enabled: bool) -> str:
    return color(text, "36", enabled)


def bold_green(text: str, enabled: bool) -> str:
    return color(text, "1;32", enabled)
