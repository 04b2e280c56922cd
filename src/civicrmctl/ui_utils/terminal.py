"""Terminal output helpers.

Core color functions (``supports_color``, ``color``, ``yellow``, ``green``,
``red``, ``cyan``) are defined in ``civicrmctl.lib._util.ansi`` so that
service-layer modules can use them without a cross-layer dependency.
This module re-exports them and adds the WP-CLI style message helpers
(``Success:``/``Warning:`` prefixes, confirmations) used by the commands.
"""

import sys

from civicrmctl.lib._util.ansi import (  # noqa: F401  -- re-exports
    bold_green,
    color,
    cyan,
    green,
    red,
    strip_ansi,
    supports_color,
    yellow,
)

_state = {"quiet": False, "assume_yes": False}


def configure(*, quiet: bool = False, assume_yes: bool = False) -> None:
    """Apply the global ``--quiet`` and ``--yes`` flags."""
    _state["quiet"] = quiet
    _state["assume_yes"] = assume_yes


def is_quiet() -> bool:
    return _state["quiet"]


def yes_no(value: bool, enabled: bool) -> str:
    """Return green ``"yes"`` or red ``"no"`` based on *value* when *enabled*."""
    return color("yes" if value else "no", "32" if value else "31", enabled)


def gray(text: str, enabled: bool) -> str:
    """Return *text* in gray (ANSI 90) when *enabled*."""
    return color(text, "90", enabled)


def log(message: str = "") -> None:
    """Print an informational line unless ``--quiet`` is active."""
    if not _state["quiet"]:
        print(message)


def success(message: str) -> None:
    if not _state["quiet"]:
        print(f"{green('Success:', supports_color())} {message}")


def warning(message: str) -> None:
    print(f"{yellow('Warning:', supports_color(sys.stderr))} {message}", file=sys.stderr)


def ask(question: str) -> str:
    """Read one lowercased answer from stdin; EOF counts as an empty answer."""
    sys.stdout.write(f"{question} ")
    sys.stdout.flush()
    try:
        return input().strip().lower()
    except EOFError:
        return ""


def confirm(question: str, assume_yes: bool | None = None) -> None:
    """Ask a yes/no question; anything but yes exits with status 0.

    ``--yes`` (or *assume_yes*) answers automatically.
    """
    if assume_yes or (assume_yes is None and _state["assume_yes"]):
        return
    answer = ask(f"{question} [y/n]")
    if answer not in ("y", "yes"):
        raise SystemExit(0)


def pick_conflict_action(title: str) -> str:
    """Ask how to handle an existing *title*: ``abort`` (default), ``keep`` or ``overwrite``."""
    enabled = supports_color()
    print(f"{green('The', enabled)} {yellow(title, enabled)} {green('already exists.', enabled)}")
    print(f"{bold_green('[a]', enabled)} Abort. (Default.)")
    print(
        f"{bold_green('[k]', enabled)} Keep existing {title}. "
        f"{red('(WARNING: This may fail if the existing version is out-of-date.)', enabled)}"
    )
    print(
        f"{bold_green('[o]', enabled)} Overwrite with new {title}. "
        f"{red('(WARNING: This may destroy data.)', enabled)}"
    )
    answer = ask(green("What you like to do?", enabled))
    return {"k": "keep", "o": "overwrite"}.get(answer, "abort")
