#!/usr/bin/env python3

import argparse
import shlex
import sys

from ..lib.core.version import format_version_string, get_version_info
from ..lib.util.logging_utils import _log_debug, redact_argv
from ..ui_utils.terminal import configure as _configure_terminal
from .commands import api, cache, core, db, debug, ext, info, job, legacy, pipe

# Optional: bash completion via argcomplete
try:
    import argcomplete  # type: ignore
except Exception:  # pragma: no cover - optional dep
    argcomplete = None  # type: ignore

# Order matters only for dispatch; every module ignores commands it does not own.
COMMAND_MODULES = (core, db, ext, api, cache, debug, job, pipe, info, legacy)


def build_parser() -> argparse.ArgumentParser:
    version, branch = get_version_info()
    version_string = format_version_string(version, branch)

    parser = argparse.ArgumentParser(
        prog="civicrmctl",
        description="civicrmctl – administer CiviCRM on WordPress from the command line",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Quick start:\n"
            "  1. Install:   civicrmctl core install && civicrmctl core activate\n"
            "  2. Inspect:   civicrmctl core version; civicrmctl ext list --local\n"
            "  3. Upgrade:   civicrmctl core update --backup-dir=... && civicrmctl core update-db\n"
            "\n"
            "Commands locate WordPress from --path, wp.path in the config file, or the\n"
            "current directory, and reach CiviCRM through WP-CLI.\n"
        ),
    )
    parser.add_argument("--version", action="version", version=f"civicrmctl {version_string}")
    parser.add_argument("--path", help="WordPress root directory")
    parser.add_argument("--url", help="Site URL passed to WP-CLI (multisite)")
    parser.add_argument("--wp-cli", dest="wp_cli", help="WP-CLI executable (default: wp)")
    parser.add_argument(
        "-y", "--yes", action="store_true", help="Answer yes to all confirmation prompts"
    )
    parser.add_argument(
        "-q", "--quiet", action="store_true", help="Suppress informational messages"
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="More output (repeat for extra detail, e.g. -vv)",
    )
    sub = parser.add_subparsers(dest="cmd", required=True)

    for module in COMMAND_MODULES:
        module.register(sub)

    # Enable bash completion if argcomplete is present and activated
    if argcomplete is not None:  # pragma: no cover - shell integration
        try:
            argcomplete.autocomplete(parser)  # type: ignore[attr-defined]
        except Exception:
            pass

    return parser


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    _configure_terminal(quiet=args.quiet, assume_yes=args.yes)
    _log_debug(f"cli: {shlex.join(redact_argv(sys.argv[1:] if argv is None else list(argv)))}")

    for module in COMMAND_MODULES:
        if module.dispatch(args):
            return
    parser.error("Unknown command")


if __name__ == "__main__":
    main()
