"""``civicrmctl debug enable|disable``: toggle CiviCRM debugging and backtraces."""

import argparse

from ...lib.civi.runtime import CiviRuntime
from ...ui_utils.terminal import success
from ._completers import runtime_from_args


def register(subparsers) -> None:
    p = subparsers.add_parser("debug", help="Enable or disable CiviCRM debugging")
    dsub = p.add_subparsers(dest="debug_cmd", required=True)
    dsub.add_parser("enable", help="Turn on debug output and backtraces")
    dsub.add_parser("disable", help="Turn off debug output and backtraces")


def dispatch(args: argparse.Namespace) -> bool:
    if args.cmd != "debug":
        return False
    set_debug(runtime_from_args(args), args.debug_cmd == "enable")
    return True


def set_debug(runtime: CiviRuntime, enabled: bool) -> None:
    value = 1 if enabled else 0
    runtime.settings_add({"debug_enabled": value, "backtrace": value})
    success("Debug setting enabled." if enabled else "Debug setting disabled.")
