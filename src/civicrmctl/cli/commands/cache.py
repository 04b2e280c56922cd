"""``civicrmctl cache-clear``."""

import argparse

from ...ui_utils.terminal import success
from ._completers import runtime_from_args


def register(subparsers) -> None:
    subparsers.add_parser(
        "cache-clear", help="Clear the CiviCRM database cache and compiled templates"
    )


def dispatch(args: argparse.Namespace) -> bool:
    if args.cmd != "cache-clear":
        return False
    runtime_from_args(args).cache_clear()
    success("CiviCRM cache cleared.")
    return True
