"""``civicrmctl pipe``: start a ``Civi::pipe()`` session on stdin/stdout."""

import argparse

from ._completers import runtime_from_args


def register(subparsers) -> None:
    p = subparsers.add_parser(
        "pipe",
        help="Open a Civi::pipe() JSON-RPC session",
        description=(
            "Flags: v (report version), l (login support), t (trusted), u (untrusted). "
            "Without flags CiviCRM's defaults apply."
        ),
    )
    p.add_argument("flags", nargs="?", help="Pipe flags, e.g. vtl")


def dispatch(args: argparse.Namespace) -> bool:
    if args.cmd != "pipe":
        return False
    code = runtime_from_args(args).pipe(args.flags)
    if code:
        raise SystemExit(code)
    return True
