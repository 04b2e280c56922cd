"""``civicrmctl api``: call CiviCRM API v3 as ``entity.action key=value ...``."""

from __future__ import annotations

import argparse
import json
import sys
from typing import Any

from ...lib.civi.runtime import CiviRuntime
from ...ui_utils.formatter import display_item, pretty
from ._completers import runtime_from_args

DEFAULT_PARAMS = {"version": 3}


def register(subparsers) -> None:
    p = subparsers.add_parser("api", aliases=["api3"], help="Call the CiviCRM API (v3)")
    p.add_argument("entity_action", metavar="entity.action", help="e.g. Contact.get")
    p.add_argument("params", nargs="*", metavar="key=value", help="API parameters")
    p.add_argument("--in", dest="in_format", default="args", help="args (default) or json on stdin")
    p.add_argument("--out", dest="out_format", default="pretty", help="pretty (default), json or table")
    p.add_argument("--timezone", help="Timezone for the call (default: WordPress timezone_string)")


def dispatch(args: argparse.Namespace) -> bool:
    if args.cmd not in ("api", "api3"):
        return False
    entity, action = split_entity_action(args.entity_action)
    params = parse_params(args.in_format, args.params)
    if args.out_format not in ("pretty", "json", "table"):
        raise SystemExit(f"Unknown format: {args.out_format}")
    call(runtime_from_args(args), entity, action, params, args.out_format, args.timezone)
    return True


def split_entity_action(value: str) -> tuple[str, str]:
    entity, _, action = value.partition(".")
    if not entity or not action:
        raise SystemExit(f"Expected <entity>.<action>, got: {value}")
    return entity, action


def parse_params(in_format: str, args: list[str], stdin=None) -> dict[str, Any]:
    """Build API params from ``key=value`` arguments or a JSON object on stdin."""
    params: dict[str, Any] = dict(DEFAULT_PARAMS)
    if in_format == "args":
        for arg in args:
            key, sep, value = arg.partition("=")
            if not sep or not key:
                raise SystemExit(f"Invalid parameter (expected key=value): {arg}")
            params[key] = value
        return params
    if in_format == "json":
        text = (stdin or sys.stdin).read()
        if not text.strip():
            return params
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise SystemExit(f"Failed to decode JSON: {e.msg}.") from None
        if not isinstance(data, dict):
            raise SystemExit("JSON input must be an object.")
        params.update(data)
        return params
    raise SystemExit(f"Unknown format: {in_format}")


def call(
    runtime: CiviRuntime,
    entity: str,
    action: str,
    params: dict[str, Any],
    out_format: str = "pretty",
    timezone: str | None = None,
) -> Any:
    result = runtime.api3(entity, action, params, timezone=timezone)
    if out_format == "json":
        print(json.dumps(result))
    elif out_format == "table" and _single_value(result) is not None:
        display_item(_single_value(result))
    else:
        print(pretty(result))
    return result


def _single_value(result: Any) -> dict[str, Any] | None:
    values = result.get("values") if isinstance(result, dict) else None
    if isinstance(values, dict) and len(values) == 1:
        item = next(iter(values.values()))
    elif isinstance(values, list) and len(values) == 1:
        item = values[0]
    else:
        return None
    return item if isinstance(item, dict) else None
