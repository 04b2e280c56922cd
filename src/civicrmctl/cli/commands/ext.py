"""``civicrmctl ext``: list, inspect and manage CiviCRM extensions."""

from __future__ import annotations

import argparse
import json

from ...lib.civi import extensions
from ...lib.civi.runtime import CiviRuntime
from ...ui_utils.formatter import display_items, pretty
from ...ui_utils.terminal import confirm, is_quiet, log, success, warning
from ._completers import add_verbose_flag, complete_extension_keys, runtime_from_args, set_completer, verbosity

LIST_FORMATS = ("table", "json", "pretty", "csv", "yaml")

CONFIRMATIONS = {
    "enable": "Do you want to enable the Extension?",
    "install": "Do you want to install the Extension?",
    "uninstall": "Do you want to uninstall the Extension?",
}
SUCCESS_MESSAGES = {
    "enable": "CiviCRM Extension enabled.",
    "disable": "CiviCRM Extension disabled.",
    "install": "Extension installed.",
    "uninstall": "Extension uninstalled.",
}


def register(subparsers) -> None:
    """Register the ``ext`` command group."""
    p_ext = subparsers.add_parser("ext", help="Manage CiviCRM extensions")
    esub = p_ext.add_subparsers(dest="ext_cmd", required=True)

    p = esub.add_parser("list", help="List local and/or remote extensions")
    p.add_argument("--local", "-l", action="store_true", help="Only extensions on disk")
    p.add_argument("--remote", "-r", action="store_true", help="Only extensions in the directory")
    p.add_argument("--refresh", action="store_true", help="Refresh CiviCRM's extension cache")
    p.add_argument("--fields", "--columns", dest="fields", help="Comma-separated fields to show")
    p.add_argument("--format", choices=LIST_FORMATS, default="table")

    p = esub.add_parser("info", help="Show one extension")
    set_completer(p.add_argument("key_or_name", help="Full key or short name"), complete_extension_keys)
    p.add_argument("--local", "-l", action="store_true")
    p.add_argument("--remote", "-r", action="store_true")
    p.add_argument("--format", choices=LIST_FORMATS, default="table")

    for action in ("enable", "disable", "install", "uninstall"):
        p = esub.add_parser(action, help=f"{action.capitalize()} an extension")
        set_completer(
            p.add_argument("key_or_name", help="Full key or short name"), complete_extension_keys
        )
        p.add_argument("--extpath", help="Path to the extension (may use a wildcard)")

    p = esub.add_parser("download", aliases=["dl"], help="Download an extension")
    p.add_argument("key", help="Key or short name, optionally key@url")
    p.add_argument("--install", action="store_true", help="Install after downloading")

    p = esub.add_parser("update-db", aliases=["upgrade-db"], help="Run extension database upgrades")
    add_verbose_flag(p)


_ALIASES = {"dl": "download", "upgrade-db": "update-db"}


def dispatch(args: argparse.Namespace) -> bool:
    """Handle ``ext`` subcommands.  Returns True if handled."""
    if args.cmd != "ext":
        return False
    cmd = _ALIASES.get(args.ext_cmd, args.ext_cmd)
    runtime = runtime_from_args(args)
    if cmd == "list":
        list_cmd(runtime, args.local, args.remote, args.refresh, args.fields, args.format)
    elif cmd == "info":
        info_cmd(runtime, args.key_or_name, args.local, args.remote, args.format)
    elif cmd in extensions.STATE_ACTIONS:
        change_state(runtime, cmd, args.key_or_name, args.extpath)
    elif cmd == "download":
        download_cmd(runtime, args.key, args.install)
    elif cmd == "update-db":
        update_db(runtime, verbosity(args))
    else:
        return False
    return True


def _print_rows(rows: list[dict], keys: list[str], fmt: str) -> None:
    shown, fields = extensions.display_rows(rows, keys, fmt)
    if fmt == "pretty":
        print(pretty(shown))
    elif fmt == "json":
        print(json.dumps(shown))
    else:
        display_items(shown, fields, fmt)


def _warn(warnings: list[str]) -> None:
    for message in warnings:
        warning(f"CiviCRM reported a problem: {message}")
        log("Try refreshing the list of Extensions with `civicrmctl ext list --refresh`.")


def list_cmd(
    runtime: CiviRuntime,
    local: bool = False,
    remote: bool = False,
    refresh: bool = False,
    fields: str | None = None,
    fmt: str = "table",
) -> None:
    if refresh:
        extensions.call_api(runtime, "refresh", {}, "Failed to refresh CiviCRM Extensions")
        success("CiviCRM Extensions refreshed.")
        return
    if not local and not remote:
        local = remote = True

    rows, warnings = extensions.list_extensions(runtime, local=local, remote=remote)
    _warn(warnings)
    keys, unknown = extensions.select_fields(fields, remote)
    for name in unknown:
        warning(f"Could not find field: {name}.")
    _print_rows(rows, keys, fmt)


def info_cmd(
    runtime: CiviRuntime,
    key_or_name: str,
    local: bool = False,
    remote: bool = False,
    fmt: str = "table",
) -> None:
    if not local and not remote:
        local = remote = True
    rows, _ = extensions.list_extensions(runtime, local=local, remote=remote)
    matches = extensions.find(rows, key_or_name)
    if not matches:
        raise SystemExit(f"Could not find Extension: {key_or_name}.")
    keys, _ = extensions.select_fields(None, remote)
    _print_rows(matches, keys, fmt)


def change_state(runtime: CiviRuntime, action: str, key_or_name: str, extpath: str | None = None) -> None:
    """Enable, disable, install or uninstall one local extension."""
    matches = extensions.lookup(runtime, key_or_name, local=True, remote=False)
    state, exit_code = extensions.STATE_ACTIONS[action]
    for ext in matches:
        if ext.get("status") == state:
            log(f"Extension already {state}: {key_or_name}.")
            raise SystemExit(exit_code)

    if not is_quiet():
        log("Gathering Extension information:")
        display_items(
            [{"Label": e.get("label"), "Version": e.get("version"), "Status": e.get("status")} for e in matches],
            ["Label", "Version", "Status"],
        )
        confirm(CONFIRMATIONS.get(action) or f"Do you want to {action} Extension: {key_or_name}?")

    key = matches[-1].get("key") or key_or_name
    params = {"keys": key}
    if extpath:
        params["path"] = extpath
    extensions.call_api(runtime, action, params, f"Failed to {action} CiviCRM Extension")
    success(SUCCESS_MESSAGES[action])


def download_cmd(runtime: CiviRuntime, key_arg: str, install: bool = False) -> None:
    key_or_name, _, url = key_arg.partition("@")

    rows, _ = extensions.list_extensions(runtime, local=True, remote=True)
    matches = extensions.find(rows, key_or_name)
    if not matches and not url:
        raise SystemExit(f"Could not find Extension: {key_or_name}.")
    local_exists = any(r.get("location") == "local" for r in matches)
    remote_exists = any(r.get("location") == "remote" for r in matches)
    if local_exists and not remote_exists and not url:
        raise SystemExit(f"Could not find a remote Extension to download: {key_or_name}.")

    if not is_quiet() and matches:
        log("Gathering Extension information:")
        display_items(
            [
                {
                    "Location": e.get("location"),
                    "Label": e.get("label"),
                    "Version": e.get("version"),
                    "Status": e.get("status"),
                }
                for e in matches
            ],
            ["Location", "Label", "Version", "Status"],
        )
        if local_exists:
            confirm("Do you want to overwrite with the remote Extension?")
        else:
            confirm("Do you want to download the remote Extension?")

    key = key_or_name
    for ext in matches:
        if ext.get("location") == "remote":
            url = url or ext.get("downloadUrl") or ""
            key = ext.get("key") or key

    params = {"key": key}
    if url:
        params["url"] = url
    if not install:
        params["install"] = 0
    extensions.call_api(runtime, "download", params, "Failed to download CiviCRM Extension")
    success("CiviCRM Extension downloaded and installed." if install else "CiviCRM Extension downloaded.")


def update_db(runtime: CiviRuntime, level: int = 0) -> None:
    log("Applying available database upgrades for Extensions.")
    result = extensions.call_api(runtime, "upgrade", {}, "Failed to upgrade CiviCRM Extensions")
    if level >= 2:
        log("API success.")
        log(pretty(result))
    success("Database upgrades for Extensions completed.")
