"""CiviCRM extension listing and lookups.

Rows come from the ``ext_local``/``ext_remote`` bridge actions and always use
the lowercase keys of :data:`FIELD_MAP`. Machine formats (``json``,
``pretty``) keep those keys; human formats use the headings.
"""

from __future__ import annotations

from typing import Any

from .runtime import CiviRuntime

FIELD_MAP = {
    "location": "Location",
    "key": "Key",
    "name": "Name",
    "version": "Version",
    "label": "Label",
    "status": "Status",
    "type": "Type",
    "path": "Path",
}
REMOTE_FIELD = ("downloadUrl", "Download URL")

MACHINE_FORMATS = ("json", "pretty")

# action -> (status meaning "nothing to do", exit code when already there)
STATE_ACTIONS = {
    "enable": ("enabled", 1),
    "disable": ("disabled", 0),
    "install": ("installed", 1),
    "uninstall": ("uninstalled", 1),
}


def field_map(remote: bool) -> dict[str, str]:
    fields = dict(FIELD_MAP)
    if remote:
        fields[REMOTE_FIELD[0]] = REMOTE_FIELD[1]
    return fields


def select_fields(requested: str | None, remote: bool) -> tuple[list[str], list[str]]:
    """Resolve a ``--fields`` value into row keys.

    Names are matched case-insensitively. Returns ``(keys, unknown)`` where
    *unknown* lists the lowercased names that matched nothing.
    """
    available = field_map(remote)
    if not requested:
        return list(available), []
    by_lower = {k.lower(): k for k in available}
    keys: list[str] = []
    unknown: list[str] = []
    for name in requested.split(","):
        name = name.strip().lower()
        if not name:
            continue
        if name in by_lower:
            if by_lower[name] not in keys:
                keys.append(by_lower[name])
        else:
            unknown.append(name)
    return keys, unknown


def display_rows(
    rows: list[dict[str, Any]], keys: list[str], fmt: str
) -> tuple[list[dict[str, Any]], list[str]]:
    """Return ``(rows, fields)`` ready for the formatter in *fmt*."""
    if fmt in MACHINE_FORMATS:
        return [{k: row[k] for k in keys if k in row} for row in rows], keys
    headings = {**FIELD_MAP, REMOTE_FIELD[0]: REMOTE_FIELD[1]}
    fields = [headings[k] for k in keys]
    return [{headings[k]: row.get(k, "") for k in keys} for row in rows], fields


def list_extensions(
    runtime: CiviRuntime, local: bool = True, remote: bool = True
) -> tuple[list[dict[str, Any]], list[str]]:
    """Collect local and/or remote extension rows and any CiviCRM warnings."""
    rows: list[dict[str, Any]] = []
    warnings: list[str] = []
    for wanted, fetch in ((local, runtime.ext_local), (remote, runtime.ext_remote)):
        if not wanted:
            continue
        data = fetch() or {}
        rows.extend(data.get("rows") or [])
        warnings.extend(data.get("warnings") or [])
    if not remote:
        for row in rows:
            row.pop(REMOTE_FIELD[0], None)
    return rows, warnings


def find(rows: list[dict[str, Any]], key_or_name: str) -> list[dict[str, Any]]:
    return [r for r in rows if key_or_name in (r.get("key"), r.get("name"))]


def lookup(
    runtime: CiviRuntime, key_or_name: str, local: bool = True, remote: bool = False
) -> list[dict[str, Any]]:
    """Rows for *key_or_name*; exits with ``Could not find Extension`` when none match."""
    rows, _ = list_extensions(runtime, local=local, remote=remote)
    matches = find(rows, key_or_name)
    if not matches:
        raise SystemExit(f"Could not find Extension: {key_or_name}.")
    return matches


def call_api(runtime: CiviRuntime, action: str, params: dict[str, Any], failure: str) -> Any:
    """Run ``Extension.<action>``; an API error exits with ``<failure>: <message>``."""
    result = runtime.api3("Extension", action, {"version": 3, **params})
    if isinstance(result, dict) and int(result.get("is_error") or 0) == 1:
        raise SystemExit(f"{failure}: {result.get('error_message', '')}")
    return result
