"""Render rows and single items as table, JSON, CSV, YAML, count or pretty output."""

from __future__ import annotations

import csv
import json
import sys
from collections.abc import Iterable, Mapping, Sequence
from typing import Any, TextIO

import yaml
from rich import box
from rich.console import Console
from rich.table import Table
from rich.text import Text


def cell(value: Any) -> str:
    """Text shown for *value* in a table or CSV cell."""
    if value is None:
        return ""
    if value is True:
        return "true"
    if value is False:
        return "false"
    if isinstance(value, (dict, list, tuple)):
        return json.dumps(value, default=str)
    return str(value)


def pretty(value: Any) -> str:
    return json.dumps(value, indent=2, default=str, ensure_ascii=False)


def _console(out: TextIO) -> Console:
    try:
        tty = out.isatty()
    except (AttributeError, ValueError):
        tty = False
    # Tables are never wider than their content; only wrap on a real terminal.
    return Console(
        file=out, highlight=False, markup=False, emoji=False, width=None if tty else 4096
    )


def _print_table(headers: Sequence[str], rows: Iterable[Sequence[Any]], out: TextIO) -> None:
    table = Table(box=box.ASCII, show_header=True, header_style=None, expand=False)
    for header in headers:
        table.add_column(header, overflow="fold")
    for row in rows:
        table.add_row(*(Text(cell(v)) for v in row))
    _console(out).print(table)


def _project(rows: Iterable[Mapping[str, Any]], fields: Sequence[str]) -> list[dict[str, Any]]:
    return [{f: row.get(f) for f in fields if f in row} for row in rows]


def display_items(
    rows: Iterable[Mapping[str, Any]],
    fields: Sequence[str],
    fmt: str = "table",
    out: TextIO | None = None,
) -> None:
    """Print *rows* restricted to *fields* in the requested format."""
    out = out or sys.stdout
    rows = list(rows)
    if fmt == "count":
        print(len(rows), file=out)
    elif fmt == "json":
        print(json.dumps(_project(rows, fields), default=str), file=out)
    elif fmt == "pretty":
        print(pretty(_project(rows, fields)), file=out)
    elif fmt == "yaml":
        out.write(yaml.safe_dump(_project(rows, fields), sort_keys=False, allow_unicode=True))
    elif fmt == "csv":
        writer = csv.writer(out, lineterminator="\n")
        writer.writerow(fields)
        for row in rows:
            writer.writerow([cell(row.get(f)) for f in fields])
    elif fmt == "table":
        _print_table(fields, ([row.get(f) for f in fields] for row in rows), out)
    else:
        raise SystemExit(f"Invalid format: {fmt}")


def display_item(
    item: Mapping[str, Any],
    fields: Sequence[str] | None = None,
    fmt: str = "table",
    out: TextIO | None = None,
) -> None:
    """Print a single mapping; tables show ``Field | Value`` pairs."""
    out = out or sys.stdout
    fields = list(fields) if fields is not None else list(item.keys())
    selected = {f: item.get(f) for f in fields if f in item}
    if fmt == "json":
        print(json.dumps(selected, default=str), file=out)
    elif fmt == "pretty":
        print(pretty(selected), file=out)
    elif fmt == "yaml":
        out.write(yaml.safe_dump(selected, sort_keys=False, allow_unicode=True))
    elif fmt == "csv":
        writer = csv.writer(out, lineterminator="\n")
        writer.writerow(["Field", "Value"])
        for key, value in selected.items():
            writer.writerow([key, cell(value)])
    elif fmt == "table":
        _print_table(["Field", "Value"], selected.items(), out)
    else:
        raise SystemExit(f"Invalid format: {fmt}")
