"""``civicrmctl db``: direct access to the CiviCRM database with mysql/mysqldump."""

from __future__ import annotations

import argparse
import json

from ...lib.db.mysql import CORE_TABLE_PATTERNS, MySQLClient, filter_tables
from ...ui_utils.formatter import display_item
from ...ui_utils.terminal import log, success
from ._completers import runtime_from_args


def register(subparsers) -> None:
    """Register the ``db`` command group."""
    p_db = subparsers.add_parser("db", help="Work with the CiviCRM database")
    dsub = p_db.add_subparsers(dest="db_cmd", required=True)

    dsub.add_parser("cli", help="Open an interactive mysql shell")

    p = dsub.add_parser("config", aliases=["conf"], help="Show the parsed CIVICRM_DSN")
    p.add_argument("--format", choices=("table", "json", "pretty"), default="table")

    dsub.add_parser("connect", help="Print a mysql command line for the CiviCRM database")
    dsub.add_parser("drop-tables", help="Drop all CiviCRM core tables and views")

    p = dsub.add_parser("dump", help="Dump the CiviCRM database with mysqldump")
    add_dump_args(p)

    p = dsub.add_parser("load", help="Load a SQL file into the CiviCRM database")
    p.add_argument("--load-file", dest="load_file", required=True, help="SQL file to load")

    p = dsub.add_parser("query", help="Run a SQL query")
    p.add_argument("sql", nargs="?", help="SQL to execute")

    p = dsub.add_parser("tables", help="List tables, optionally filtered by name or wildcard")
    p.add_argument("patterns", nargs="*", help="Table names or shell-style wildcards")
    p.add_argument("--base-tables-only", dest="base_tables_only", action="store_true")
    p.add_argument("--views-only", dest="views_only", action="store_true")
    p.add_argument("--format", choices=("list", "json", "csv"), default="list")


def add_dump_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--tables", help="Comma-separated tables to dump")
    p.add_argument("--result-file", dest="result_file", help="Write the dump to this file")


_ALIASES = {"conf": "config"}


def dispatch(args: argparse.Namespace) -> bool:
    """Handle ``db`` subcommands.  Returns True if handled."""
    if args.cmd != "db":
        return False
    cmd = _ALIASES.get(args.db_cmd, args.db_cmd)

    if cmd == "query" and not args.sql:
        raise SystemExit("No query specified.")
    if cmd == "tables" and args.base_tables_only and args.views_only:
        raise SystemExit("You cannot supply --base-tables-only and --views-only at the same time.")

    runtime = runtime_from_args(args)
    if cmd == "config":
        display_item(runtime.dsn(), fmt=args.format)
        return True

    mysql = runtime.mysql()
    if cmd == "cli":
        mysql.cli()
    elif cmd == "connect":
        print(mysql.connect_command())
    elif cmd == "drop-tables":
        drop_tables(mysql)
    elif cmd == "dump":
        dump(mysql, args.tables, args.result_file)
    elif cmd == "load":
        mysql.load(args.load_file)
    elif cmd == "query":
        mysql.query(args.sql)
    elif cmd == "tables":
        print_tables(mysql, args.patterns, args.base_tables_only, args.views_only, args.format)
    else:
        return False
    return True


def dump(mysql: MySQLClient, tables: str | None = None, result_file: str | None = None) -> None:
    mysql.dump([t for t in tables.split(",") if t.strip()] if tables else None, result_file)
    if result_file:
        success(f"Exported to {result_file}")


def drop_tables(mysql: MySQLClient) -> None:
    tables = filter_tables(mysql.list_tables("BASE TABLE"), CORE_TABLE_PATTERNS)
    views = filter_tables(mysql.list_tables("VIEW"), CORE_TABLE_PATTERNS)
    if tables:
        log("Dropping CiviCRM core tables...")
        mysql.drop_tables(tables, [])
        success("CiviCRM core tables dropped.")
    if views:
        log("Dropping CiviCRM core views...")
        mysql.drop_tables([], views)
        success("CiviCRM core views dropped.")


def print_tables(
    mysql: MySQLClient,
    patterns: list[str],
    base_tables_only: bool = False,
    views_only: bool = False,
    fmt: str = "list",
) -> None:
    table_type = "BASE TABLE" if base_tables_only else "VIEW" if views_only else None
    tables = filter_tables(mysql.list_tables(table_type), patterns)
    if fmt == "csv":
        print(",".join(tables))
    elif fmt == "json":
        print(json.dumps(tables))
    else:
        for table in tables:
            print(table)
