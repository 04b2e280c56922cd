"""mysql / mysqldump client for the CiviCRM database.

All commands run with the credentials from a parsed ``CIVICRM_DSN``. The
password travels in ``MYSQL_PWD`` rather than on the command line.
"""

from __future__ import annotations

import fnmatch
import os
import shlex
import shutil
import subprocess
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from ..util.logging_utils import _log_debug, redact_argv

CORE_TABLE_PATTERNS = ("civicrm_*", "log_civicrm_*", "snap_civicrm_*")


def quote_ident(name: str) -> str:
    """Backtick-quote a table or database identifier."""
    return "`" + name.replace("`", "``") + "`"


def filter_tables(tables: list[str], patterns: Iterable[str]) -> list[str]:
    """Restrict *tables* to the names selected by *patterns*.

    Patterns containing ``*`` or ``?`` are shell globs (case-sensitive);
    anything else must match a table name exactly. The result keeps the
    order of *tables* and has no duplicates. With no patterns every table is
    returned.
    """
    patterns = list(patterns)
    if not patterns:
        return list(tables)
    wanted: set[str] = set()
    for pattern in patterns:
        if "*" in pattern or "?" in pattern:
            wanted.update(t for t in tables if fnmatch.fnmatchcase(t, pattern))
        else:
            wanted.add(pattern)
    result: list[str] = []
    for table in tables:
        if table in wanted and table not in result:
            result.append(table)
    return result


class MySQLClient:
    def __init__(
        self,
        dsn: dict[str, Any],
        *,
        mysql_binary: str = "mysql",
        dump_binary: str = "mysqldump",
    ) -> None:
        self.dsn = dsn
        self.mysql_binary = mysql_binary
        self.dump_binary = dump_binary

    # ---------- argv helpers ----------

    @property
    def database(self) -> str:
        return str(self.dsn.get("database") or "")

    def connection_args(self) -> list[str]:
        """``--host``/``--port``/``--socket``/``--user`` for the DSN, without the database."""
        args: list[str] = []
        if self.dsn.get("hostspec"):
            args.append(f"--host={self.dsn['hostspec']}")
        if self.dsn.get("port"):
            args.append(f"--port={self.dsn['port']}")
        if self.dsn.get("socket"):
            args.append(f"--socket={self.dsn['socket']}")
        if self.dsn.get("username"):
            args.append(f"--user={self.dsn['username']}")
        return args

    def env(self) -> dict[str, str]:
        env = os.environ.copy()
        password = self.dsn.get("password")
        if password:
            env["MYSQL_PWD"] = str(password)
        return env

    def connect_command(self) -> str:
        """Return a copy-pasteable ``mysql`` command line, password included."""
        command = (
            f"mysql --database={self.dsn.get('database')} --host={self.dsn.get('hostspec')}"
            f" --user={self.dsn.get('username')} --password={self.dsn.get('password')}"
        )
        if self.dsn.get("port"):
            command += f" --port={self.dsn['port']}"
        return command

    def _require(self, binary: str) -> None:
        if shutil.which(binary) is None:
            raise SystemExit(f"{binary} not found; please install the MySQL/MariaDB client")

    def _mysql_argv(self, *extra: str, no_defaults: bool = False, database: bool = True) -> list[str]:
        argv = [self.mysql_binary]
        if no_defaults:
            argv.append("--no-defaults")
        argv.extend(self.connection_args())
        if database and self.database:
            argv.append(f"--database={self.database}")
        argv.extend(extra)
        return argv

    # ---------- runners ----------

    def _passthru(self, argv: list[str], stdin=None) -> None:
        self._require(argv[0])
        _log_debug(f"mysql: {shlex.join(redact_argv(argv))}")
        result = subprocess.run(argv, env=self.env(), stdin=stdin, check=False)
        if result.returncode != 0:
            raise SystemExit(result.returncode)

    def _capture(self, argv: list[str], error: str = "MySQL command failed") -> str:
        self._require(argv[0])
        _log_debug(f"mysql: {shlex.join(redact_argv(argv))}")
        result = subprocess.run(
            argv, env=self.env(), capture_output=True, text=True, check=False
        )
        if result.returncode != 0:
            err = (result.stderr or "").strip().splitlines()
            detail = err[0] if err else f"exit code {result.returncode}"
            raise SystemExit(f"{error}: {detail}")
        return result.stdout

    def cli(self) -> None:
        """Open an interactive ``mysql`` shell."""
        self._passthru(self._mysql_argv(no_defaults=True))

    def query(self, sql: str) -> None:
        """Run *sql* and let mysql print the result."""
        self._passthru(self._mysql_argv(f"--execute={sql}", no_defaults=True))

    def load(self, path: str | Path) -> None:
        """Load a SQL file with ``SOURCE``."""
        self._passthru(self._mysql_argv(f"--execute=SOURCE {path}"))

    def execute(self, sql: str, *, database: bool = True, error: str = "MySQL command failed") -> str:
        """Run *sql* in batch mode and return mysql's stdout."""
        argv = self._mysql_argv("--batch", "--skip-column-names", f"--execute={sql}", database=database)
        return self._capture(argv, error)

    def fetch_column(self, sql: str) -> list[str]:
        """Return the first column of every row produced by *sql*."""
        rows = []
        for line in self.execute(sql).splitlines():
            if line:
                rows.append(line.split("\t", 1)[0])
        return rows

    def list_tables(self, table_type: str | None = None) -> list[str]:
        """List tables, optionally only ``"BASE TABLE"`` or ``"VIEW"`` entries."""
        sql = "SHOW TABLES"
        if table_type:
            sql = f'SHOW FULL TABLES WHERE Table_Type = "{table_type}"'
        return self.fetch_column(sql)

    def dump(self, tables: list[str] | None = None, result_file: str | Path | None = None) -> None:
        argv = [self.dump_binary, "--opt", "--triggers", "--routines", "--events"]
        argv.extend(self.connection_args())
        if result_file:
            argv.append(f"--result-file={result_file}")
        argv.append(self.database)
        if tables:
            argv.append("--tables")
            argv.extend(t.strip() for t in tables)
        self._passthru(argv)

    def drop_tables(self, tables: list[str], views: list[str]) -> str:
        """Return and run the statements dropping *tables* and *views*."""
        statements = ["SET FOREIGN_KEY_CHECKS = 0"]
        statements.extend(f"DROP TABLE IF EXISTS {quote_ident(t)}" for t in tables)
        statements.extend(f"DROP VIEW {quote_ident(v)}" for v in views)
        sql = ";\n".join(statements) + ";"
        for stmt in statements:
            _log_debug(f"mysql: {stmt}")
        self.execute(sql)
        return sql

    def drop_database(self) -> None:
        self.execute(
            f"DROP DATABASE IF EXISTS {quote_ident(self.database)}",
            database=False,
            error=f"Could not drop database: {self.database}",
        )

    def create_database(self) -> None:
        self.execute(
            f"CREATE DATABASE {quote_ident(self.database)}",
            database=False,
            error=f"Could not create new database: {self.database}",
        )

    def import_file(self, sql_file: str | Path) -> None:
        """Feed *sql_file* to mysql on stdin."""
        with open(sql_file, "rb") as fh:
            self._passthru(self._mysql_argv(), stdin=fh)
