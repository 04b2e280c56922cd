"""Restore a CiviCRM codebase and database from a backup directory.

A restore directory holds ``civicrm/`` (a copy of the plugin directory) and
``civicrm.sql`` (a database dump). The current plugin directory and database
are backed up to ``<backup-dir>/plugins/restore/<YmdHis>/`` before anything
is replaced.
"""

from __future__ import annotations

import shutil
import time
from pathlib import Path

from ...ui_utils.terminal import confirm, log, success
from ..db.mysql import MySQLClient
from .runtime import CiviRuntime


def validate_restore_dir(restore_dir: str | Path | None) -> tuple[Path, Path]:
    """Return ``(code_dir, sql_file)`` inside *restore_dir* or exit with the problem."""
    if not restore_dir or not str(restore_dir).rstrip("/"):
        raise SystemExit('"restore-dir" not specified.')
    base = Path(str(restore_dir).rstrip("/"))

    sql_file = base / "civicrm.sql"
    if not sql_file.exists():
        raise SystemExit('Could not locate "civicrm.sql" file in the restore directory.')

    code_dir = base / "civicrm"
    if not code_dir.is_dir():
        raise SystemExit('Could not locate the CiviCRM directory inside "restore-dir".')
    core = code_dir / "civicrm"
    if not (core / "civicrm-version.txt").exists() and not (core / "civicrm-version.php").exists():
        raise SystemExit(
            'The CiviCRM directory inside "restore-dir" does not seem to be a valid CiviCRM codebase.'
        )
    return code_dir, sql_file


def default_backup_dir(runtime: CiviRuntime) -> Path:
    return runtime.site.root / ".." / "backup"


def restore(
    runtime: CiviRuntime,
    restore_dir: str | Path | None,
    backup_dir: str | Path | None = None,
) -> Path:
    """Run the full restore; returns the directory holding the pre-restore backup."""
    code_dir, sql_file = validate_restore_dir(restore_dir)
    plugin_dir = runtime.site.plugin_dir
    base_backup = Path(str(backup_dir).rstrip("/")) if backup_dir else default_backup_dir(runtime)
    mysql: MySQLClient = runtime.mysql()

    log("")
    log("Process involves:")
    log(f"1. Restoring '$restore-dir/civicrm' directory to '{plugin_dir}/'.")
    log(f"2. Dropping and creating '{mysql.database}' database.")
    log("3. Loading '$restore-dir/civicrm.sql' file into the database.")
    log("")
    log(f"Note: Before restoring, a backup will be taken in '{base_backup}/plugins/restore' directory.")
    log("")
    confirm("Do you really want to continue?")

    target = base_backup / "plugins" / "restore" / time.strftime("%Y%m%d%H%M%S")
    try:
        target.mkdir(mode=0o755, parents=True)
    except OSError:
        raise SystemExit(f"Failed to create directory: {target}") from None

    # 1. Codebase.
    log("Restoring CiviCRM codebase...")
    if plugin_dir.is_dir():
        try:
            shutil.move(str(plugin_dir), str(target / "civicrm"))
        except OSError:
            raise SystemExit(f"Failed to take backup for '{plugin_dir}' directory") from None
    try:
        shutil.move(str(code_dir), str(plugin_dir))
    except OSError:
        raise SystemExit(
            f"Failed to restore CiviCRM directory '{code_dir}' to '{plugin_dir}'"
        ) from None
    success("Codebase restored.")

    # 2. Database backup, drop and create.
    mysql.dump(result_file=target / "civicrm.sql")
    success("Database backed up.")
    mysql.drop_database()
    success("Database dropped.")
    mysql.create_database()
    success("Database created.")

    # 3. Load the dump.
    log('Loading "civicrm.sql" file from "restore-dir"...')
    mysql.import_file(sql_file)
    success("Database restored.")

    log("Clearing caches...")
    runtime.cache_clear()
    success("CiviCRM cache cleared.")

    success("Restore process completed.")
    return target
