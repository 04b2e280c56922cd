"""``civicrmctl core``: versions, releases, install, activation and upgrades."""

from __future__ import annotations

import argparse
import json
import shutil
import subprocess
import time
from pathlib import Path
from typing import Any

from ...lib._util.fs import ensure_writable_dir, path_owner
from ...lib.civi.restore import restore as _restore
from ...lib.civi.runtime import CiviRuntime
from ...lib.civi.upgrade import UpgradeOptions, UpgradeRunner
from ...lib.core.config import download_dir, effective_config, get_http_timeout, get_release_urls
from ...lib.integrations.releases import STABILITIES, ReleaseClient
from ...lib.util.archive import untar, unzip, zip_directory
from ...lib.util.logging_utils import _log_debug
from ...ui_utils.formatter import display_item, display_items
from ...ui_utils.terminal import (
    confirm,
    cyan,
    is_quiet,
    log,
    pick_conflict_action,
    red,
    success,
    supports_color,
    yellow,
)
from ._completers import add_verbose_flag, runtime_from_args, verbosity

RELEASE_FORMATS = ("table", "json", "url", "version")


def _site_root_arg(args: argparse.Namespace) -> Path | None:
    path = getattr(args, "path", None)
    return Path(path).expanduser().resolve() if path else None


def release_client(insecure: bool = False) -> ReleaseClient:
    cfg = effective_config()
    return ReleaseClient(
        get_release_urls(cfg), timeout=get_http_timeout(cfg), verify=not insecure
    )


def _add_release_args(p: argparse.ArgumentParser, default_format: str | None = "table") -> None:
    p.add_argument(
        "--version",
        dest="release",
        default="stable",
        help="stable, rc, nightly or a release such as 5.80.0 (default: stable)",
    )
    p.add_argument("--l10n", action="store_true", help="Use the localization archive")
    if default_format:
        p.add_argument("--format", choices=RELEASE_FORMATS, default=default_format)


def _add_install_args(p: argparse.ArgumentParser) -> None:
    _add_release_args(p, default_format=None)
    p.add_argument("--zipfile", help="Install from a local plugin zip instead of downloading")
    p.add_argument("--l10n-tarfile", dest="l10n_tarfile", help="Local localization .tar.gz")


def register(subparsers) -> None:
    """Register the ``core`` command group."""
    p_core = subparsers.add_parser("core", help="Manage the CiviCRM plugin and its database")
    csub = p_core.add_subparsers(dest="core_cmd", required=True)

    p = csub.add_parser("version", help="Show the plugin and database versions")
    p.add_argument("--source", choices=("all", "plugin", "db"), default="all")
    p.add_argument("--format", choices=("table", "json", "number"), default="table")

    p = csub.add_parser("check-update", help="Show the latest release for a stability level")
    p.add_argument("--version", dest="release", choices=STABILITIES, default="stable")
    p.add_argument("--l10n", action="store_true", help="Print the localization archive URL")
    p.add_argument("--format", choices=RELEASE_FORMATS, default="table")

    p = csub.add_parser("check-version", help="Show the archives for a CiviCRM release")
    _add_release_args(p)

    p = csub.add_parser("download", help="Download a CiviCRM release archive")
    _add_release_args(p, default_format=None)
    p.add_argument("--destination", help="Directory to download to (default: temp dir)")
    p.add_argument("--insecure", action="store_true", help="Skip TLS certificate verification")
    p.add_argument("--extract", action="store_true", help="Extract the archive after download")

    p = csub.add_parser("install", help="Install the CiviCRM plugin (and localization)")
    _add_install_args(p)
    p.add_argument("--force", action="store_true", help="Reinstall over an existing plugin")

    p = csub.add_parser("activate", help="Create settings and database tables, then activate")
    p.add_argument("--dbuser", help="Database user (default: DB_USER)")
    p.add_argument("--dbpass", help="Database password (default: DB_PASSWORD)")
    p.add_argument("--dbhost", help="Database host (default: DB_HOST)")
    p.add_argument("--dbname", help="Database name (default: DB_NAME)")
    p.add_argument("--locale", default="en_US")
    p.add_argument("--ssl", choices=("on", "off"), default="on")
    p.add_argument("--site-url", dest="site_url", help="Site domain, e.g. example.org")

    p = csub.add_parser("update", help="Replace the plugin with a newer release")
    _add_install_args(p)
    p.add_argument("--backup-dir", dest="backup_dir", help="Zip the current plugin here first")

    p = csub.add_parser("update-db", help="Run pending CiviCRM database upgrades")
    add_update_db_args(p)

    p = csub.add_parser("update-cfg", help="Reset paths after the site was moved or cloned")
    add_update_cfg_args(p)

    p = csub.add_parser("restore", help="Restore codebase and database from a backup")
    add_restore_args(p)


def add_update_db_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--dry-run", dest="dry_run", action="store_true", help="Preview only")
    p.add_argument("--retry", action="store_true", help="Resume an interrupted upgrade")
    p.add_argument("--skip", action="store_true", help="Skip the failed task and resume")
    p.add_argument("--step", action="store_true", help="Confirm each upgrade step")
    add_verbose_flag(p)


def add_update_cfg_args(p: argparse.ArgumentParser) -> None:
    for i in (1, 2, 3):
        p.add_argument(f"--oldVal_{i}", dest=f"oldVal_{i}", help="Old value to replace")
        p.add_argument(f"--newVal_{i}", dest=f"newVal_{i}", help="Replacement value")


def add_restore_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--restore-dir", dest="restore_dir", help="Directory holding civicrm/ and civicrm.sql")
    p.add_argument("--backup-dir", dest="backup_dir", help="Where to keep the pre-restore backup")


def dispatch(args: argparse.Namespace) -> bool:
    """Handle ``core`` subcommands.  Returns True if handled."""
    if args.cmd != "core":
        return False
    cmd = args.core_cmd
    if cmd == "check-update":
        check_update(args.release, args.l10n, args.format)
    elif cmd == "check-version":
        check_version(args.release, args.l10n, args.format)
    elif cmd == "download":
        download(
            args.release,
            args.l10n,
            args.destination,
            args.insecure,
            args.extract,
            site_root=_site_root_arg(args),
        )
    elif cmd == "version":
        show_version(runtime_from_args(args), args.source, args.format)
    elif cmd == "install":
        install(
            runtime_from_args(args),
            version=args.release,
            zipfile=args.zipfile,
            l10n=args.l10n,
            l10n_tarfile=args.l10n_tarfile,
            force=args.force,
        )
    elif cmd == "activate":
        activate(runtime_from_args(args), args)
    elif cmd == "update":
        update(
            runtime_from_args(args),
            version=args.release,
            zipfile=args.zipfile,
            l10n=args.l10n,
            l10n_tarfile=args.l10n_tarfile,
            backup_dir=args.backup_dir,
        )
    elif cmd == "update-db":
        update_db(runtime_from_args(args), args)
    elif cmd == "update-cfg":
        update_cfg(runtime_from_args(args), args)
    elif cmd == "restore":
        _restore(runtime_from_args(args), args.restore_dir, args.backup_dir)
    else:
        return False
    return True


# ---------- versions and releases ----------


def show_version(runtime: CiviRuntime, source: str = "all", fmt: str = "table") -> None:
    if fmt == "number" and source not in ("plugin", "db"):
        raise SystemExit("You must specify --source=plugin or --source=db to use this output format.")
    versions = runtime.versions()
    if fmt == "number":
        print(versions.get(source))
        return
    info = {k: versions.get(k) for k in ("plugin", "db") if source in ("all", k)}
    if fmt == "json":
        print(json.dumps(info))
        return
    labels = {"plugin": "Plugin", "db": "Database"}
    rows = [{"Source": labels[k], "Version": v} for k, v in info.items()]
    display_items(rows, ["Source", "Version"])


def _print_release(info: dict[str, Any], l10n: bool, fmt: str) -> None:
    tar = info.get("tar") or {}
    if fmt == "url":
        print(tar.get("L10n" if l10n else "WordPress", ""))
    elif fmt == "version":
        print(info.get("version"))
    elif fmt == "json":
        print(json.dumps(info))
    else:
        rows = [
            {"Package": package, "Version": info.get("version"), "Package URL": tar.get(package, "")}
            for package in ("WordPress", "L10n")
        ]
        display_items(rows, ["Package", "Version", "Package URL"])


def check_update(stability: str = "stable", l10n: bool = False, fmt: str = "table") -> None:
    lookup, body, _ = release_client().check_update(stability)
    if fmt == "json":
        # The raw response, exactly as served.
        print(body.strip())
        return
    _print_release(lookup, l10n, fmt)


def check_version(version: str = "stable", l10n: bool = False, fmt: str = "table") -> None:
    if version in STABILITIES:
        check_update(version, l10n, fmt)
        return
    _print_release(release_client().check_version(version), l10n, fmt)


def download(
    version: str = "stable",
    l10n: bool = False,
    destination: str | Path | None = None,
    insecure: bool = False,
    extract: bool = False,
    site_root: Path | None = None,
) -> Path:
    """Download (and optionally extract) a release archive; returns the archive path."""
    target = Path(destination).expanduser() if destination else download_dir(site_root)
    ensure_writable_dir(target)

    client = release_client(insecure)
    log(f"Checking{' localization' if l10n else ''} file to download...")
    url = client.archive_url(version, l10n)
    log("Downloading file...")
    archive = client.download(url, target)

    color = supports_color()
    what = "CiviCRM localization" if l10n else "CiviCRM"
    if not extract:
        success(f"{what} downloaded to: {yellow(str(target), color)}")
        if is_quiet():
            print(archive)
        return archive

    if l10n:
        log("Extracting tar.gz archive.")
        _extract(untar, archive, target, "Could not extract tarfile.")
    else:
        log("Extracting zip archive.")
        _extract(unzip, archive, target, "Could not extract zipfile.")
    success(f"{what} downloaded and extracted to: {yellow(str(target), color)}")
    return archive


def _extract(fn, archive: str | Path, destination: Path, failure: str) -> None:
    try:
        fn(archive, destination)
    except SystemExit as e:
        _log_debug(f"extract: {e}")
        raise SystemExit(f"{failure} {e}") from None


# ---------- install / activate / update ----------


def install(
    runtime: CiviRuntime,
    *,
    version: str = "stable",
    zipfile: str | None = None,
    l10n: bool = False,
    l10n_tarfile: str | None = None,
    force: bool = False,
) -> None:
    site = runtime.site
    color = supports_color()

    if not site.plugin_installed() or force:
        if zipfile:
            if force and site.plugin_dir.exists():
                try:
                    shutil.rmtree(site.plugin_dir)
                except OSError as e:
                    raise SystemExit(f"Failed to delete existing CiviCRM plugin: {e}.") from None
            log(f"Extracting plugin archive to: {yellow(str(site.plugin_dir), color)}")
            _extract(unzip, zipfile, site.plugins_dir, "Could not extract plugin archive.")
            success(f"CiviCRM plugin extracted to: {yellow(str(site.plugin_dir), color)}")
        else:
            log("Checking plugin file to download...")
            url = release_client().archive_url(version)
            runtime.plugin_install(url, force=force)
    elif not l10n and not l10n_tarfile:
        raise SystemExit("CiviCRM is already installed.")

    if l10n_tarfile:
        log(f"Extracting localization archive to: {yellow(str(site.plugin_dir), color)}")
        _extract(untar, l10n_tarfile, site.plugin_dir, "Could not extract localization archive.")
        success(f"CiviCRM localization files extracted to: {yellow(str(site.plugin_dir), color)}")
    elif l10n:
        download(version, l10n=True, destination=site.plugin_dir, extract=True)


def activate(runtime: CiviRuntime, args: argparse.Namespace) -> None:
    if not runtime.site.plugin_installed():
        raise SystemExit("You need to install CiviCRM first.")

    constants = runtime.constants
    db = {
        "server": args.dbhost if args.dbhost is not None else constants.get("DB_HOST", ""),
        "username": args.dbuser if args.dbuser is not None else constants.get("DB_USER", ""),
        "password": args.dbpass if args.dbpass is not None else constants.get("DB_PASSWORD", ""),
        "database": args.dbname if args.dbname is not None else constants.get("DB_NAME", ""),
    }
    log("CiviCRM database credentials:")
    feedback = {
        "Database": db["database"],
        "Username": db["username"],
        "Password": db["password"],
        "Host": db["server"],
        "Locale": args.locale,
        "SSL": args.ssl,
    }
    display_item(feedback)
    confirm("Do you want to continue?")

    options = {"db": db, "lang": args.locale, "ssl": args.ssl, "site_url": args.site_url or ""}
    check = runtime.setup_check(**options)

    color = supports_color()
    for msg in check.get("warnings") or []:
        log(f"{yellow('WARNING:', color)} ({msg['section']}) {msg['name']}: {msg['message']}")
    errors = check.get("errors") or []
    for msg in errors:
        print(f"{red('ERROR:', color)} ({msg['section']}) {msg['name']}: {msg['message']}")
    if errors:
        raise SystemExit("Requirements check failed.")

    settings_path = Path(str(check.get("settings_path") or ""))
    if not check.get("settings_installed"):
        log(f"Creating file {yellow(str(settings_path), color)}")
        runtime.setup_files("install", **options)
    else:
        log(f"Found existing {settings_path.name} in {settings_path.parent}")
        action = _conflict("civicrm.settings.php")
        if action == "overwrite":
            log(f"Removing {settings_path.name} from {settings_path.parent}")
            log(f"Creating {settings_path.name} in {settings_path.parent}")
            runtime.setup_files("overwrite", **options)
    success("CiviCRM data files initialized.")

    database = check.get("database") or db["database"]
    if not check.get("database_installed"):
        log(f"Creating civicrm_* database tables in {yellow(str(database), color)}")
        runtime.setup_database("install", **options)
    else:
        log(f"Found existing civicrm_* database tables in {database}")
        action = _conflict("database tables")
        if action == "overwrite":
            log(f"Removing civicrm_* database tables in {database}")
            log(f"Creating civicrm_* database tables in {database}")
            runtime.setup_database("overwrite", **options)
    success("CiviCRM database loaded.")

    runtime.plugin_activate()


def _conflict(title: str) -> str:
    action = pick_conflict_action(title)
    if action == "abort":
        print(cyan("Aborted", supports_color()))
        raise SystemExit(0)
    return action


def update(
    runtime: CiviRuntime,
    *,
    version: str = "stable",
    zipfile: str | None = None,
    l10n: bool = False,
    l10n_tarfile: str | None = None,
    backup_dir: str | None = None,
) -> None:
    log("Gathering system information.")
    feedback: dict[str, Any] = {}
    if zipfile:
        feedback["Plugin zip archive"] = zipfile
    else:
        feedback["Requested version"] = version
        # Strip signed-URL query strings from display.
        feedback["Requested archive"] = release_client().archive_url(version).split("?", 1)[0]

    constants = runtime.constants
    dirs = runtime.config_dirs()
    if constants.get("CIVICRM_PLUGIN_DIR"):
        feedback["Plugin path"] = constants["CIVICRM_PLUGIN_DIR"]
    if dirs.get("civicrm_root"):
        feedback["CiviCRM root"] = dirs["civicrm_root"]
    dsn = runtime.dsn()
    feedback["Database name"] = dsn.get("database")
    feedback["Database username"] = dsn.get("username")
    feedback["Database password"] = dsn.get("password")
    feedback["Database host"] = dsn.get("hostspec")
    for key, label in (
        ("configAndLogDir", "Config and Log"),
        ("customPHPPathDir", "Custom PHP"),
        ("customTemplateDir", "Custom templates"),
        ("templateCompileDir", "Compiled templates"),
        ("extensionsDir", "Extensions directory"),
        ("uploadDir", "Uploads directory"),
        ("imageUploadDir", "Image upload directory"),
        ("customFileUploadDir", "File upload directory"),
    ):
        if dirs.get(key):
            feedback[label] = dirs[key]
    display_item(feedback)
    confirm("Do you want to continue?")

    if backup_dir:
        target = Path(backup_dir).expanduser()
        archive = target / f"civicrm-{time.strftime('%Y%m%d%H%M%S')}.zip"
        log(f"Backing up {runtime.site.plugin_dir} to {archive}")
        zip_directory(runtime.site.plugin_dir, archive)
        success(f"Plugin backed up to: {archive}")

    install(
        runtime,
        version=version,
        zipfile=zipfile,
        l10n=l10n,
        l10n_tarfile=l10n_tarfile,
        force=True,
    )


# ---------- database upgrade / site move ----------


def update_db(runtime: CiviRuntime, args: argparse.Namespace) -> None:
    options = UpgradeOptions(
        dry_run=args.dry_run,
        retry=args.retry,
        skip=args.skip,
        step=args.step,
        verbosity=verbosity(args),
    )
    UpgradeRunner(runtime, options).run()


def update_cfg(runtime: CiviRuntime, args: argparse.Namespace) -> None:
    values = {}
    for i in (1, 2, 3):
        for state in ("old", "new"):
            name = f"{state}Val_{i}"
            value = getattr(args, name, None)
            if value:
                values[name] = value

    templates = runtime.site.templates_dir()
    owner = path_owner(templates) if templates else None

    if not runtime.site_move(values):
        raise SystemExit("Config update failed.")

    if owner:
        user, group = owner
        for name in ("templates_c", "upload"):
            path = runtime.site.files_dir / name
            if not path.exists():
                continue
            argv = ["chown", "-R", f"{user}:{group}", str(path)]
            _log_debug(f"chown: {' '.join(argv)}")
            subprocess.run(argv, check=False)
    success("Config successfully updated.")
