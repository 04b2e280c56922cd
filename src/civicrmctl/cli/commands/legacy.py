# SPDX-FileCopyrightText: 2025-2026 Jiri Vyskocil <jiri@vyskocil.com>
#
# SPDX-License-Identifier: Apache-2.0

"""Deprecated top-level commands kept for existing scripts.

Each prints a deprecation warning and delegates to its replacement.
"""

from __future__ import annotations

import argparse

from ...lib.civi.restore import restore as _restore
from ...lib.civi.runtime import CiviRuntime
from ...lib.integrations.releases import STABILITIES
from ...ui_utils.terminal import is_quiet, log, warning
from . import core, db
from ._completers import add_verbose_flag, runtime_from_args

REPLACEMENTS: dict[str, tuple[str, ...]] = {
    "upgrade-get": ("core check-update",),
    "version-get": ("core check-version",),
    "upgrade-dl": ("core download",),
    "version-dl": ("core download --version",),
    "version": ("core version --source",),
    "install": ("core install", "core activate"),
    "sql-dump": ("db dump",),
    "upgrade-db": ("core update-db",),
    "update-cfg": ("core update-cfg",),
    "restore": ("core restore",),
    "upgrade": ("core update", "core update-db"),
}


def register(subparsers) -> None:
    p = subparsers.add_parser("upgrade-get", help="Deprecated: use core check-update")
    p.add_argument("--stability", choices=STABILITIES, default="stable")
    p.add_argument("--l10n", action="store_true")
    p.add_argument("--raw", action="store_true", help="Print only the archive URL")

    p = subparsers.add_parser("version-get", help="Deprecated: use core check-version")
    p.add_argument("--release", default="latest")
    p.add_argument("--lang", action="store_true", help="Print the localization archive URL")

    p = subparsers.add_parser("upgrade-dl", help="Deprecated: use core download")
    p.add_argument("--stability", choices=STABILITIES, default="stable")
    p.add_argument("--destination", help="Directory to download to (default: temp dir)")
    p.add_argument("--insecure", action="store_true")
    p.add_argument("--lang", action="store_true", help="Download the localization archive")

    p = subparsers.add_parser("version-dl", help="Deprecated: use core download --version")
    p.add_argument("--release", default="latest")
    p.add_argument("--l10n", action="store_true", help="Download the localization archive")
    p.add_argument("--destination", help="Directory to download to (default: temp dir)")
    p.add_argument("--insecure", action="store_true")

    p = subparsers.add_parser("version", help="Deprecated: use core version --source")
    p.add_argument("source", choices=("db", "code"))
    p.add_argument("--raw", action="store_true", help="Print only the version number")

    p = subparsers.add_parser("install", help="Deprecated: use core install and core activate")
    p.add_argument("--dbhost")
    p.add_argument("--dbname")
    p.add_argument("--dbpass")
    p.add_argument("--dbuser")
    p.add_argument("--lang", help="Locale, e.g. fr_FR (default: en_US)")
    p.add_argument("--langtarfile", help="Local localization .tar.gz")
    p.add_argument("--ssl", choices=("on", "off"), default="on")
    p.add_argument("--site_url", "--site-url", dest="site_url")
    p.add_argument("--stability", choices=STABILITIES, default="stable")
    p.add_argument("--zipfile")
    p.add_argument("--tarfile")

    p = subparsers.add_parser("sql-dump", help="Deprecated: use db dump")
    db.add_dump_args(p)

    p = subparsers.add_parser("upgrade-db", help="Deprecated: use core update-db")
    core.add_update_db_args(p)

    p = subparsers.add_parser("update-cfg", help="Deprecated: use core update-cfg")
    core.add_update_cfg_args(p)

    p = subparsers.add_parser("restore", help="Deprecated: use core restore")
    core.add_restore_args(p)

    p = subparsers.add_parser("upgrade", help="Deprecated: use core update and core update-db")
    p.add_argument("--zipfile")
    p.add_argument("--l10n-tarfile", dest="l10n_tarfile")
    p.add_argument("--backup-dir", dest="backup_dir")
    add_verbose_flag(p)


def dispatch(args: argparse.Namespace) -> bool:
    if args.cmd not in REPLACEMENTS:
        return False
    use = " and ".join(f"`civicrmctl {name}`" for name in REPLACEMENTS[args.cmd])
    warning(f"Deprecated command: use {use} instead.")

    if args.cmd == "upgrade-get":
        upgrade_get(args.stability, args.l10n, args.raw)
    elif args.cmd == "version-get":
        version_get(args.release, args.lang)
    elif args.cmd == "upgrade-dl":
        _download(args.stability, args.lang, args.destination, args.insecure)
    elif args.cmd == "version-dl":
        release = "stable" if args.release == "latest" else args.release
        _download(release, args.l10n, args.destination, args.insecure)
    elif args.cmd == "version":
        version(runtime_from_args(args), args.source, args.raw)
    elif args.cmd == "install":
        install(args)
    elif args.cmd == "sql-dump":
        db.dump(runtime_from_args(args).mysql(), args.tables, args.result_file)
    elif args.cmd == "upgrade-db":
        core.update_db(runtime_from_args(args), args)
    elif args.cmd == "update-cfg":
        core.update_cfg(runtime_from_args(args), args)
    elif args.cmd == "restore":
        _restore(runtime_from_args(args), args.restore_dir, args.backup_dir)
    elif args.cmd == "upgrade":
        upgrade(args)
    return True


def upgrade_get(stability: str = "stable", l10n: bool = False, raw: bool = False) -> None:
    lookup, body, _ = core.release_client().check_update(stability)
    if raw:
        print(lookup["tar"].get("L10n" if l10n else "WordPress", ""))
    else:
        print(body.strip())


def version_get(release: str = "latest", lang: bool = False) -> None:
    if release == "latest" and not lang:
        upgrade_get("stable", raw=True)
        return
    client = core.release_client()
    if release not in client.list_releases():
        raise SystemExit(f"Version {release} is not a valid CiviCRM release.")
    files = client.release_files(release)
    name = files.get("L10n" if lang else "WordPress")
    if not name:
        raise SystemExit(f"No {'L10n' if lang else 'WordPress'} archive found for CiviCRM {release}.")
    print(client.download_url(name))


def upgrade(args: argparse.Namespace) -> None:
    if args.l10n_tarfile:
        raise SystemExit("CiviCRM .tar.gz archives are not supported.")
    runtime = runtime_from_args(args)
    core.update(runtime, zipfile=args.zipfile, backup_dir=args.backup_dir)
    args.dry_run = args.retry = args.skip = args.step = False
    args.cmd_verbose = max(args.cmd_verbose, 1)
    core.update_db(runtime, args)


def _download(version: str, l10n: bool, destination: str | None, insecure: bool) -> None:
    archive = core.download(version, l10n, destination, insecure)
    # quiet mode already printed it
    if not is_quiet():
        print(archive)


def version(runtime: CiviRuntime, source: str, raw: bool = False) -> None:
    """Print the database or code (plugin) version."""
    key = "plugin" if source == "code" else "db"
    if raw:
        core.show_version(runtime, key, "number")
        return
    label = "code" if source == "code" else "database"
    log(f"Found CiviCRM {label} version: {runtime.versions().get(key)}")


def install(args: argparse.Namespace) -> None:
    """Install the plugin files unless present, then activate CiviCRM."""
    if args.tarfile:
        raise SystemExit("CiviCRM .tar.gz archives are not supported.")
    runtime = runtime_from_args(args)
    if runtime.site.plugin_installed():
        log("Existing CiviCRM found. Skipping archive extraction.")
        if args.langtarfile:
            core.install(runtime, l10n_tarfile=args.langtarfile)
    else:
        core.install(
            runtime,
            version=args.stability,
            zipfile=args.zipfile,
            l10n_tarfile=args.langtarfile,
        )
    args.locale = args.lang or "en_US"
    core.activate(runtime, args)
