"""Shared argcomplete completers and helpers for CLI commands."""

from __future__ import annotations

import argparse
from collections.abc import Callable
from pathlib import Path
from typing import Any

from ...lib.civi.runtime import CiviRuntime
from ...lib.core.site import Site, resolve_site


def _extension_dirs(site: Site) -> list[Path]:
    return [site.files_dir / "ext", site.civicrm_root / "ext", site.legacy_files_dir / "ext"]


def complete_extension_keys(
    prefix: str, parsed_args: argparse.Namespace, **kwargs: object
) -> list[str]:  # pragma: no cover
    """Return extension directory names (keys) matching *prefix* for argcomplete."""
    try:
        site = resolve_site(getattr(parsed_args, "path", None))
        keys = sorted(
            {
                d.name
                for base in _extension_dirs(site)
                if base.is_dir()
                for d in base.iterdir()
                if (d / "info.xml").is_file()
            }
        )
    except (OSError, SystemExit):
        return []
    if prefix:
        keys = [k for k in keys if k.startswith(prefix)]
    return keys


def set_completer(action: argparse.Action, fn: Callable[..., Any]) -> None:
    """Attach an argcomplete completer to *action*, ignoring missing argcomplete."""
    action.completer = fn  # type: ignore[attr-defined]


def add_verbose_flag(parser: argparse.ArgumentParser) -> None:
    """Accept ``-v``/``-vv`` after the subcommand as well as before it."""
    parser.add_argument(
        "-v",
        "--verbose",
        dest="cmd_verbose",
        action="count",
        default=0,
        help="More output (repeat for extra detail)",
    )


def verbosity(args: argparse.Namespace) -> int:
    return max(getattr(args, "verbose", 0) or 0, getattr(args, "cmd_verbose", 0) or 0)


def runtime_from_args(args: argparse.Namespace) -> CiviRuntime:
    """Resolve the site from the global ``--path``/``--url``/``--wp-cli`` flags."""
    site = resolve_site(getattr(args, "path", None), getattr(args, "url", None))
    return CiviRuntime(site, wp_binary=getattr(args, "wp_cli", None))
