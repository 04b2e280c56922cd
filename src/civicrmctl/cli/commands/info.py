"""Informational CLI commands: configuration and path overview."""

from __future__ import annotations

import argparse
import os
from importlib import resources
from pathlib import Path

from ...lib.core.config import (
    download_dir as _download_dir,
    global_config_path as _global_config_path,
    global_config_search_paths as _global_config_search_paths,
    log_file_path as _log_file_path,
    site_config_path as _site_config_path,
    state_root as _state_root,
)
from ...lib.core.site import find_site_root
from ...ui_utils.terminal import gray as _gray, supports_color as _supports_color, yes_no as _yes_no

ENV_OVERRIDES = ("CIVICRMCTL_CONFIG_FILE", "CIVICRMCTL_CONFIG_DIR", "CIVICRMCTL_STATE_DIR")


def register(subparsers: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    """Register the ``config`` overview command."""
    subparsers.add_parser("config", help="Show configuration files and writable locations")


def dispatch(args: argparse.Namespace) -> bool:
    """Handle the ``config`` command.  Returns True if handled."""
    if args.cmd == "config":
        _print_config(getattr(args, "path", None))
        return True
    return False


def _print_config(path: str | None = None) -> None:
    """Display configuration sources, the PHP bridge and output paths."""
    color_enabled = _supports_color()

    # READ PATHS
    print("Configuration (read):")
    gcfg = _global_config_path()
    print(
        f"- Global config file: {_gray(str(gcfg), color_enabled)} "
        f"(exists: {_yes_no(Path(gcfg).is_file(), color_enabled)})"
    )
    paths = _global_config_search_paths()
    if paths:
        print("- Global config search order:")
        for p in paths:
            print(f"  • {_gray(str(p), color_enabled)} (exists: {_yes_no(p.is_file(), color_enabled)})")

    site_root = Path(path).expanduser().resolve() if path else find_site_root()
    if site_root is not None:
        scfg = _site_config_path(site_root)
        print(f"- WordPress root: {_gray(str(site_root), color_enabled)}")
        print(
            f"- Site config file: {_gray(str(scfg), color_enabled)} "
            f"(exists: {_yes_no(scfg.is_file(), color_enabled)})"
        )
    else:
        print("- WordPress root: none found")

    overrides = [(name, os.environ[name]) for name in ENV_OVERRIDES if os.environ.get(name)]
    if overrides:
        print("- Environment overrides:")
        for name, value in overrides:
            print(f"  • {name}={_gray(value, color_enabled)}")

    bridge = resources.files("civicrmctl") / "resources" / "php" / "bridge.php"
    print(f"PHP bridge (read):\n- {_gray(str(bridge), color_enabled)}")

    # WRITE PATHS
    print("Writable locations (write):")
    sroot = _state_root(site_root)
    print(
        f"- State root: {_gray(str(sroot), color_enabled)} "
        f"(exists: {_yes_no(sroot.is_dir(), color_enabled)})"
    )
    print(f"- Debug log: {_gray(str(_log_file_path(site_root)), color_enabled)}")
    ddir = _download_dir(site_root)
    print(
        f"- Download dir: {_gray(str(ddir), color_enabled)} "
        f"(exists: {_yes_no(ddir.is_dir(), color_enabled)})"
    )
