"""civicrmctl package.

Modules:
- civicrmctl.cli: CLI entry point package (civicrmctl)
- civicrmctl.lib.core: Configuration, paths, site discovery, version
- civicrmctl.lib.db: DSN parsing and the mysql/mysqldump client
- civicrmctl.lib.civi: WP-CLI bridge, CiviCRM runtime, upgrades, extensions, restore
- civicrmctl.lib.integrations: Release lookups and downloads
- civicrmctl.lib.util: Archives, version comparison, logging
- civicrmctl.lib._util: Internal helpers (ansi, fs, config stack)
- civicrmctl.ui_utils: Terminal output and formatters
"""

__all__ = [
    "cli",
    "lib",
    "ui_utils",
]

# Version information - single source of truth using importlib.metadata
try:
    from importlib.metadata import version

    __version__ = version("civicrmctl")
except Exception:
    # Fallback for development mode when package is not installed
    try:
        import tomllib
        from pathlib import Path

        pyproject_path = Path(__file__).parent.parent.parent / "pyproject.toml"
        if pyproject_path.exists():
            with open(pyproject_path, "rb") as f:
                pyproject_data = tomllib.load(f)
                __version__ = pyproject_data["project"]["version"]
        else:
            __version__ = "unknown"
    except Exception:
        __version__ = "unknown"
