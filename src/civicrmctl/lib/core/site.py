"""WordPress site discovery and the CiviCRM paths inside it."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from .config import get_global_section

PLUGIN_SLUG = "civicrm"
SETTINGS_FILE_NAME = "civicrm.settings.php"

# define('CIVICRM_DSN', '...') / define("CIVICRM_DSN", "...")
_DSN_DEFINE_RE = re.compile(
    r"""define\s*\(\s*(['"])CIVICRM_DSN\1\s*,\s*(['"])(?P<dsn>.*?)(?<!\\)\2\s*\)""",
    re.DOTALL,
)


@dataclass(frozen=True)
class Site:
    """A WordPress install and the conventional CiviCRM locations below it."""

    root: Path
    url: str | None = None

    @property
    def content_dir(self) -> Path:
        return self.root / "wp-content"

    @property
    def plugins_dir(self) -> Path:
        return self.content_dir / "plugins"

    @property
    def plugin_dir(self) -> Path:
        return self.plugins_dir / PLUGIN_SLUG

    @property
    def civicrm_root(self) -> Path:
        """The CiviCRM core codebase shipped inside the plugin."""
        return self.plugin_dir / "civicrm"

    @property
    def files_dir(self) -> Path:
        return self.content_dir / "uploads" / "civicrm"

    @property
    def legacy_files_dir(self) -> Path:
        return self.plugins_dir / "files" / "civicrm"

    def plugin_installed(self) -> bool:
        return (self.plugin_dir / "civicrm.php").is_file()

    def settings_file(self) -> Path | None:
        """Return the existing ``civicrm.settings.php``, current location first."""
        for candidate in (
            self.files_dir / SETTINGS_FILE_NAME,
            self.plugin_dir / SETTINGS_FILE_NAME,
        ):
            if candidate.is_file():
                return candidate
        return None

    def templates_dir(self) -> Path | None:
        """Compiled templates directory, checking the legacy location first."""
        for base in (self.legacy_files_dir, self.files_dir):
            if (base / "templates_c").is_dir():
                return base / "templates_c"
        return None


def is_wordpress_root(path: Path) -> bool:
    """WordPress also loads ``wp-config.php`` from one level above ABSPATH."""
    if (path / "wp-config.php").is_file():
        return True
    return (path / "wp-settings.php").is_file() and (path.parent / "wp-config.php").is_file()


def find_site_root(start: Path | None = None) -> Path | None:
    """Walk up from *start* (default: cwd) to the first WordPress root."""
    current = (start or Path.cwd()).resolve()
    for candidate in (current, *current.parents):
        if is_wordpress_root(candidate):
            return candidate
    return None


def resolve_site(path: str | None = None, url: str | None = None) -> Site:
    """Resolve the site from ``--path``, then ``wp.path`` in config, then the cwd.

    Raises SystemExit when no WordPress install can be located.
    """
    wp_cfg: dict[str, Any] = get_global_section("wp")
    url = url or (str(wp_cfg["url"]) if wp_cfg.get("url") else None)

    if path:
        root = Path(path).expanduser().resolve()
        if not root.is_dir():
            raise SystemExit(f"WordPress path does not exist: {root}")
        return Site(root, url)

    if wp_cfg.get("path"):
        root = Path(str(wp_cfg["path"])).expanduser().resolve()
        if not root.is_dir():
            raise SystemExit(f"WordPress path from config does not exist: {root}")
        return Site(root, url)

    found = find_site_root()
    if found is None:
        raise SystemExit(
            f"This does not seem to be a WordPress installation ({os.getcwd()}).\n"
            "Pass --path=<wordpress root> or set wp.path in the config file."
        )
    return Site(found, url)


def read_settings_dsn(settings_file: Path) -> str | None:
    """Extract a literal ``CIVICRM_DSN`` from *settings_file*.

    Returns None when the file cannot be read or the constant is built at
    runtime (for example from environment variables).
    """
    try:
        text = settings_file.read_text(encoding="utf-8", errors="replace")
    except OSError:
        return None
    for m in _DSN_DEFINE_RE.finditer(text):
        dsn = m.group("dsn")
        quote = m.group(2)
        # Concatenation or interpolation means the value is computed in PHP.
        if re.search(r"(?<!\\)" + quote, dsn) or (quote == '"' and "$" in dsn):
            continue
        return dsn.replace("\\" + quote, quote).replace("\\\\", "\\")
    return None
