import os
import sys
import tempfile
from collections.abc import Callable
from pathlib import Path
from typing import Any

import yaml  # pip install pyyaml

from .._util.config_stack import ConfigScope, ConfigStack, load_yaml_scope
from .paths import config_root as _config_root_base, state_root as _state_root_base

SITE_CONFIG_NAME = ".civicrmctl.yml"

DEFAULT_UPGRADE_URL = "https://upgrade.civicrm.org/check"
DEFAULT_STORAGE_URL = "https://storage.googleapis.com/storage/v1/b/civicrm/o/"
DEFAULT_DOWNLOAD_URL = "https://storage.googleapis.com/civicrm/"
DEFAULT_HTTP_TIMEOUT = 30


# ---------- Global config ----------


def global_config_search_paths() -> list[Path]:
    """Return the ordered list of paths that will be checked for global config.

    - If CIVICRMCTL_CONFIG_FILE is set, only that single path is considered.
    - Otherwise, check in order:
        1) CIVICRMCTL_CONFIG_DIR/config.yml (when set)
        2) ${XDG_CONFIG_HOME:-~/.config}/civicrmctl/config.yml
        3) sys.prefix/etc/civicrmctl/config.yml
        4) /etc/civicrmctl/config.yml
    """
    env_file = os.environ.get("CIVICRMCTL_CONFIG_FILE")
    if env_file:
        return [Path(env_file).expanduser().resolve()]

    paths: list[Path] = []
    if os.environ.get("CIVICRMCTL_CONFIG_DIR"):
        paths.append(_config_root_base() / "config.yml")
    xdg_home = os.environ.get("XDG_CONFIG_HOME")
    paths.append((Path(xdg_home) if xdg_home else Path.home() / ".config") / "civicrmctl" / "config.yml")
    paths.append(Path(sys.prefix) / "etc" / "civicrmctl" / "config.yml")
    paths.append(Path("/etc/civicrmctl/config.yml"))
    return paths


def global_config_path() -> Path:
    """Global config file path: the first existing search path.

    An explicit CIVICRMCTL_CONFIG_FILE is returned even when missing so the
    user sees which file was expected. With nothing found, the last search
    path (/etc/civicrmctl/config.yml) is returned.
    """
    candidates = global_config_search_paths()
    if len(candidates) == 1:
        return candidates[0]
    for c in candidates:
        if c.is_file():
            return c.resolve()
    return candidates[-1]


def load_global_config() -> dict[str, Any]:
    cfg_path = global_config_path()
    if not cfg_path.is_file():
        return {}
    data = yaml.safe_load(cfg_path.read_text(encoding="utf-8"))
    return data if isinstance(data, dict) else {}


def get_global_section(key: str) -> dict[str, Any]:
    """Return a top-level section from the global config, defaulting to ``{}``.

    A non-dict value (``wp: "oops"``) is treated as missing.
    """
    value = load_global_config().get(key, {})
    if not isinstance(value, dict):
        return {}
    return value or {}


# ---------- Site config ----------


def site_config_path(site_root: Path) -> Path:
    return site_root / SITE_CONFIG_NAME


def build_config_stack(site_root: Path | None) -> ConfigStack:
    """Stack the global config and, when a site is known, its ``.civicrmctl.yml``."""
    stack = ConfigStack()
    gpath = global_config_path()
    stack.push(ConfigScope("global", gpath, load_global_config()))
    if site_root is not None:
        stack.push(load_yaml_scope("site", site_config_path(site_root)))
    return stack


def effective_config(site_root: Path | None = None) -> dict[str, Any]:
    return build_config_stack(site_root).resolve()


def section(cfg: dict[str, Any], key: str) -> dict[str, Any]:
    value = cfg.get(key)
    return value if isinstance(value, dict) else {}


# ---------- Path resolution ----------


def _resolve_path(
    env_var: str | None,
    config_key: tuple[str, str] | None,
    default: Callable[[], Path],
    site_root: Path | None = None,
) -> Path:
    """Resolve a path: env var → merged global and site config → computed default.

    Without *site_root* the site is looked up from the current directory.
    """
    if env_var:
        env = os.environ.get(env_var)
        if env:
            return Path(env).expanduser().resolve()

    if config_key:
        if site_root is None:
            from .site import find_site_root

            site_root = find_site_root()
        try:
            val = section(effective_config(site_root), config_key[0]).get(config_key[1])
            if val:
                return Path(str(val)).expanduser().resolve()
        except (OSError, yaml.YAMLError):
            pass

    return default().resolve()


def state_root(site_root: Path | None = None) -> Path:
    """Writable state directory (debug log).

    Precedence: CIVICRMCTL_STATE_DIR, then ``paths.state_root`` in the site or
    global config, then the platform default from ``paths.state_root()``.
    """
    return _resolve_path("CIVICRMCTL_STATE_DIR", ("paths", "state_root"), _state_root_base, site_root)


def download_dir(site_root: Path | None = None) -> Path:
    """Default destination for ``core download``: ``paths.download_dir`` or the temp dir."""
    return _resolve_path(
        None, ("paths", "download_dir"), lambda: Path(tempfile.gettempdir()), site_root
    )


def log_file_path(site_root: Path | None = None) -> Path:
    return state_root(site_root) / "civicrmctl.log"


# ---------- Typed getters ----------


def get_wp_binary(cfg: dict[str, Any]) -> str:
    return str(section(cfg, "wp").get("binary") or "wp")


def get_wp_user(cfg: dict[str, Any]) -> str | None:
    user = section(cfg, "wp").get("user")
    return str(user) if user else None


def get_mysql_binary(cfg: dict[str, Any]) -> str:
    return str(section(cfg, "mysql").get("binary") or "mysql")


def get_mysqldump_binary(cfg: dict[str, Any]) -> str:
    return str(section(cfg, "mysql").get("dump_binary") or "mysqldump")


def get_http_timeout(cfg: dict[str, Any]) -> float:
    try:
        return float(section(cfg, "http").get("timeout", DEFAULT_HTTP_TIMEOUT))
    except (TypeError, ValueError):
        return float(DEFAULT_HTTP_TIMEOUT)


def get_release_urls(cfg: dict[str, Any]) -> dict[str, str]:
    """Return ``upgrade_url``, ``storage_url`` and ``download_url`` with defaults."""
    rel = section(cfg, "releases")
    return {
        "upgrade_url": str(rel.get("upgrade_url") or DEFAULT_UPGRADE_URL),
        "storage_url": str(rel.get("storage_url") or DEFAULT_STORAGE_URL),
        "download_url": str(rel.get("download_url") or DEFAULT_DOWNLOAD_URL),
    }
