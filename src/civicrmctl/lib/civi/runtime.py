"""Typed access to a CiviCRM install through WP-CLI.

:class:`CiviRuntime` is what command handlers talk to. It owns the resolved
:class:`~civicrmctl.lib.core.site.Site`, the layered config and a
:class:`~civicrmctl.lib.civi.bridge.WpCli`, and exposes one method per bridge
action plus the few plain ``wp`` commands the tool needs.
"""

from __future__ import annotations

from functools import cached_property
from typing import Any

from ..core.config import (
    effective_config,
    get_mysql_binary,
    get_mysqldump_binary,
    get_wp_binary,
    get_wp_user,
)
from ..core.site import Site, read_settings_dsn
from ..db.dsn import parse_dsn
from ..db.mysql import MySQLClient
from ..util.logging_utils import _log_debug
from .bridge import WpCli


class CiviRuntime:
    def __init__(
        self,
        site: Site,
        *,
        config: dict[str, Any] | None = None,
        wp_binary: str | None = None,
    ) -> None:
        self.site = site
        self.config = config if config is not None else effective_config(site.root)
        self.wp = WpCli(
            site,
            binary=wp_binary or get_wp_binary(self.config),
            user=get_wp_user(self.config),
        )

    # ---------- information ----------

    def versions(self) -> dict[str, str]:
        """``{"plugin": <code version>, "db": <schema version>}``."""
        return self.wp.call("versions")

    @cached_property
    def constants(self) -> dict[str, Any]:
        """WordPress DB constants, ``CIVICRM_DSN`` and plugin paths."""
        return self.wp.call("constants")

    def config_dirs(self) -> dict[str, Any]:
        return self.wp.call("config_dirs")

    def dsn(self) -> dict[str, Any]:
        """Parsed ``CIVICRM_DSN``.

        A literal define in ``civicrm.settings.php`` is read without booting
        WordPress; anything else is asked from the running site.
        """
        settings = self.site.settings_file()
        raw = read_settings_dsn(settings) if settings else None
        if raw:
            _log_debug(f"dsn: read from {settings}")
        else:
            raw = self.constants.get("CIVICRM_DSN")
            if not raw:
                raise SystemExit("CIVICRM_DSN is not defined; is CiviCRM installed?")
            _log_debug("dsn: read from WordPress")
        return parse_dsn(raw)

    def mysql(self) -> MySQLClient:
        return MySQLClient(
            self.dsn(),
            mysql_binary=get_mysql_binary(self.config),
            dump_binary=get_mysqldump_binary(self.config),
        )

    # ---------- maintenance ----------

    def cache_clear(self) -> None:
        self.wp.call("cache_clear")

    def flush(self) -> None:
        self.wp.call("flush")

    def settings_add(self, settings: dict[str, Any]) -> None:
        self.wp.call("settings_add", settings=settings)

    def job(self, name: str) -> None:
        self.wp.call("job", name=name)

    def api3(
        self,
        entity: str,
        action: str,
        params: dict[str, Any],
        timezone: str | None = None,
    ) -> Any:
        """Call ``civicrm_api(entity, action, params)`` and return the raw result."""
        return self.wp.call("api3", entity=entity, action=action, params=params, timezone=timezone)

    def site_move(self, values: dict[str, str]) -> bool:
        return bool(self.wp.call("site_move", values=values))

    # ---------- extensions ----------

    def ext_local(self) -> dict[str, Any]:
        """``{"rows": [...], "warnings": [...]}`` for every extension on disk."""
        return self.wp.call("ext_local")

    def ext_remote(self) -> dict[str, Any]:
        return self.wp.call("ext_remote")

    # ---------- database upgrade ----------

    def upgrade_check(self, pre_messages: bool = False) -> dict[str, Any]:
        return self.wp.call("upgrade_check", pre_messages=pre_messages)

    def upgrade_prepare(self, dry_run: bool = False) -> dict[str, Any]:
        return self.wp.call("upgrade_prepare", dry_run=dry_run)

    def upgrade_resume(self) -> dict[str, Any]:
        return self.wp.call("upgrade_resume")

    def upgrade_peek(self) -> dict[str, Any]:
        """Next queued task (``count``, ``title``, ``callback``, ``arguments``)."""
        return self.wp.call("upgrade_peek")

    def upgrade_skip(self, *, titled_only: bool = False) -> str | None:
        """Drop the next queued task and return its title.

        With *titled_only* an untitled task is put back instead.
        """
        return self.wp.call("upgrade_skip", titled_only=titled_only)

    def upgrade_run(self, *, dry_run: bool = False, verbose: bool = False) -> dict[str, Any]:
        return self.wp.call("upgrade_run", echo=verbose, dry_run=dry_run, verbose=verbose)

    def upgrade_finish(self) -> None:
        self.wp.call("upgrade_finish")

    def upgrade_messages(self, message_file: str | None) -> str:
        if not message_file:
            return ""
        return self.wp.call("upgrade_messages", file=message_file) or ""

    # ---------- installer ----------

    def setup_check(self, **options: Any) -> dict[str, Any]:
        return self.wp.call("setup_check", **options)

    def setup_files(self, mode: str, **options: Any) -> str:
        return self.wp.call("setup_files", mode=mode, **options)

    def setup_database(self, mode: str, **options: Any) -> str:
        return self.wp.call("setup_database", mode=mode, **options)

    # ---------- plain WP-CLI ----------

    def plugin_install(self, source: str, force: bool = False) -> None:
        args = ["plugin", "install", source]
        if force:
            args.append("--force")
        self.wp.passthru(*args)

    def plugin_activate(self) -> None:
        self.wp.passthru("plugin", "activate", "civicrm")

    def pipe(self, flags: str | None = None) -> int:
        return self.wp.stream("pipe", flags=flags or "")
