"""Tests for the global/site configuration layer."""

import os
import tempfile
import unittest
import unittest.mock
from pathlib import Path

from civicrmctl.lib.core import config
from test_utils import config_env, write_site


class GlobalConfigPathTests(unittest.TestCase):
    def test_config_file_env_is_exclusive(self) -> None:
        with config_env("wp:\n  path: /srv/www\n") as env:
            self.assertEqual(config.global_config_search_paths(), [env.config_file.resolve()])
            self.assertEqual(config.global_config_path(), env.config_file.resolve())

    def test_missing_explicit_file_still_reported(self) -> None:
        with config_env(None) as env:
            self.assertEqual(config.global_config_path(), env.config_file.resolve())
            self.assertEqual(config.load_global_config(), {})

    def test_search_order_with_config_dir(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            env = {"CIVICRMCTL_CONFIG_DIR": td, "XDG_CONFIG_HOME": str(Path(td) / "xdg")}
            with unittest.mock.patch.dict(os.environ, env, clear=True):
                paths = config.global_config_search_paths()
                self.assertEqual(paths[0], Path(td) / "config.yml")
                self.assertEqual(paths[1], Path(td) / "xdg" / "civicrmctl" / "config.yml")
                self.assertEqual(paths[-1], Path("/etc/civicrmctl/config.yml"))

                (Path(td) / "xdg" / "civicrmctl").mkdir(parents=True)
                (Path(td) / "xdg" / "civicrmctl" / "config.yml").write_text("{}\n", encoding="utf-8")
                self.assertEqual(
                    config.global_config_path(),
                    (Path(td) / "xdg" / "civicrmctl" / "config.yml").resolve(),
                )

    def test_non_dict_section_treated_as_missing(self) -> None:
        with config_env("wp: oops\nmysql:\n  binary: mariadb\n"):
            self.assertEqual(config.get_global_section("wp"), {})
            self.assertEqual(config.get_global_section("mysql"), {"binary": "mariadb"})


class EffectiveConfigTests(unittest.TestCase):
    def test_site_config_layered_over_global(self) -> None:
        with config_env("wp:\n  binary: wp\n  user: www-data\nhttp:\n  timeout: 10\n") as env:
            site_root = env.base / "site"
            site_root.mkdir()
            (site_root / ".civicrmctl.yml").write_text(
                "wp:\n  user: null\n  binary: /opt/wp\n", encoding="utf-8"
            )
            cfg = config.effective_config(site_root)
        self.assertEqual(config.get_wp_binary(cfg), "/opt/wp")
        self.assertIsNone(config.get_wp_user(cfg))
        self.assertEqual(config.get_http_timeout(cfg), 10.0)

    def test_without_site(self) -> None:
        with config_env("mysql:\n  dump_binary: mariadb-dump\n"):
            cfg = config.effective_config()
        self.assertEqual(config.get_mysqldump_binary(cfg), "mariadb-dump")
        self.assertEqual(config.get_mysql_binary(cfg), "mysql")


class TypedGetterTests(unittest.TestCase):
    def test_defaults(self) -> None:
        self.assertEqual(config.get_wp_binary({}), "wp")
        self.assertIsNone(config.get_wp_user({}))
        self.assertEqual(config.get_http_timeout({}), float(config.DEFAULT_HTTP_TIMEOUT))
        urls = config.get_release_urls({})
        self.assertEqual(urls["upgrade_url"], config.DEFAULT_UPGRADE_URL)
        self.assertEqual(urls["storage_url"], config.DEFAULT_STORAGE_URL)
        self.assertEqual(urls["download_url"], config.DEFAULT_DOWNLOAD_URL)

    def test_bad_timeout_falls_back(self) -> None:
        self.assertEqual(config.get_http_timeout({"http": {"timeout": "soon"}}), 30.0)

    def test_release_url_override(self) -> None:
        urls = config.get_release_urls({"releases": {"upgrade_url": "https://mirror/check"}})
        self.assertEqual(urls["upgrade_url"], "https://mirror/check")
        self.assertEqual(urls["download_url"], config.DEFAULT_DOWNLOAD_URL)


class PathResolutionTests(unittest.TestCase):
    def test_state_root_env_wins(self) -> None:
        with config_env("paths:\n  state_root: /ignored\n") as env:
            self.assertEqual(config.state_root(), env.state_dir.resolve())
            self.assertEqual(config.log_file_path(), env.state_dir.resolve() / "civicrmctl.log")

    def test_state_root_from_config(self) -> None:
        with config_env() as env:
            env.config_file.write_text(f"paths:\n  state_root: {env.base / 's'}\n", encoding="utf-8")
            with unittest.mock.patch.dict(os.environ):
                del os.environ["CIVICRMCTL_STATE_DIR"]
                self.assertEqual(config.state_root(), (env.base / "s").resolve())

    def test_download_dir(self) -> None:
        with config_env() as env:
            env.config_file.write_text(f"paths:\n  download_dir: {env.base}\n", encoding="utf-8")
            self.assertEqual(config.download_dir(), env.base.resolve())
        with config_env("{}\n"):
            self.assertEqual(config.download_dir(), Path(tempfile.gettempdir()).resolve())

    def test_site_config_overrides_paths(self) -> None:
        with config_env() as env:
            env.config_file.write_text(f"paths:\n  download_dir: {env.base / 'global'}\n", encoding="utf-8")
            site = write_site(env.base / "www")
            config.site_config_path(site.root).write_text(
                f"paths:\n  download_dir: {env.base / 'site'}\n  state_root: {env.base / 'site-state'}\n",
                encoding="utf-8",
            )
            with unittest.mock.patch.dict(os.environ):
                del os.environ["CIVICRMCTL_STATE_DIR"]
                self.assertEqual(config.download_dir(site.root), (env.base / "site").resolve())
                self.assertEqual(config.state_root(site.root), (env.base / "site-state").resolve())
                self.assertEqual(
                    config.log_file_path(site.root), (env.base / "site-state" / "civicrmctl.log").resolve()
                )
            # a site without its own file falls back to the global value
            other = write_site(env.base / "other")
            self.assertEqual(config.download_dir(other.root), (env.base / "global").resolve())

    def test_site_found_from_current_directory(self) -> None:
        with config_env("{}\n") as env:
            site = write_site(env.base / "www")
            config.site_config_path(site.root).write_text(
                f"paths:\n  download_dir: {env.base / 'site'}\n", encoding="utf-8"
            )
            with unittest.mock.patch(
                "civicrmctl.lib.core.site.find_site_root", return_value=site.root
            ) as find:
                self.assertEqual(config.download_dir(), (env.base / "site").resolve())
            find.assert_called_once_with()
