import copy
import json
import unittest
import unittest.mock
from contextlib import redirect_stderr, redirect_stdout
from io import StringIO

from civicrmctl.cli.commands import ext
from civicrmctl.ui_utils.terminal import configure
from test_utils import config_env, mock_runtime, run_cli

LOCAL = {
    "rows": [
        {
            "location": "local",
            "key": "org.civicrm.search_kit",
            "name": "search_kit",
            "version": "5.80.1",
            "label": "SearchKit",
            "status": "installed",
            "type": "module",
            "path": "/srv/ext/search_kit",
            "downloadUrl": "",
        }
    ],
    "warnings": [],
}
REMOTE = {
    "rows": [
        {
            "location": "remote",
            "key": "uk.co.vedaconsulting.mosaico",
            "name": "mosaico",
            "version": "3.5",
            "label": "Mosaico",
            "status": "",
            "type": "module",
            "path": "",
            "downloadUrl": "https://ext.example/mosaico.zip",
        }
    ],
    "warnings": ["Remote directory unavailable"],
}


def _runtime(**returns):
    runtime = mock_runtime(ext_local=copy.deepcopy(LOCAL), ext_remote=copy.deepcopy(REMOTE))
    runtime.api3.return_value = returns.get("api3", {"is_error": 0})
    return runtime


class ExtListTests(unittest.TestCase):
    def _list(self, runtime, **kwargs) -> tuple[str, str]:
        out, err = StringIO(), StringIO()
        with redirect_stdout(out), redirect_stderr(err):
            ext.list_cmd(runtime, **kwargs)
        return out.getvalue(), err.getvalue()

    def test_local_json_drops_download_url(self) -> None:
        runtime = _runtime()
        out, _ = self._list(runtime, local=True, fmt="json")
        rows = json.loads(out)
        self.assertEqual([r["key"] for r in rows], ["org.civicrm.search_kit"])
        self.assertNotIn("downloadUrl", rows[0])
        runtime.ext_remote.assert_not_called()

    def test_both_sources_warn_and_show_table(self) -> None:
        out, err = self._list(_runtime())
        self.assertIn("Download URL", out)
        self.assertIn("Mosaico", out)
        self.assertIn("CiviCRM reported a problem: Remote directory unavailable", err)

    def test_fields_case_insensitive_and_unknown_warned(self) -> None:
        out, err = self._list(_runtime(), local=True, fields="KEY,Status,bogus", fmt="csv")
        self.assertEqual(out.splitlines()[0], "Key,Status")
        self.assertIn("Could not find field: bogus.", err)

    def test_refresh(self) -> None:
        runtime = _runtime()
        out, _ = self._list(runtime, refresh=True)
        runtime.api3.assert_called_once_with("Extension", "refresh", {"version": 3})
        self.assertIn("CiviCRM Extensions refreshed.", out)
        runtime.ext_local.assert_not_called()


class ExtStateTests(unittest.TestCase):
    def setUp(self) -> None:
        configure(assume_yes=True)
        self.addCleanup(configure)

    def test_install_already_installed_exits_one(self) -> None:
        runtime = _runtime()
        with redirect_stdout(StringIO()) as out, self.assertRaises(SystemExit) as ctx:
            ext.change_state(runtime, "install", "search_kit")
        self.assertEqual(ctx.exception.code, 1)
        self.assertIn("Extension already installed: search_kit.", out.getvalue())
        runtime.api3.assert_not_called()

    def test_disable_already_disabled_exits_zero(self) -> None:
        runtime = _runtime()
        runtime.ext_local.return_value["rows"][0]["status"] = "disabled"
        with redirect_stdout(StringIO()), self.assertRaises(SystemExit) as ctx:
            ext.change_state(runtime, "disable", "search_kit")
        self.assertEqual(ctx.exception.code, 0)

    def test_uninstall_by_short_name_uses_key(self) -> None:
        runtime = _runtime()
        with redirect_stdout(StringIO()) as out:
            ext.change_state(runtime, "uninstall", "search_kit", extpath="/srv/ext/*")
        runtime.api3.assert_called_once_with(
            "Extension", "uninstall", {"version": 3, "keys": "org.civicrm.search_kit", "path": "/srv/ext/*"}
        )
        self.assertIn("Extension uninstalled.", out.getvalue())

    def test_unknown_extension(self) -> None:
        with self.assertRaises(SystemExit) as ctx:
            ext.change_state(_runtime(), "enable", "nope")
        self.assertEqual(str(ctx.exception), "Could not find Extension: nope.")

    def test_api_error_is_reported(self) -> None:
        runtime = _runtime(api3={"is_error": 1, "error_message": "boom"})
        with redirect_stdout(StringIO()), self.assertRaises(SystemExit) as ctx:
            ext.change_state(runtime, "uninstall", "search_kit")
        self.assertEqual(str(ctx.exception), "Failed to uninstall CiviCRM Extension: boom")

    def test_decline_confirmation(self) -> None:
        configure()
        runtime = _runtime()
        with unittest.mock.patch("civicrmctl.ui_utils.terminal.ask", return_value="n"), redirect_stdout(
            StringIO()
        ), self.assertRaises(SystemExit) as ctx:
            ext.change_state(runtime, "uninstall", "search_kit")
        self.assertEqual(ctx.exception.code, 0)
        runtime.api3.assert_not_called()


class ExtDownloadTests(unittest.TestCase):
    def setUp(self) -> None:
        configure(assume_yes=True)
        self.addCleanup(configure)

    def test_download_remote_without_install(self) -> None:
        runtime = _runtime()
        with redirect_stdout(StringIO()) as out:
            ext.download_cmd(runtime, "mosaico")
        runtime.api3.assert_called_once_with(
            "Extension",
            "download",
            {"version": 3, "key": "uk.co.vedaconsulting.mosaico", "url": "https://ext.example/mosaico.zip", "install": 0},
        )
        self.assertIn("CiviCRM Extension downloaded.", out.getvalue())

    def test_download_explicit_url_and_install(self) -> None:
        runtime = _runtime()
        with redirect_stdout(StringIO()) as out:
            ext.download_cmd(runtime, "com.example.new@https://example.org/new.zip", install=True)
        runtime.api3.assert_called_once_with(
            "Extension", "download", {"version": 3, "key": "com.example.new", "url": "https://example.org/new.zip"}
        )
        self.assertIn("downloaded and installed", out.getvalue())

    def test_local_only_cannot_be_downloaded(self) -> None:
        with self.assertRaises(SystemExit) as ctx:
            ext.download_cmd(_runtime(), "search_kit")
        self.assertEqual(str(ctx.exception), "Could not find a remote Extension to download: search_kit.")


class ExtUpdateDbTests(unittest.TestCase):
    def test_upgrade_alias_and_verbose_result(self) -> None:
        runtime = _runtime(api3={"is_error": 0, "values": True})
        with config_env("{}\n"), unittest.mock.patch(
            "civicrmctl.cli.commands.ext.runtime_from_args", return_value=runtime
        ):
            out = run_cli(["ext", "upgrade-db", "-vv"])
        runtime.api3.assert_called_once_with("Extension", "upgrade", {"version": 3})
        self.assertIn("API success.", out)
        self.assertIn("Database upgrades for Extensions completed.", out)
