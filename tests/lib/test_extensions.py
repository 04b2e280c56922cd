"""Tests for extension listing helpers."""

import unittest

from civicrmctl.lib.civi import extensions
from test_utils import mock_runtime

LOCAL = {
    "location": "local",
    "key": "org.civicrm.afform",
    "name": "afform",
    "version": "5.80.0",
    "label": "FormBuilder",
    "status": "installed",
    "type": "module",
    "path": "/srv/www/wp-content/plugins/civicrm/civicrm/ext/afform",
}
REMOTE = {
    "location": "remote",
    "key": "uk.co.vedaconsulting.mosaico",
    "name": "mosaico",
    "version": "3.5",
    "label": "Mosaico",
    "status": "",
    "type": "module",
    "path": "",
    "downloadUrl": "https://download.civicrm.org/mosaico.zip",
}


def _runtime(**kwargs):
    returns = {
        "ext_local": {"rows": [dict(LOCAL)], "warnings": []},
        "ext_remote": {"rows": [dict(REMOTE)], "warnings": ["Failed to read extension list"]},
    }
    returns.update(kwargs)
    return mock_runtime(**returns)


class SelectFieldsTests(unittest.TestCase):
    def test_defaults(self) -> None:
        keys, unknown = extensions.select_fields(None, remote=False)
        self.assertEqual(keys, list(extensions.FIELD_MAP))
        self.assertEqual(unknown, [])
        keys, _ = extensions.select_fields("", remote=True)
        self.assertEqual(keys[-1], "downloadUrl")

    def test_case_insensitive_and_unknown(self) -> None:
        keys, unknown = extensions.select_fields("Key, STATUS,downloadurl,bogus,key", remote=True)
        self.assertEqual(keys, ["key", "status", "downloadUrl"])
        self.assertEqual(unknown, ["bogus"])

    def test_download_url_only_for_remote(self) -> None:
        keys, unknown = extensions.select_fields("downloadUrl", remote=False)
        self.assertEqual(keys, [])
        self.assertEqual(unknown, ["downloadurl"])


class DisplayRowsTests(unittest.TestCase):
    def test_human_formats_use_headings(self) -> None:
        rows, fields = extensions.display_rows([REMOTE], ["key", "downloadUrl"], "table")
        self.assertEqual(fields, ["Key", "Download URL"])
        self.assertEqual(rows, [{"Key": REMOTE["key"], "Download URL": REMOTE["downloadUrl"]}])

    def test_machine_formats_keep_keys(self) -> None:
        rows, fields = extensions.display_rows([LOCAL], ["key", "status"], "json")
        self.assertEqual(fields, ["key", "status"])
        self.assertEqual(rows, [{"key": LOCAL["key"], "status": "installed"}])


class ListExtensionsTests(unittest.TestCase):
    def test_both_sources(self) -> None:
        rows, warnings = extensions.list_extensions(_runtime())
        self.assertEqual([r["location"] for r in rows], ["local", "remote"])
        self.assertEqual(warnings, ["Failed to read extension list"])

    def test_local_only_drops_download_url(self) -> None:
        runtime = _runtime(ext_local={"rows": [dict(LOCAL, downloadUrl="x")], "warnings": []})
        rows, warnings = extensions.list_extensions(runtime, local=True, remote=False)
        self.assertNotIn("downloadUrl", rows[0])
        self.assertEqual(warnings, [])
        runtime.ext_remote.assert_not_called()

    def test_lookup_by_key_or_name(self) -> None:
        runtime = _runtime()
        self.assertEqual(extensions.lookup(runtime, "afform")[0]["key"], "org.civicrm.afform")
        self.assertEqual(extensions.lookup(runtime, "org.civicrm.afform")[0]["name"], "afform")
        with self.assertRaises(SystemExit) as ctx:
            extensions.lookup(runtime, "mosaico")
        self.assertEqual(str(ctx.exception), "Could not find Extension: mosaico.")


class CallApiTests(unittest.TestCase):
    def test_success(self) -> None:
        runtime = mock_runtime(api3={"is_error": 0, "values": True})
        result = extensions.call_api(runtime, "enable", {"keys": "afform"}, "Failed to enable CiviCRM Extension")
        self.assertEqual(result["values"], True)
        runtime.api3.assert_called_once_with("Extension", "enable", {"version": 3, "keys": "afform"})

    def test_error(self) -> None:
        runtime = mock_runtime(api3={"is_error": 1, "error_message": "Unknown extension"})
        with self.assertRaises(SystemExit) as ctx:
            extensions.call_api(runtime, "enable", {}, "Failed to enable CiviCRM Extension")
        self.assertEqual(str(ctx.exception), "Failed to enable CiviCRM Extension: Unknown extension")
