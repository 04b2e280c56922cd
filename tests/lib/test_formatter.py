"""Tests for table/JSON/CSV/YAML output."""

import json
import unittest
from io import StringIO

import yaml

from civicrmctl.ui_utils.formatter import cell, display_item, display_items, pretty

ROWS = [
    {"Key": "org.civicrm.afform", "Status": "installed", "Extra": "x"},
    {"Key": "mosaico", "Status": None},
]


class CellTests(unittest.TestCase):
    def test_cell_values(self) -> None:
        self.assertEqual(cell(None), "")
        self.assertEqual(cell(True), "true")
        self.assertEqual(cell(False), "false")
        self.assertEqual(cell({"a": 1}), '{"a": 1}')
        self.assertEqual(cell(3), "3")

    def test_pretty_is_indented_json(self) -> None:
        self.assertEqual(pretty({"a": [1]}), '{\n  "a": [\n    1\n  ]\n}')


class DisplayItemsTests(unittest.TestCase):
    def _render(self, fmt: str) -> str:
        out = StringIO()
        display_items(ROWS, ["Key", "Status"], fmt, out=out)
        return out.getvalue()

    def test_json_projects_fields(self) -> None:
        self.assertEqual(
            json.loads(self._render("json")),
            [{"Key": "org.civicrm.afform", "Status": "installed"}, {"Key": "mosaico", "Status": None}],
        )

    def test_csv(self) -> None:
        self.assertEqual(
            self._render("csv"), "Key,Status\norg.civicrm.afform,installed\nmosaico,\n"
        )

    def test_yaml(self) -> None:
        self.assertEqual(yaml.safe_load(self._render("yaml"))[0]["Key"], "org.civicrm.afform")

    def test_count(self) -> None:
        self.assertEqual(self._render("count"), "2\n")

    def test_table(self) -> None:
        text = self._render("table")
        self.assertIn("Key", text)
        self.assertIn("org.civicrm.afform", text)
        self.assertIn("+", text)
        self.assertNotIn("Extra", text)

    def test_invalid_format(self) -> None:
        with self.assertRaises(SystemExit) as ctx:
            self._render("xml")
        self.assertEqual(str(ctx.exception), "Invalid format: xml")


class DisplayItemTests(unittest.TestCase):
    def test_table_field_value_rows(self) -> None:
        out = StringIO()
        display_item({"Database": "civicrm", "Host": "localhost"}, fmt="table", out=out)
        text = out.getvalue()
        self.assertIn("Field", text)
        self.assertIn("Value", text)
        self.assertIn("civicrm", text)

    def test_fields_filter(self) -> None:
        out = StringIO()
        display_item({"a": 1, "b": 2}, ["b", "missing"], fmt="json", out=out)
        self.assertEqual(json.loads(out.getvalue()), {"b": 2})

    def test_csv(self) -> None:
        out = StringIO()
        display_item({"a": True}, fmt="csv", out=out)
        self.assertEqual(out.getvalue(), "Field,Value\na,true\n")
