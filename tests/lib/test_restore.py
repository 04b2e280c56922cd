"""Tests for restoring a CiviCRM codebase and database."""

import tempfile
import unittest
import unittest.mock
from contextlib import redirect_stdout
from io import StringIO
from pathlib import Path

from civicrmctl.lib.civi.restore import default_backup_dir, restore, validate_restore_dir
from civicrmctl.ui_utils.terminal import configure
from test_utils import mock_runtime, write_site


def _write_restore_dir(base: Path) -> Path:
    restore_dir = base / "restore"
    core = restore_dir / "civicrm" / "civicrm"
    core.mkdir(parents=True)
    (core / "civicrm-version.php").write_text("<?php\n", encoding="utf-8")
    (restore_dir / "civicrm" / "civicrm.php").write_text("<?php // restored\n", encoding="utf-8")
    (restore_dir / "civicrm.sql").write_text("CREATE TABLE civicrm_x (id int);\n", encoding="utf-8")
    return restore_dir


class ValidateRestoreDirTests(unittest.TestCase):
    def test_missing_argument(self) -> None:
        for value in (None, "", "/"):
            with self.subTest(value=value):
                with self.assertRaises(SystemExit) as ctx:
                    validate_restore_dir(value)
                self.assertEqual(str(ctx.exception), '"restore-dir" not specified.')

    def test_missing_pieces(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            base = Path(td)
            with self.assertRaises(SystemExit) as ctx:
                validate_restore_dir(base)
            self.assertIn('"civicrm.sql"', str(ctx.exception))

            (base / "civicrm.sql").write_text("", encoding="utf-8")
            with self.assertRaises(SystemExit) as ctx:
                validate_restore_dir(base)
            self.assertIn("Could not locate the CiviCRM directory", str(ctx.exception))

            (base / "civicrm" / "civicrm").mkdir(parents=True)
            with self.assertRaises(SystemExit) as ctx:
                validate_restore_dir(f"{base}/")
            self.assertIn("does not seem to be a valid CiviCRM codebase", str(ctx.exception))

            (base / "civicrm" / "civicrm" / "civicrm-version.txt").write_text("5.80.0", encoding="utf-8")
            self.assertEqual(validate_restore_dir(base), (base / "civicrm", base / "civicrm.sql"))


class RestoreTests(unittest.TestCase):
    def setUp(self) -> None:
        configure(assume_yes=True)
        self.addCleanup(configure)

    def test_full_restore(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            base = Path(td)
            site = write_site(base / "www")
            (site.plugin_dir / "old.txt").write_text("old", encoding="utf-8")
            restore_dir = _write_restore_dir(base)
            runtime = mock_runtime(site)
            mysql = runtime.mysql.return_value
            mysql.database = "civicrm"

            buffer = StringIO()
            with redirect_stdout(buffer):
                target = restore(runtime, restore_dir, base / "backups")

            self.assertEqual(target.parent, base / "backups" / "plugins" / "restore")
            self.assertEqual((target / "civicrm" / "old.txt").read_text(encoding="utf-8"), "old")
            self.assertIn("restored", (site.plugin_dir / "civicrm.php").read_text(encoding="utf-8"))
            self.assertFalse((restore_dir / "civicrm").exists())

        mysql.dump.assert_called_once_with(result_file=target / "civicrm.sql")
        mysql.drop_database.assert_called_once_with()
        mysql.create_database.assert_called_once_with()
        mysql.import_file.assert_called_once_with(restore_dir / "civicrm.sql")
        runtime.cache_clear.assert_called_once_with()
        out = buffer.getvalue()
        self.assertIn("2. Dropping and creating 'civicrm' database.", out)
        self.assertIn("Restore process completed.", out)
        self.assertLess(out.index("Codebase restored."), out.index("Database backed up."))
        self.assertLess(out.index("Database dropped."), out.index("Database created."))

    def test_declined(self) -> None:
        configure(assume_yes=False)
        with tempfile.TemporaryDirectory() as td:
            base = Path(td)
            site = write_site(base / "www")
            runtime = mock_runtime(site)
            with unittest.mock.patch("civicrmctl.ui_utils.terminal.ask", return_value="n"):
                with redirect_stdout(StringIO()), self.assertRaises(SystemExit) as ctx:
                    restore(runtime, _write_restore_dir(base))
            self.assertTrue((site.plugin_dir / "civicrm.php").is_file())
        self.assertEqual(ctx.exception.code, 0)
        runtime.mysql.return_value.drop_database.assert_not_called()

    def test_default_backup_dir(self) -> None:
        runtime = mock_runtime()
        self.assertEqual(default_backup_dir(runtime), Path("/srv/www/../backup"))
