"""Tests for gzip/tar/unzip/zip wrappers."""

import tempfile
import unittest
import unittest.mock
from pathlib import Path

from civicrmctl.lib.util.archive import untar, unzip, zip_directory, zip_error_message
from test_utils import completed


@unittest.mock.patch("civicrmctl.lib.util.archive.shutil.which", return_value="/usr/bin/tool")
class ArchiveTests(unittest.TestCase):
    def test_untar_decompresses_then_extracts(self, _which) -> None:
        with unittest.mock.patch(
            "civicrmctl.lib.util.archive.subprocess.run", return_value=completed()
        ) as run:
            tarball = untar("/tmp/civicrm-l10n.tar.gz", "/srv/plugin")
        self.assertEqual(tarball, Path("/tmp/civicrm-l10n.tar"))
        calls = [c.args[0] for c in run.call_args_list]
        self.assertEqual(
            calls,
            [
                ["gzip", "-d", "/tmp/civicrm-l10n.tar.gz"],
                ["tar", "-xf", "/tmp/civicrm-l10n.tar", "-C", "/srv/plugin"],
            ],
        )

    def test_gzip_failure(self, _which) -> None:
        failed = completed(stderr="gzip: x.tar.gz: not in gzip format\n", returncode=1)
        with unittest.mock.patch("civicrmctl.lib.util.archive.subprocess.run", return_value=failed):
            with self.assertRaises(SystemExit) as ctx:
                untar("x.tar.gz", "/dest")
        self.assertEqual(
            str(ctx.exception), "Failed to extract gz archive: gzip: x.tar.gz: not in gzip format (1)."
        )

    def test_tar_failure_without_stderr(self, _which) -> None:
        results = [completed(), completed(returncode=2)]
        with unittest.mock.patch(
            "civicrmctl.lib.util.archive.subprocess.run", side_effect=results
        ):
            with self.assertRaises(SystemExit) as ctx:
                untar("x.tar.gz", "/dest")
        self.assertEqual(str(ctx.exception), "Failed to extract tarball: 2.")

    def test_unzip_error_uses_documented_message(self, _which) -> None:
        with unittest.mock.patch(
            "civicrmctl.lib.util.archive.subprocess.run", return_value=completed(returncode=9)
        ) as run:
            with self.assertRaises(SystemExit) as ctx:
                unzip("civicrm.zip", "/plugins")
        self.assertEqual(
            str(ctx.exception),
            "Failed to extract zip archive: The specified zipfiles were not found. (9).",
        )
        self.assertEqual(run.call_args.args[0], ["unzip", "-q", "civicrm.zip", "-d", "/plugins"])

    def test_zip_directory_runs_in_parent(self, _which) -> None:
        with tempfile.TemporaryDirectory() as td:
            source = Path(td) / "plugins" / "civicrm"
            source.mkdir(parents=True)
            archive = Path(td) / "backup" / "civicrm.zip"
            with unittest.mock.patch(
                "civicrmctl.lib.util.archive.subprocess.run", return_value=completed()
            ) as run:
                result = zip_directory(source, archive)
            self.assertEqual(result, archive.resolve())
            self.assertTrue(archive.parent.is_dir())
            self.assertEqual(run.call_args.args[0], ["zip", "-qr", str(archive.resolve()), "civicrm"])
            self.assertEqual(run.call_args.kwargs["cwd"], str(source.parent))


class ArchiveHelpersTests(unittest.TestCase):
    def test_unknown_zip_code(self) -> None:
        self.assertEqual(zip_error_message(99), "99")

    def test_missing_tool(self) -> None:
        with unittest.mock.patch("civicrmctl.lib.util.archive.shutil.which", return_value=None):
            with self.assertRaises(SystemExit) as ctx:
                unzip("a.zip", "/d")
        self.assertEqual(str(ctx.exception), "unzip not found; please install it")
