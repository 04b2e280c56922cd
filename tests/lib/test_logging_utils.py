"""Tests for secret masking in the debug log."""

import unittest
import unittest.mock

from civicrmctl.lib.util.logging_utils import _log_debug, redact_argv, redact_params
from test_utils import config_env, run_cli


class RedactArgvTests(unittest.TestCase):
    def test_inline_values_masked(self) -> None:
        self.assertEqual(
            redact_argv(["mysql", "--password=s3cret", "--pass=x", "--dbpass=y", "--user=civi"]),
            ["mysql", "--password=***", "--pass=***", "--dbpass=***", "--user=civi"],
        )

    def test_separate_values_masked(self) -> None:
        self.assertEqual(
            redact_argv(["--dbpass", "s3cret", "--pass", "x", "--password", "y", "civicrm"]),
            ["--dbpass", "***", "--pass", "***", "--password", "***", "civicrm"],
        )

    def test_trailing_flag_without_value(self) -> None:
        self.assertEqual(redact_argv(["--dbuser", "civi", "--dbpass"]), ["--dbuser", "civi", "--dbpass"])


class RedactParamsTests(unittest.TestCase):
    def test_nested_secret_keys_masked(self) -> None:
        params = {
            "dsn": "mysql://civi:s3cret@h/civicrm",
            "db": {"username": "civi", "password": "s3cret", "db_pass": "x"},
            "rows": [{"smtpPassword": "y", "name": "n"}],
            "title": "Upgrade",
        }
        self.assertEqual(
            redact_params(params),
            {
                "dsn": "***",
                "db": {"username": "civi", "password": "***", "db_pass": "***"},
                "rows": [{"smtpPassword": "***", "name": "n"}],
                "title": "Upgrade",
            },
        )
        self.assertEqual(params["db"]["password"], "s3cret")

    def test_empty_secret_left_alone(self) -> None:
        self.assertEqual(redact_params({"password": ""}), {"password": ""})


class DebugLogTests(unittest.TestCase):
    def test_written_to_state_dir(self) -> None:
        with config_env() as env:
            _log_debug("hello")
            text = (env.state_dir / "civicrmctl.log").read_text(encoding="utf-8")
        self.assertTrue(text.rstrip().endswith("] hello"))

    def test_command_line_password_never_logged(self) -> None:
        for argv in (
            ["core", "activate", "--dbuser", "civi", "--dbpass", "s3cret"],
            ["core", "activate", "--dbuser", "civi", "--dbpass=s3cret"],
        ):
            with self.subTest(argv=argv), config_env() as env:
                with unittest.mock.patch(
                    "civicrmctl.cli.commands.core.runtime_from_args",
                    side_effect=SystemExit("no site"),
                ):
                    with self.assertRaises(SystemExit):
                        run_cli(argv)
                text = (env.state_dir / "civicrmctl.log").read_text(encoding="utf-8")
                self.assertIn("core activate", text)
                self.assertIn("--dbpass", text)
                self.assertNotIn("s3cret", text)
