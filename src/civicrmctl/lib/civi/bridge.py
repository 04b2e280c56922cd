# SPDX-FileCopyrightText: 2025-2026 Jiri Vyskocil <jiri@vyskocil.com>
#
# SPDX-License-Identifier: Apache-2.0

"""WP-CLI wrapper and the PHP bridge protocol.

Plain WP-CLI commands (``wp plugin install``, ``wp plugin activate``) run
through :meth:`WpCli.run`/:meth:`WpCli.passthru`. Everything that needs
CiviCRM's PHP API goes through :meth:`WpCli.call`, which executes the bundled
``bridge.php`` with ``wp eval-file`` and decodes the marker-prefixed JSON
envelope it prints.
"""

from __future__ import annotations

import getpass
import json
import re
import shlex
import shutil
import subprocess
import sys
from importlib import resources
from pathlib import Path
from typing import Any

from .._util.ansi import strip_ansi
from ..core.site import Site
from ..util.logging_utils import _log_debug, redact_argv, redact_params

MARKER = "@@CIVICRMCTL@@"

NOISE_PREFIXES = (
    "PHP Warning:",
    "PHP Notice:",
    "PHP Deprecated:",
    "PHP Stack trace:",
    "Warning:",
    "Notice:",
    "Deprecated:",
)
NOISE_PATTERNS = (
    re.compile(r"^#\d+\s"),  # stack frames
    re.compile(r"^PHP\s+\d+\.\s"),  # numbered stack frames
)


def bridge_script() -> Path:
    return Path(str(resources.files("civicrmctl") / "resources" / "php" / "bridge.php"))


def clean_output(text: str) -> list[str]:
    """Strip ANSI codes and drop PHP notice/warning/stack lines."""
    out: list[str] = []
    for line in strip_ansi(text or "").splitlines():
        line = line.strip()
        if not line:
            continue
        if line.startswith(NOISE_PREFIXES):
            continue
        if any(p.search(line) for p in NOISE_PATTERNS):
            continue
        out.append(line)
    return out


def split_bridge_output(stdout: str) -> tuple[str | None, list[str]]:
    """Return the last envelope line (without marker) and the other stdout lines."""
    envelope = None
    other: list[str] = []
    for line in (stdout or "").splitlines():
        idx = line.find(MARKER)
        if idx != -1:
            if idx > 0 and line[:idx].strip():
                other.append(line[:idx])
            envelope = line[idx + len(MARKER) :]
        elif line.strip():
            other.append(line)
    return envelope, other


def parse_bridge_output(stdout: str, stderr: str = "", returncode: int = 0) -> Any:
    """Decode the bridge envelope from a finished ``wp eval-file`` run.

    Raises SystemExit with the bridge's error, or with the cleaned WP-CLI
    stderr when no envelope was printed (WordPress failed to load, wrong
    path, PHP fatal error, ...).
    """
    envelope, _ = split_bridge_output(stdout)
    if envelope is None:
        lines = clean_output(stderr) or clean_output(stdout)
        if lines:
            message = "\n".join(lines)
            if message.startswith("Error: "):
                message = message[len("Error: ") :]
            raise SystemExit(message)
        raise SystemExit(f"WP-CLI exited with code {returncode} without a result")

    try:
        data = json.loads(envelope)
    except json.JSONDecodeError as e:
        raise SystemExit(f"Failed to decode JSON: {e.msg}.") from None
    if not isinstance(data, dict):
        raise SystemExit("Failed to decode JSON: unexpected bridge response.")
    if not data.get("ok"):
        raise SystemExit(str(data.get("error") or "CiviCRM bridge call failed"))
    return data.get("result")


class WpCli:
    """Runs WP-CLI against one WordPress install."""

    def __init__(self, site: Site, *, binary: str = "wp", user: str | None = None) -> None:
        self.site = site
        self.binary = binary
        self.user = user

    def argv(self, *args: str) -> list[str]:
        argv: list[str] = []
        if self.user and self.user != getpass.getuser():
            argv += ["sudo", "-u", self.user]
        argv += [self.binary, f"--path={self.site.root}"]
        if self.site.url:
            argv.append(f"--url={self.site.url}")
        argv.extend(args)
        return argv

    def _check_binary(self) -> None:
        if shutil.which(self.binary) is None:
            raise SystemExit(f"WP-CLI not found ({self.binary}); install it or set wp.binary")

    def run(self, *args: str, input: str | None = None) -> subprocess.CompletedProcess:
        """Run ``wp <args>`` and capture its output; *input* is fed to stdin."""
        self._check_binary()
        argv = self.argv(*args)
        _log_debug(f"wp: {shlex.join(redact_argv(argv))}")
        return subprocess.run(argv, input=input, capture_output=True, text=True, check=False)

    def passthru(self, *args: str) -> None:
        """Run ``wp <args>`` with inherited stdio; a failure exits with its code."""
        self._check_binary()
        argv = self.argv(*args)
        _log_debug(f"wp: {shlex.join(redact_argv(argv))}")
        result = subprocess.run(argv, check=False)
        if result.returncode != 0:
            raise SystemExit(result.returncode)

    @staticmethod
    def _payload(action: str, params: dict[str, Any]) -> str:
        _log_debug(f"wp: {action} payload: {json.dumps(redact_params(params))}")
        return json.dumps({"action": action, "params": params})

    def call(self, action: str, *, echo: bool = False, **params: Any) -> Any:
        """Run one bridge *action* and return its result.

        With *echo*, output printed by CiviCRM during the action (task logs)
        is relayed to stdout.
        """
        # Sent on stdin so credentials never show up in the process list.
        payload = self._payload(action, params)
        result = self.run("eval-file", str(bridge_script()), input=payload)
        envelope, other = split_bridge_output(result.stdout)
        if other:
            _log_debug(f"wp: {action}: {len(other)} extra output line(s)")
            if echo:
                for line in other:
                    print(line)
        if result.returncode != 0 and envelope is None:
            _log_debug(f"wp: {action} failed with exit code {result.returncode}")
        return parse_bridge_output(result.stdout, result.stderr, result.returncode)

    def stream(self, action: str, **params: Any) -> int:
        """Run a bridge action that owns stdin/stdout (the JSON-RPC pipe)."""
        self._check_binary()
        argv = self.argv("eval-file", str(bridge_script()))
        _log_debug(f"wp: {shlex.join(redact_argv(argv))} <payload>")
        argv.append(self._payload(action, params))
        return subprocess.run(argv, stdin=sys.stdin, stdout=sys.stdout, check=False).returncode
