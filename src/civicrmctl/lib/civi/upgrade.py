# SPDX-FileCopyrightText: 2025-2026 Jiri Vyskocil <jiri@vyskocil.com>
#
# SPDX-License-Identifier: Apache-2.0

"""CiviCRM database upgrade runner.

CiviCRM persists its upgrade plan as an SQL queue. The runner asks the site
to build (or reload) that queue and then works through it one task per WP-CLI
call, so an interrupted upgrade can be resumed with ``--retry`` or have its
failing task dropped with ``--skip``.
"""

from __future__ import annotations

import sys
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any

from ...ui_utils.terminal import ask, confirm, green, log, success, supports_color, yellow
from ..util.logging_utils import _log_debug
from ..util.versions import version_compare
from .runtime import CiviRuntime

INCOMPLETE_UPGRADE_ERROR = (
    "Cannot begin upgrade: The database indicates that an incomplete upgrade is pending. "
    "If you would like to resume, use --retry or --skip."
)

# Releases before this leave stale caches behind after an upgrade (dev/core#1713).
FORCE_FLUSH_BELOW = "5.26.alpha"


def implode_recursive(values: Iterable[Any], top: bool = True) -> str:
    """Join *values* with commas; nested sequences are bracketed."""
    parts = []
    for value in values:
        if isinstance(value, (list, tuple)):
            parts.append(implode_recursive(value, top=False))
        elif isinstance(value, dict):
            parts.append(implode_recursive(value.values(), top=False))
        elif value is None:
            parts.append("")
        elif value is True:
            parts.append("1")
        elif value is False:
            parts.append("")
        else:
            parts.append(str(value))
    joined = ",".join(parts)
    return joined if top else f"[{joined}]"


def format_task_callback(callback: Any, arguments: Any) -> str:
    """Render a queued task as ``Class::method(arg1,arg2,[a,b])``."""
    if isinstance(callback, (list, tuple)):
        name = "::".join(str(c) for c in callback)
    else:
        name = str(callback)
    if isinstance(arguments, dict):
        arguments = list(arguments.values())
    return f"{name}({implode_recursive(arguments or [])})"


@dataclass
class UpgradeOptions:
    dry_run: bool = False
    retry: bool = False
    skip: bool = False
    step: bool = False
    verbosity: int = 0

    @property
    def first_try(self) -> bool:
        return not self.retry and not self.skip


class UpgradeRunner:
    """Drive the CiviCRM upgrade queue for one site."""

    def __init__(
        self,
        runtime: CiviRuntime,
        options: UpgradeOptions,
        *,
        prompt: Callable[[str], str] = ask,
    ) -> None:
        self.runtime = runtime
        self.options = options
        self.prompt = prompt
        self.verbosity = options.verbosity
        # Stepping needs to show what is about to run.
        if options.step and self.verbosity < 1:
            self.verbosity = 1
        self._color = supports_color()

    def _g(self, text: str) -> str:
        return green(text, self._color)

    def _y(self, text: str) -> str:
        return yellow(text, self._color)

    def run(self) -> None:
        opts = self.options
        versions = self.runtime.versions()
        code_version = str(versions.get("plugin") or "")
        db_version = str(versions.get("db") or "")
        log(f"{self._g('Found CiviCRM code version:')} {self._y(code_version)}")
        log(f"{self._g('Found CiviCRM database version:')} {self._y(db_version)}")
        if version_compare(code_version, db_version) == 0:
            success(f"You are already upgraded to CiviCRM {code_version}")
            return

        if opts.first_try and "upgrade" in db_version.lower():
            raise SystemExit(INCOMPLETE_UPGRADE_ERROR)

        check = self.runtime.upgrade_check(pre_messages=opts.first_try)
        if check.get("error"):
            raise SystemExit(str(check["error"]))

        if opts.first_try:
            log(self._g("Checking pre-upgrade messages."))
            if check.get("message"):
                log(check["message"])
                confirm("Do you want to continue?")
            else:
                log("(No messages)")
            log(self._g("Dropping SQL triggers."))
            log(self._g("Preparing upgrade."))
            queue = self.runtime.upgrade_prepare(dry_run=opts.dry_run)
        else:
            log(self._g("Resuming upgrade."))
            queue = self.runtime.upgrade_resume()
            if opts.skip:
                title = self.runtime.upgrade_skip(titled_only=True)
                if title:
                    log(f"Skip task: {title}")

        message_file = queue.get("message_file")
        _log_debug(f"upgrade: {queue.get('count', 0)} queued task(s), messages in {message_file}")

        log(self._g("Executing upgrade."))
        self._run_queue()

        log(self._g("Finishing upgrade."))
        if not opts.dry_run:
            self.runtime.upgrade_finish()
        success(f"Upgrade to {code_version} completed.")

        if version_compare(code_version, FORCE_FLUSH_BELOW, "<"):
            log(self._g("Detected CiviCRM 5.25 or earlier. Force flush."))
            if not opts.dry_run:
                self.runtime.flush()

        log(self._g("Checking post-upgrade messages."))
        message = self.runtime.upgrade_messages(message_file)
        log(message if message else "(No messages)")
        log("Have a nice day.")

    def _announce(self, task: dict[str, Any]) -> None:
        title = str(task.get("title") or "")
        if self.verbosity >= 2:
            feedback = format_task_callback(task.get("callback"), task.get("arguments"))
            log(f"{self._g(title)} {feedback}")
        elif self.verbosity == 1:
            log(self._g(title))
        else:
            sys.stdout.write(".")
            sys.stdout.flush()

    def _run_queue(self) -> None:
        opts = self.options
        while True:
            task = self.runtime.upgrade_peek()
            if not task.get("count"):
                break
            self._announce(task)

            action = "y"
            if opts.step:
                action = self.prompt("Execute this step? [ y=yes / s=skip / a=abort ]")
            if action == "a":
                raise SystemExit(1)

            if action == "y":
                self.runtime.upgrade_run(dry_run=opts.dry_run, verbose=self.verbosity > 0)
            else:
                self.runtime.upgrade_skip()

        if self.verbosity == 0:
            sys.stdout.write("\n")
            sys.stdout.flush()
