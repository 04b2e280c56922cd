"""Utility functions for logging."""

import re
from typing import Any

_SECRET_FLAGS = ("--password", "--pass", "--dbpass")
_SECRET_ARG_RE = re.compile(r"^(--password=|--pass=|--dbpass=)(.*)$")
_SECRET_KEY_RE = re.compile(r"(pass|passwd|password|secret|dsn)$", re.IGNORECASE)


def redact_argv(argv: list[str]) -> list[str]:
    """Replace password values in *argv* with ``***`` for display and logs.

    Both ``--dbpass=value`` and ``--dbpass value`` are masked.
    """
    out: list[str] = []
    mask_next = False
    for arg in argv:
        if mask_next:
            out.append("***")
            mask_next = False
            continue
        if arg in _SECRET_FLAGS:
            mask_next = True
            out.append(arg)
            continue
        out.append(_SECRET_ARG_RE.sub(r"\1***", arg))
    return out


def redact_params(value: Any) -> Any:
    """Copy of *value* with secret-looking mapping keys masked as ``***``."""
    if isinstance(value, dict):
        return {
            k: "***" if isinstance(k, str) and _SECRET_KEY_RE.search(k) and v else redact_params(v)
            for k, v in value.items()
        }
    if isinstance(value, (list, tuple)):
        return [redact_params(v) for v in value]
    return value


def _log_debug(message: str) -> None:
    """Append a timestamped line to ``state_root()/civicrmctl.log``.

    Best-effort: IO errors are ignored so logging never changes the outcome
    of a command.
    """
    try:
        import time

        from ..core.config import log_file_path

        log_path = log_file_path()
        log_path.parent.mkdir(parents=True, exist_ok=True)
        timestamp = time.strftime("%Y-%m-%d %H:%M:%S", time.localtime())
        with open(log_path, "a", encoding="utf-8") as f:
            f.write(f"[{timestamp}] {message}\n")
    except Exception:
        pass
