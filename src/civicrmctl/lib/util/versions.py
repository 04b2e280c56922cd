"""Version comparison with PHP ``version_compare`` semantics.

CiviCRM versions look like ``5.69.2``, ``5.70.beta1`` or ``5.26.alpha``; the
upgrade code and the release listing order them the way PHP does, so
``5.26.alpha < 5.26.beta1 < 5.26.0``.
"""

from __future__ import annotations

import functools
from collections.abc import Iterable

# Prefix matched against a non-numeric part, in order.
_SPECIAL_FORMS = (
    ("dev", 0),
    ("alpha", 1),
    ("a", 1),
    ("beta", 2),
    ("b", 2),
    ("RC", 3),
    ("rc", 3),
    ("#", 4),
    ("pl", 5),
    ("p", 5),
)

# Order of a numeric part when compared with a named one.
_NUMBER = 4

_OPERATORS = {
    "<": lambda c: c < 0,
    "lt": lambda c: c < 0,
    "<=": lambda c: c <= 0,
    "le": lambda c: c <= 0,
    ">": lambda c: c > 0,
    "gt": lambda c: c > 0,
    ">=": lambda c: c >= 0,
    "ge": lambda c: c >= 0,
    "==": lambda c: c == 0,
    "eq": lambda c: c == 0,
    "!=": lambda c: c != 0,
    "<>": lambda c: c != 0,
    "ne": lambda c: c != 0,
}


def _is_digit(ch: str) -> bool:
    return "0" <= ch <= "9"


def canonicalize(version: str) -> str:
    """Normalize separators and split digit/letter runs with dots.

    ``"5.26-alpha1"`` becomes ``"5.26.alpha.1"``.
    """
    out: list[str] = []
    for ch in version:
        if ch.isascii() and ch.isalnum():
            if out and out[-1] != "." and _is_digit(out[-1]) != _is_digit(ch):
                out.append(".")
            out.append(ch)
        elif out and out[-1] != ".":
            out.append(".")
    return "".join(out)


def _special_order(part: str) -> int:
    for name, order in _SPECIAL_FORMS:
        if part.startswith(name):
            return order
    return -6


def _cmp(a: int, b: int) -> int:
    return (a > b) - (a < b)


def _compare_parts(p1: str, p2: str) -> int:
    d1 = p1.isdigit()
    d2 = p2.isdigit()
    if d1 and d2:
        return _cmp(int(p1), int(p2))
    if not d1 and not d2:
        return _cmp(_special_order(p1), _special_order(p2))
    if d1:
        return _cmp(_NUMBER, _special_order(p2))
    return _cmp(_special_order(p1), _NUMBER)


def compare_versions(v1: str, v2: str) -> int:
    """Return -1, 0 or 1 as *v1* is lower than, equal to or higher than *v2*."""
    if not v1 or not v2:
        if not v1 and not v2:
            return 0
        return -1 if not v1 else 1

    parts1 = [p for p in canonicalize(v1).split(".") if p != ""]
    parts2 = [p for p in canonicalize(v2).split(".") if p != ""]

    for p1, p2 in zip(parts1, parts2):
        result = _compare_parts(p1, p2)
        if result:
            return result

    if len(parts1) > len(parts2):
        rest = parts1[len(parts2)]
        return 1 if rest.isdigit() else _cmp(_special_order(rest), _NUMBER)
    if len(parts2) > len(parts1):
        rest = parts2[len(parts1)]
        return -1 if rest.isdigit() else _cmp(_NUMBER, _special_order(rest))
    return 0


def version_compare(v1: str, v2: str, operator: str | None = None) -> int | bool:
    """PHP ``version_compare``: an int without *operator*, a bool with one."""
    result = compare_versions(v1, v2)
    if operator is None:
        return result
    try:
        return _OPERATORS[operator](result)
    except KeyError:
        raise ValueError(f"Unknown version operator: {operator}") from None


def sort_versions(versions: Iterable[str], reverse: bool = False) -> list[str]:
    return sorted(versions, key=functools.cmp_to_key(compare_versions), reverse=reverse)
