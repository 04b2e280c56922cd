"""Layered YAML configuration for civicrmctl.

Two layers are stacked today, lowest priority first:

- **global**: ``config.yml`` from the user/system config search path
- **site**: ``.civicrmctl.yml`` in the WordPress root

Merging rules (``deep_merge``):

- dicts merge recursively; ``_inherit: true`` in an override dict is accepted
  and stripped
- ``None`` in an override removes the key
- lists replace the base list unless they contain ``"_inherit"``, which is
  replaced by the base list items
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import yaml

_INHERIT = "_inherit"


def deep_merge(base: dict, override: dict) -> dict:
    """Return a new dict with *override* merged on top of *base*."""
    merged: dict = {k: v for k, v in base.items() if k not in override}
    for key, ov in override.items():
        if ov is None:
            continue
        bv = base.get(key)
        if isinstance(ov, dict) and isinstance(bv, dict):
            cleaned = {k: v for k, v in ov.items() if k != _INHERIT}
            merged[key] = deep_merge(bv, cleaned)
        elif isinstance(ov, list) and isinstance(bv, list):
            merged[key] = _splice(bv, ov)
        elif isinstance(ov, dict):
            merged[key] = {k: v for k, v in ov.items() if k != _INHERIT}
        else:
            merged[key] = ov
    return merged


def _splice(base: list, override: list) -> list:
    if _INHERIT not in override:
        return list(override)
    result: list = []
    for item in override:
        if item == _INHERIT:
            result.extend(base)
        else:
            result.append(item)
    return result


@dataclass(frozen=True)
class ConfigScope:
    """One config layer and the file it was read from."""

    level: str
    source: Path | None
    data: dict


class ConfigStack:
    """Config scopes in priority order (last pushed wins)."""

    def __init__(self) -> None:
        self._scopes: list[ConfigScope] = []

    def push(self, scope: ConfigScope) -> None:
        self._scopes.append(scope)

    def resolve(self) -> dict:
        result: dict = {}
        for scope in self._scopes:
            result = deep_merge(result, scope.data)
        return result

    @property
    def scopes(self) -> list[ConfigScope]:
        return list(self._scopes)


def load_yaml_scope(level: str, path: Path) -> ConfigScope:
    """Read *path* into a scope; a missing file yields an empty scope."""
    data: dict = {}
    if path.is_file():
        loaded = yaml.safe_load(path.read_text(encoding="utf-8"))
        if isinstance(loaded, dict):
            data = loaded
    return ConfigScope(level=level, source=path, data=data)
