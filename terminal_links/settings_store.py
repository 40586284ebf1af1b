from __future__ import annotations

import json
from copy import deepcopy
from pathlib import Path
from typing import Any, Mapping

from terminal_links.settings_models import SettingsScope


def deep_merge_defaults(data: Mapping[str, Any], defaults: Mapping[str, Any]) -> dict[str, Any]:
    """Merge defaults into data without overwriting explicitly provided values."""
    merged = deepcopy(dict(data))
    for key, default_value in defaults.items():
        if key not in merged:
            merged[key] = deepcopy(default_value)
            continue
        current = merged[key]
        if isinstance(current, dict) and isinstance(default_value, dict):
            merged[key] = deep_merge_defaults(current, default_value)
    return merged


def dot_get(data: Mapping[str, Any], key: str, default: Any = None) -> Any:
    if not key:
        return data
    current: Any = data
    for part in key.split("."):
        if not isinstance(current, Mapping) or part not in current:
            return default
        current = current[part]
    return current


def dot_set(data: dict[str, Any], key: str, value: Any) -> None:
    if not key:
        raise ValueError("Key cannot be empty.")
    current: dict[str, Any] = data
    parts = key.split(".")
    for part in parts[:-1]:
        next_value = current.get(part)
        if not isinstance(next_value, dict):
            next_value = {}
            current[part] = next_value
        current = next_value
    current[parts[-1]] = value


def changed_keys(before: Mapping[str, Any], after: Mapping[str, Any], prefix: str = "") -> set[str]:
    """Return dotted keys whose values differ between two settings trees.

    Nested mappings are walked so that a change to ``a.b.c`` reports
    ``a.b.c`` rather than just ``a``.
    """
    keys: set[str] = set()
    for key in set(before) | set(after):
        dotted = f"{prefix}.{key}" if prefix else str(key)
        old = before.get(key)
        new = after.get(key)
        old_tree = old if isinstance(old, Mapping) else ({} if key not in before else None)
        new_tree = new if isinstance(new, Mapping) else ({} if key not in after else None)
        if old_tree is not None and new_tree is not None:
            keys |= changed_keys(old_tree, new_tree, dotted)
        elif old != new or (key in before) != (key in after):
            keys.add(dotted)
    return keys


class JsonSettingsStore:
    """Read-only view of a JSON settings file, with defaults and in-memory overrides.

    ``set`` changes only the loaded data; the next ``load`` replaces it with
    what is on disk.
    """

    def __init__(self, path: Path, defaults: Mapping[str, Any]) -> None:
        self.path = Path(path)
        self.defaults: dict[str, Any] = deepcopy(dict(defaults))
        self.data: dict[str, Any] = {}
        self.last_error: str | None = None

    def load(self) -> dict[str, Any]:
        previous_data = deepcopy(self.data) if isinstance(self.data, dict) else {}
        missing = not self.path.exists()
        loaded: dict[str, Any] = {}
        load_failed = False
        self.last_error = None

        if not missing:
            try:
                raw = json.loads(self.path.read_text(encoding="utf-8"))
                if isinstance(raw, dict):
                    loaded = raw
                else:
                    load_failed = True
                    self.last_error = (
                        f"Settings root in '{self.path}' must be a JSON object, "
                        f"found {type(raw).__name__}."
                    )
            except (OSError, ValueError) as exc:
                # Keep the previous values.
                load_failed = True
                self.last_error = str(exc)

        if load_failed:
            self.data = deep_merge_defaults(previous_data, self.defaults)
            return self.data

        self.data = deep_merge_defaults(loaded, self.defaults)
        return self.data

    def get(self, key: str, default: Any = None) -> Any:
        return dot_get(self.data, key, default)

    def set(self, key: str, value: Any) -> bool:
        current = self.get(key)
        if current == value:
            return False
        dot_set(self.data, key, value)
        return True

    def snapshot(self) -> dict[str, Any]:
        return deepcopy(self.data)


class ScopedSettingsStores:
    """Utility wrapper around both workspace and user JSON stores."""

    def __init__(self, stores: Mapping[SettingsScope, JsonSettingsStore]) -> None:
        self._stores: dict[SettingsScope, JsonSettingsStore] = dict(stores)
        missing = {"workspace", "user"} - set(self._stores)
        if missing:
            missing_scopes = ", ".join(sorted(missing))
            raise ValueError(f"Missing stores for scopes: {missing_scopes}")

    def store_for(self, scope: SettingsScope) -> JsonSettingsStore:
        return self._stores[scope]

    def load_all(self) -> dict[SettingsScope, dict[str, Any]]:
        return {scope: store.load() for scope, store in self._stores.items()}

    def snapshot(self) -> dict[SettingsScope, dict[str, Any]]:
        return {scope: store.snapshot() for scope, store in self._stores.items()}
