from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable

from terminal_links.settings_models import (
    SettingsPaths,
    SettingsScope,
    default_user_settings,
    default_workspace_settings,
)
from terminal_links.settings_store import JsonSettingsStore, ScopedSettingsStores, changed_keys

logger = logging.getLogger(__name__)

SCOPE_PRECEDENCE: tuple[SettingsScope, ...] = ("workspace", "user")


@dataclass(frozen=True)
class ConfigurationChangeEvent:
    """Dotted keys whose effective value may have changed."""

    keys: frozenset[str]

    def affects_configuration(self, section: str) -> bool:
        section = str(section or "").strip(".")
        if not section:
            return bool(self.keys)
        for key in self.keys:
            if key == section or key.startswith(section + ".") or section.startswith(key + "."):
                return True
        return False


ConfigurationListener = Callable[[ConfigurationChangeEvent], None]


class SettingsManager:
    def __init__(
        self,
        workspace_root: str | Path,
        user_app_dir: str | Path,
        *,
        workspace_filename: str = ".terminal-links/settings.json",
        user_filename: str = "terminal-links-settings.json",
    ) -> None:
        self.paths = SettingsPaths(
            workspace_root=Path(workspace_root),
            user_app_dir=Path(user_app_dir),
            workspace_filename=workspace_filename,
            user_filename=user_filename,
        )
        self.workspace_store = JsonSettingsStore(self.paths.workspace_file, default_workspace_settings())
        self.user_store = JsonSettingsStore(self.paths.user_file, default_user_settings())
        self.scoped_stores = ScopedSettingsStores(
            {
                "workspace": self.workspace_store,
                "user": self.user_store,
            }
        )
        self._listeners: list[ConfigurationListener] = []

    @property
    def workspace_path(self) -> Path:
        return self.paths.workspace_file

    @property
    def user_path(self) -> Path:
        return self.paths.user_file

    def subscribe(self, listener: ConfigurationListener) -> Callable[[], None]:
        """Register a change listener and return a callable that removes it."""
        self._listeners.append(listener)

        def _dispose() -> None:
            try:
                self._listeners.remove(listener)
            except ValueError:
                pass

        return _dispose

    def load_all(self) -> ConfigurationChangeEvent:
        before = self.scoped_stores.snapshot()
        self.scoped_stores.load_all()
        for scope, message in self.load_errors().items():
            logger.error("Could not read %s settings: %s", scope, message)
        return self._notify(before)

    def reload_all(self) -> ConfigurationChangeEvent:
        return self.load_all()

    def load_errors(self) -> dict[SettingsScope, str]:
        errors: dict[SettingsScope, str] = {}
        for scope in SCOPE_PRECEDENCE:
            message = self.scoped_stores.store_for(scope).last_error
            if isinstance(message, str) and message.strip():
                errors[scope] = message.strip()
        return errors

    def get(
        self,
        key: str,
        scope_preference: SettingsScope | None = None,
        *,
        default: Any = None,
    ) -> Any:
        if scope_preference is not None:
            return self.scoped_stores.store_for(scope_preference).get(key, default)
        for scope in SCOPE_PRECEDENCE:
            value = self.scoped_stores.store_for(scope).get(key, None)
            if value is not None:
                return value
        return default

    def set(self, key: str, value: Any, scope: SettingsScope) -> ConfigurationChangeEvent:
        before = self.scoped_stores.snapshot()
        self.scoped_stores.store_for(scope).set(key, value)
        return self._notify(before)

    def _notify(self, before: dict[SettingsScope, dict[str, Any]]) -> ConfigurationChangeEvent:
        after = self.scoped_stores.snapshot()
        keys: set[str] = set()
        for scope in SCOPE_PRECEDENCE:
            keys |= changed_keys(before.get(scope, {}), after.get(scope, {}))
        event = ConfigurationChangeEvent(keys=frozenset(keys))
        if not event.keys:
            return event
        for listener in list(self._listeners):
            listener(event)
        return event
