from __future__ import annotations

from pathlib import Path

from PySide6.QtCore import QFileSystemWatcher, QObject, QTimer

from terminal_links.settings_manager import SettingsManager


class SettingsFileWatcher(QObject):
    """Reload settings whenever the workspace or user settings file changes."""

    def __init__(self, settings: SettingsManager, parent: QObject | None = None, *, debounce_ms: int = 150) -> None:
        super().__init__(parent)
        self._settings = settings
        self._watcher = QFileSystemWatcher(self)
        self._watcher.fileChanged.connect(self._on_path_changed)
        self._watcher.directoryChanged.connect(self._on_path_changed)
        self._reload_timer = QTimer(self)
        self._reload_timer.setSingleShot(True)
        self._reload_timer.setInterval(max(0, int(debounce_ms)))
        self._reload_timer.timeout.connect(self._flush_reload)
        self._sync_watches()

    def _watch_targets(self) -> list[Path]:
        targets: list[Path] = []
        for settings_file in (self._settings.workspace_path, self._settings.user_path):
            if settings_file.exists():
                targets.append(settings_file)
            # Editors often replace files, so the parent must be watched too.
            if settings_file.parent.is_dir():
                targets.append(settings_file.parent)
        return targets

    def _sync_watches(self) -> None:
        current = set(self._watcher.files()) | set(self._watcher.directories())
        wanted = {str(path) for path in self._watch_targets()}
        missing = sorted(wanted - current)
        if missing:
            self._watcher.addPaths(missing)

    def _on_path_changed(self, _path: str) -> None:
        self._reload_timer.start()

    def _flush_reload(self) -> None:
        self._sync_watches()
        self._settings.reload_all()
