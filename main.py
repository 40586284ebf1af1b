import logging
import os
import sys
from pathlib import Path

from PySide6.QtCore import QStandardPaths, QUrl
from PySide6.QtGui import QDesktopServices
from PySide6.QtWidgets import QApplication, QMainWindow

from terminal_links.services.link_provider import TerminalLinkProvider
from terminal_links.services.workspace_context import WorkspaceContext, WorkspaceFolder
from terminal_links.settings_manager import SettingsManager
from terminal_links.ui.qt_link_host import QtLinkHost
from terminal_links.ui.settings_watcher import SettingsFileWatcher
from terminal_links.ui.widgets.terminal_link_view import TerminalLinkView

APP_NAME = "Terminal Links"
VERBOSE_ARG = "--verbose"


def _split_startup_args(argv: list[str]) -> tuple[list[str], bool]:
    filtered: list[str] = []
    verbose = False
    for arg in argv:
        if arg == VERBOSE_ARG:
            verbose = True
            continue
        filtered.append(arg)
    return filtered, verbose


def _canonical_existing_dir(path_value: str | Path | None) -> str | None:
    text = str(path_value or "").strip()
    if not text:
        return None
    candidate = Path(text).expanduser()
    if not candidate.is_dir():
        return None
    try:
        return str(candidate.resolve())
    except OSError:
        return str(candidate)


def _user_app_dir() -> Path:
    location = QStandardPaths.writableLocation(QStandardPaths.AppConfigLocation)
    return Path(location) if location else Path.home() / ".config" / "terminal-links"


def _read_input(argv: list[str]) -> str:
    """Text to show: the file given after the workspace argument, or stdin."""
    if len(argv) > 1:
        return Path(argv[1]).read_text(encoding="utf-8", errors="replace")
    if not sys.stdin.isatty():
        return sys.stdin.read()
    return ""


def _open_file(window: QMainWindow, path: str, line: int, column: int) -> None:
    QDesktopServices.openUrl(QUrl.fromLocalFile(path))
    if line >= 0:
        window.statusBar().showMessage(f"{path}  Ln {line + 1}, Col {column + 1}")
    else:
        window.statusBar().showMessage(path)


if __name__ == "__main__":
    cli_args, verbose = _split_startup_args(sys.argv[1:])
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    workspace_root = (cli_args and _canonical_existing_dir(cli_args[0])) or os.getcwd()

    settings = SettingsManager(workspace_root=workspace_root, user_app_dir=_user_app_dir())
    settings.load_all()

    app = QApplication([sys.argv[0], *cli_args])
    app.setStyle("Fusion")
    app.setApplicationName(APP_NAME)

    window = QMainWindow()
    window.setWindowTitle(f"{APP_NAME} [{Path(workspace_root).name}]")

    host = QtLinkHost(window)
    provider = TerminalLinkProvider(
        settings,
        host,
        context_provider=lambda: WorkspaceContext.capture([WorkspaceFolder.from_path(workspace_root)]),
        diagnostics=lambda exc: window.statusBar().showMessage(f"terminalLinks: {exc}"),
    )
    provider.activate()

    view = TerminalLinkView(provider, window)
    settings.subscribe(lambda _event: view.refresh_links())
    watcher = SettingsFileWatcher(settings, window)

    host.openFileRequested.connect(lambda path, line, col: _open_file(window, path, line, col))
    host.openSettingsRequested.connect(
        lambda query: QDesktopServices.openUrl(QUrl.fromLocalFile(str(settings.workspace_path)))
    )

    window.setCentralWidget(view)
    window.resize(960, 600)
    view.feed_text(_read_input(cli_args))
    window.show()
    sys.exit(app.exec())
