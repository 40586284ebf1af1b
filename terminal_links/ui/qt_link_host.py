from __future__ import annotations

import logging

from PySide6.QtCore import QObject, QUrl, Signal
from PySide6.QtGui import QDesktopServices

from terminal_links.services.link_activator import TextPosition

logger = logging.getLogger(__name__)


class QtLinkHost(QObject):
    """Qt side of link activation.

    File and settings targets are forwarded as signals so the owning window
    decides how to show them; everything else goes to the desktop handler.
    """

    openFileRequested = Signal(str, int, int)  # path, line (-1 for none), column
    openSettingsRequested = Signal(str)

    def open_document(self, path: str, position: TextPosition | None) -> None:
        if position is None:
            self.openFileRequested.emit(path, -1, 0)
        else:
            self.openFileRequested.emit(path, position.line, position.column)

    def open_external(self, uri: str) -> None:
        ok = QDesktopServices.openUrl(QUrl(uri))
        if not ok:
            logger.warning("No handler accepted %s", uri)

    def open_settings(self, query: str) -> None:
        self.openSettingsRequested.emit(query)
