from __future__ import annotations

from typing import List, Optional

from PySide6 import QtCore, QtGui, QtWidgets
from PySide6.QtCore import Qt

import pyte
from pyte import modes
from pyte.screens import HistoryScreen

from terminal_links.services.link_provider import TerminalLink, TerminalLinkProvider
from terminal_links.ui.screen_lines import link_at, row_links, screen_lines


class TerminalLinkView(QtWidgets.QWidget):
    """
    Read-only terminal pane backed by a pyte screen. Text fed into it is
    scanned line by line for links, which are painted underlined in
    ``linkColor`` and activated with a plain left click.
    """
    linkActivated = QtCore.Signal(str)

    # ---- QSS property: linkColor ----
    linkColorChanged = QtCore.Signal()

    @QtCore.Property(QtGui.QColor, notify=linkColorChanged)
    def linkColor(self) -> QtGui.QColor:
        return self._link_color

    @linkColor.setter
    def linkColor(self, c: QtGui.QColor):
        if isinstance(c, QtGui.QColor) and c.isValid():
            self._link_color = QtGui.QColor(c)
            self.linkColorChanged.emit()
            self.update()

    def __init__(
        self,
        provider: TerminalLinkProvider,
        parent: Optional[QtWidgets.QWidget] = None,
        *,
        columns: int = 200,
        rows: int = 50,
        history_lines: int = 5000,
    ):
        super().__init__(parent)
        self._provider = provider
        self.setMouseTracking(True)
        self.setFocusPolicy(Qt.StrongFocus)
        self.setAttribute(Qt.WA_OpaquePaintEvent, True)

        font = QtGui.QFontDatabase.systemFont(QtGui.QFontDatabase.FixedFont)
        self.setFont(font)

        self._cell_w = self._cell_h = self._baseline = 0
        self._link_color: QtGui.QColor = None
        self._install_palette_defaults()
        self._recompute_metrics()

        self._screen = HistoryScreen(int(columns), int(rows), history=int(history_lines))
        self._screen.set_mode(modes.DECAWM)
        self._stream = pyte.ByteStream(self._screen)

        self._lines: List[str] = []
        self._links: List[List[TerminalLink]] = []
        self._view_offset = 0
        self._press_pos: Optional[tuple[int, int]] = None

    # -------- Palette & Metrics (QSS-friendly) --------
    def _install_palette_defaults(self):
        pal = self.palette()
        self._bg_default = pal.color(QtGui.QPalette.Base)
        self._fg_default = pal.color(QtGui.QPalette.Text)
        if self._link_color is None:
            self._link_color = QtGui.QColor("#2f6fff")

    def _recompute_metrics(self):
        fm = QtGui.QFontMetrics(self.font())
        self._cell_w = max(1, fm.horizontalAdvance("M"))
        self._cell_h = max(1, fm.height())
        self._baseline = fm.ascent()

    def changeEvent(self, ev: QtCore.QEvent):
        et = ev.type()
        if et in (QtCore.QEvent.FontChange, QtCore.QEvent.StyleChange):
            self._recompute_metrics()
            self.update()
        if et == QtCore.QEvent.PaletteChange:
            self._install_palette_defaults()
            self.update()
        super().changeEvent(ev)

    # -------- Content --------
    def feed(self, data: bytes) -> None:
        self._stream.feed(data)
        self.refresh_links()

    def feed_text(self, text: str) -> None:
        normalized = text.replace("\r\n", "\n").replace("\n", "\r\n")
        self.feed(normalized.encode("utf-8"))

    @QtCore.Slot()
    def refresh_links(self) -> None:
        self._lines = screen_lines(self._screen)
        self._links = row_links(self._provider, self._lines)
        self.update()

    def lines(self) -> List[str]:
        return list(self._lines)

    # -------- Geometry --------
    def _visible_rows(self) -> int:
        return max(1, self.height() // max(1, self._cell_h))

    def _view_top(self) -> int:
        return max(0, len(self._lines) - self._visible_rows() - self._view_offset)

    def _cell_pos_from_event(self, e) -> tuple[int, int]:
        """Map a mouse event to (column, line index) in the full line list."""
        x = max(0, min(self.width() - 1, int(e.position().x())))
        y = max(0, min(self.height() - 1, int(e.position().y())))
        return x // self._cell_w, self._view_top() + y // self._cell_h

    def _link_from_event(self, e) -> Optional[TerminalLink]:
        col, line_idx = self._cell_pos_from_event(e)
        if line_idx < 0 or line_idx >= len(self._links):
            return None
        return link_at(self._links[line_idx], col)

    # -------- Painting --------
    def paintEvent(self, e: QtGui.QPaintEvent):
        p = QtGui.QPainter(self)
        try:
            p.fillRect(self.rect(), self._bg_default)
            base_font = self.font()
            link_font = QtGui.QFont(base_font)
            link_font.setUnderline(True)

            top = self._view_top()
            y = 0
            for line_idx in range(top, min(len(self._lines), top + self._visible_rows())):
                text = self._lines[line_idx]
                p.setFont(base_font)
                p.setPen(self._fg_default)
                p.drawText(0, y + self._baseline, text)
                if line_idx < len(self._links) and self._links[line_idx]:
                    p.setFont(link_font)
                    p.setPen(self._link_color)
                    for link in self._links[line_idx]:
                        chunk = text[link.start:link.start + link.length]
                        x = link.start * self._cell_w
                        p.fillRect(x, y, len(chunk) * self._cell_w, self._cell_h, self._bg_default)
                        p.drawText(x, y + self._baseline, chunk)
                y += self._cell_h
        finally:
            p.end()

    # -------- Mouse --------
    def mousePressEvent(self, e: QtGui.QMouseEvent):
        if e.button() == Qt.MouseButton.LeftButton:
            self._press_pos = self._cell_pos_from_event(e)
        super().mousePressEvent(e)

    def mouseReleaseEvent(self, e: QtGui.QMouseEvent):
        if e.button() == Qt.MouseButton.LeftButton and self._press_pos is not None:
            clicked_without_drag = self._press_pos == self._cell_pos_from_event(e)
            self._press_pos = None
            if clicked_without_drag:
                link = self._link_from_event(e)
                if link is not None:
                    self._provider.handle_link(link)
                    self.linkActivated.emit(link.tooltip)
        super().mouseReleaseEvent(e)

    def mouseMoveEvent(self, e: QtGui.QMouseEvent):
        link = self._link_from_event(e)
        if link is not None:
            self.setCursor(Qt.PointingHandCursor)
            self.setToolTip(link.tooltip)
        else:
            self.unsetCursor()
            self.setToolTip("")
        super().mouseMoveEvent(e)

    def leaveEvent(self, e: QtCore.QEvent):
        self.unsetCursor()
        super().leaveEvent(e)

    def wheelEvent(self, e: QtGui.QWheelEvent):
        steps = e.angleDelta().y() / 120.0
        if steps == 0:
            return
        max_offset = max(0, len(self._lines) - self._visible_rows())
        new_offset = int(self._view_offset + steps * 3)
        self._view_offset = max(0, min(max_offset, new_offset))
        self.update()
