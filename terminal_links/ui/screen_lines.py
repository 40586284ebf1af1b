"""Read terminal text out of a pyte screen and map links onto its rows.

Every screen cell becomes exactly one character, so a string index in a
row is also its column on screen.
"""

from __future__ import annotations

from typing import Iterable, List, Optional, Sequence

import pyte

from terminal_links.services.link_provider import TerminalLink, TerminalLinkProvider


def row_effective_len(row, columns: int) -> int:
    if not row or columns <= 0:
        return 0
    for c in range(columns - 1, -1, -1):
        cell = row.get(c)
        if not cell:
            continue
        data = getattr(cell, "data", None)
        if data and data != " ":
            return c + 1
        if getattr(cell, "reverse", False):
            return c + 1
    return 0


def row_text(row, columns: int) -> str:
    chars: list[str] = []
    for col_idx in range(row_effective_len(row, columns)):
        cell = row.get(col_idx)
        data = getattr(cell, "data", None) if cell else None
        chars.append(data if isinstance(data, str) and data else " ")
    return "".join(chars)


def history_rows(screen: pyte.Screen) -> list:
    hist = getattr(screen, "history", None)
    if hist is None:
        return []
    top = getattr(hist, "top", None)
    return list(top) if top is not None else []


def live_row_count(screen: pyte.Screen) -> int:
    """Live rows up to the cursor or the last non-blank row, whichever is lower."""
    columns = int(screen.columns)
    cursor_row = int(getattr(screen.cursor, "y", 0))
    for row_idx in range(int(screen.lines) - 1, -1, -1):
        if row_idx <= cursor_row:
            return row_idx + 1
        if row_effective_len(screen.buffer.get(row_idx, {}), columns):
            return row_idx + 1
    return 0


def screen_lines(screen: pyte.Screen) -> List[str]:
    columns = int(screen.columns)
    lines = [row_text(row, columns) for row in history_rows(screen)]
    for row_idx in range(live_row_count(screen)):
        lines.append(row_text(screen.buffer.get(row_idx, {}), columns))
    return lines


def row_links(provider: TerminalLinkProvider, lines: Iterable[str]) -> List[List[TerminalLink]]:
    return [provider.provide_links(line) if line else [] for line in lines]


def link_at(links: Sequence[TerminalLink], column: int) -> Optional[TerminalLink]:
    for link in links:
        if link.start <= column < link.start + link.length:
            return link
    return None
