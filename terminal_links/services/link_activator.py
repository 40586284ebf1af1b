"""Decide and perform what happens when a terminal link is clicked."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Protocol, Union

from terminal_links.services.link_uri import LinkUri
from terminal_links.settings_models import DEFAULT_MARKER_SCHEME

logger = logging.getLogger(__name__)

_RE_FILE_POSITION = re.compile(r"^(.+?)(?::(\d+))?(?::(\d+))?$", re.DOTALL)

FILE_AUTHORITY = "file"
SETTINGS_AUTHORITY = "settings"


@dataclass(frozen=True)
class TextPosition:
    line: int
    column: int = 0


@dataclass(frozen=True)
class OpenFileAction:
    path: str
    position: TextPosition | None = None


@dataclass(frozen=True)
class OpenSettingsAction:
    query: str


@dataclass(frozen=True)
class OpenExternalAction:
    uri: str


LinkAction = Union[OpenFileAction, OpenSettingsAction, OpenExternalAction]


class LinkHost(Protocol):
    def open_document(self, path: str, position: TextPosition | None) -> None:
        ...

    def open_external(self, uri: str) -> None:
        ...

    def open_settings(self, query: str) -> None:
        ...


def _file_action(path: str) -> OpenFileAction:
    match = _RE_FILE_POSITION.match(path)
    if match is None:
        return OpenFileAction(path=path)

    bare_path, line_text, col_text = match.groups()
    if line_text is None:
        return OpenFileAction(path=bare_path)
    line = int(line_text)
    if line < 1:
        return OpenFileAction(path=bare_path)
    column = int(col_text) - 1 if col_text is not None else 0
    return OpenFileAction(path=bare_path, position=TextPosition(line=line - 1, column=max(0, column)))


def decide_action(uri: LinkUri, *, marker_scheme: str = DEFAULT_MARKER_SCHEME) -> LinkAction:
    if uri.scheme == marker_scheme.lower():
        if uri.authority == FILE_AUTHORITY and uri.path:
            return _file_action(uri.path)
        if uri.authority == SETTINGS_AUTHORITY:
            return OpenSettingsAction(query=uri.path[1:] if uri.path.startswith("/") else uri.path)
    return OpenExternalAction(uri=uri.encoded())


class LinkActivator:
    def __init__(self, host: LinkHost, *, marker_scheme: str = DEFAULT_MARKER_SCHEME) -> None:
        self.host = host
        self.marker_scheme = marker_scheme

    def activate(self, uri: LinkUri) -> LinkAction:
        action = decide_action(uri, marker_scheme=self.marker_scheme)
        try:
            if isinstance(action, OpenFileAction):
                self.host.open_document(action.path, action.position)
            elif isinstance(action, OpenSettingsAction):
                self.host.open_settings(action.query)
            else:
                self.host.open_external(action.uri)
        except Exception:
            # The host owns the failure surface; the terminal keeps running.
            logger.exception("Could not open link target %s", uri.to_string())
        return action
