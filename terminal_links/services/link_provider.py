from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Callable

from terminal_links.services.line_scanner import scan_line
from terminal_links.services.link_activator import LinkAction, LinkActivator, LinkHost
from terminal_links.services.link_uri import LinkUri
from terminal_links.services.matcher_registry import ConfigurationError, MatcherRegistry
from terminal_links.services.overlap_resolver import resolve_links
from terminal_links.services.workspace_context import WorkspaceContext
from terminal_links.settings_manager import ConfigurationChangeEvent, SettingsManager
from terminal_links.settings_models import DEFAULT_MARKER_SCHEME, TERMINAL_LINKS_SECTION

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TerminalLink:
    start: int
    length: int
    tooltip: str
    target: LinkUri


class TerminalLinkProvider:
    """Host-facing entry point: links per line, activation, and config reload."""

    def __init__(
        self,
        settings: SettingsManager,
        host: LinkHost,
        *,
        context_provider: Callable[[], WorkspaceContext] | None = None,
        diagnostics: Callable[[ConfigurationError], None] | None = None,
    ) -> None:
        self.settings = settings
        self.registry = MatcherRegistry(context_provider)
        self.activator = LinkActivator(host)
        self.link_builtin_urls = False
        self._diagnostics = diagnostics
        self._unsubscribe: Callable[[], None] | None = None

    def activate(self) -> None:
        logger.info("Activated")
        self.reload_configuration()
        self._unsubscribe = self.settings.subscribe(self._on_configuration_changed)

    def dispose(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def _setting(self, key: str, default):
        return self.settings.get(f"{TERMINAL_LINKS_SECTION}.{key}", default=default)

    def reload_configuration(self) -> bool:
        self.link_builtin_urls = bool(self._setting("linkBuiltinUrls", False))
        marker_scheme = self._setting("markerScheme", DEFAULT_MARKER_SCHEME)
        if isinstance(marker_scheme, str) and marker_scheme.strip():
            self.activator.marker_scheme = marker_scheme.strip()
        else:
            self.activator.marker_scheme = DEFAULT_MARKER_SCHEME

        matchers = self._setting("matchers", [])
        logger.info("Parsing config:\n%s", json.dumps(matchers, indent=2, default=str))
        result = self.registry.try_load(matchers)
        if result.error is not None:
            logger.error("%s", result.error)
            if self._diagnostics is not None:
                self._diagnostics(result.error)
            return False
        return True

    def _on_configuration_changed(self, event: ConfigurationChangeEvent) -> None:
        if event.affects_configuration(TERMINAL_LINKS_SECTION):
            self.reload_configuration()

    def provide_links(self, line: str) -> list[TerminalLink]:
        candidates = scan_line(line, self.registry.current())
        return [
            TerminalLink(start=link.start, length=link.length, tooltip=link.tooltip, target=link.target)
            for link in resolve_links(candidates, link_builtin_urls=self.link_builtin_urls)
        ]

    def handle_link(self, link: TerminalLink) -> LinkAction:
        return self.activator.activate(link.target)
