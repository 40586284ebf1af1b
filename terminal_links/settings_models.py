from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal, TypedDict

SettingsScope = Literal["workspace", "user"]

TERMINAL_LINKS_SECTION = "terminalLinks"
DEFAULT_MARKER_SCHEME = "termlinks"


class MatcherSettings(TypedDict, total=False):
    regex: str
    uri: str


class TerminalLinksSettings(TypedDict, total=False):
    matchers: list[MatcherSettings]
    linkBuiltinUrls: bool
    markerScheme: str


class WorkspaceSettings(TypedDict, total=False):
    terminalLinks: TerminalLinksSettings


class UserSettings(TypedDict, total=False):
    terminalLinks: TerminalLinksSettings


@dataclass(frozen=True)
class SettingsPaths:
    workspace_root: Path
    user_app_dir: Path
    workspace_filename: str = ".terminal-links/settings.json"
    user_filename: str = "terminal-links-settings.json"
    workspace_file: Path = field(init=False)
    user_file: Path = field(init=False)

    def __post_init__(self) -> None:
        workspace_root = Path(self.workspace_root).expanduser().resolve()
        user_app_dir = Path(self.user_app_dir).expanduser().resolve()
        object.__setattr__(self, "workspace_root", workspace_root)
        object.__setattr__(self, "user_app_dir", user_app_dir)
        object.__setattr__(self, "workspace_file", workspace_root / self.workspace_filename)
        object.__setattr__(self, "user_file", user_app_dir / self.user_filename)


def default_terminal_links_settings() -> TerminalLinksSettings:
    return {
        "matchers": [],
        "linkBuiltinUrls": False,
        "markerScheme": DEFAULT_MARKER_SCHEME,
    }


def default_workspace_settings() -> WorkspaceSettings:
    # Workspace files only carry what the user wrote; user scope supplies defaults.
    return {}


def default_user_settings() -> UserSettings:
    return {TERMINAL_LINKS_SECTION: default_terminal_links_settings()}

