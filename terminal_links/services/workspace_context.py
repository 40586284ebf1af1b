"""Snapshot of the workspace and process state used to expand URI templates."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Mapping


@dataclass(frozen=True)
class WorkspaceFolder:
    path: str
    name: str = ""

    @property
    def basename(self) -> str:
        return os.path.basename(os.path.normpath(self.path)) if self.path else ""

    @staticmethod
    def from_path(path: str | Path, name: str | None = None) -> "WorkspaceFolder":
        text = str(path)
        return WorkspaceFolder(path=text, name=name if name is not None else os.path.basename(os.path.normpath(text)))


@dataclass(frozen=True)
class WorkspaceContext:
    folders: tuple[WorkspaceFolder, ...] = ()
    environ: Mapping[str, str] = field(default_factory=dict)
    user_home: str = ""
    path_separator: str = os.sep

    @property
    def primary_folder(self) -> WorkspaceFolder | None:
        return self.folders[0] if self.folders else None

    def find_folder(self, name: str) -> WorkspaceFolder | None:
        for folder in self.folders:
            if folder.basename == name or folder.name == name:
                return folder
        return None

    @staticmethod
    def capture(folders: Iterable[WorkspaceFolder] = ()) -> "WorkspaceContext":
        environ = dict(os.environ)
        return WorkspaceContext(
            folders=tuple(folders),
            environ=environ,
            user_home=environ.get("HOME") or environ.get("USERPROFILE") or "",
            path_separator=os.sep,
        )
