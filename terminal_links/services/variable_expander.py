"""Expansion of ``${...}`` placeholders inside matcher URI templates.

Each placeholder form is applied as its own pass over the text, in a fixed
order, so a value inserted by one pass is never expanded again by the same
pass. Unknown placeholders are left as written.
"""

from __future__ import annotations

import logging
import re

from terminal_links.services.workspace_context import WorkspaceContext

logger = logging.getLogger(__name__)

_RE_USER_HOME = re.compile(r"\$\{userHome\}")
_RE_WORKSPACE_FOLDER = re.compile(r"\$\{workspaceFolder\}")
_RE_WORKSPACE_BASENAME = re.compile(r"\$\{workspaceFolderBasename\}")
_RE_PATH_SEPARATOR = re.compile(r"\$\{pathSeparator\}")
_RE_SLASH = re.compile(r"\$\{/\}")
_RE_ENV = re.compile(r"\$\{env:([A-Za-z0-9_]+)\}")
_RE_SCOPED_FOLDER = re.compile(r"\$\{workspaceFolder:([^}]+)\}")
_RE_SCOPED_BASENAME = re.compile(r"\$\{workspaceFolderBasename:([^}]+)\}")


def expand_variables(template: str, context: WorkspaceContext) -> str:
    primary = context.primary_folder
    ws_path = primary.path if primary else ""
    ws_basename = primary.basename if primary else ""
    sep = context.path_separator

    def _folder_path(match: re.Match) -> str:
        folder = context.find_folder(match.group(1))
        return folder.path if folder else ""

    def _folder_basename(match: re.Match) -> str:
        folder = context.find_folder(match.group(1))
        return folder.basename if folder else ""

    logger.debug("expand_variables input: %s", template)
    # Callables keep backslashes in Windows paths from being read as escapes.
    result = _RE_USER_HOME.sub(lambda _m: context.user_home, template)
    result = _RE_WORKSPACE_FOLDER.sub(lambda _m: ws_path, result)
    result = _RE_WORKSPACE_BASENAME.sub(lambda _m: ws_basename, result)
    result = _RE_PATH_SEPARATOR.sub(lambda _m: sep, result)
    result = _RE_SLASH.sub(lambda _m: sep, result)
    result = _RE_ENV.sub(lambda m: context.environ.get(m.group(1), ""), result)
    result = _RE_SCOPED_FOLDER.sub(_folder_path, result)
    result = _RE_SCOPED_BASENAME.sub(_folder_basename, result)
    logger.debug("expand_variables result: %s", result)
    return result
