"""Tests for terminal_links.services.variable_expander."""
from __future__ import annotations

from terminal_links.services.variable_expander import expand_variables
from terminal_links.services.workspace_context import WorkspaceContext, WorkspaceFolder


def _context(**overrides) -> WorkspaceContext:
    values = dict(
        folders=(
            WorkspaceFolder(path="/work/alpha", name="Alpha Project"),
            WorkspaceFolder(path="/work/beta", name="beta"),
        ),
        environ={"TICKETS": "https://issues.example.com", "EMPTY": ""},
        user_home="/home/dev",
        path_separator="/",
    )
    values.update(overrides)
    return WorkspaceContext(**values)


class TestSimplePlaceholders:
    def test_user_home(self) -> None:
        assert expand_variables("${userHome}/notes", _context()) == "/home/dev/notes"

    def test_primary_workspace_folder(self) -> None:
        assert expand_variables("file://${workspaceFolder}/x", _context()) == "file:///work/alpha/x"

    def test_primary_workspace_basename(self) -> None:
        assert expand_variables("${workspaceFolderBasename}", _context()) == "alpha"

    def test_path_separator_forms(self) -> None:
        ctx = _context(path_separator="\\")
        assert expand_variables("a${pathSeparator}b${/}c", ctx) == "a\\b\\c"

    def test_no_workspace_expands_to_empty(self) -> None:
        ctx = _context(folders=())
        assert expand_variables("[${workspaceFolder}|${workspaceFolderBasename}]", ctx) == "[|]"

    def test_repeated_placeholders_all_replaced(self) -> None:
        assert expand_variables("${userHome}:${userHome}", _context()) == "/home/dev:/home/dev"


class TestEnvironmentPlaceholders:
    def test_env_value(self) -> None:
        assert expand_variables("${env:TICKETS}/$1", _context()) == "https://issues.example.com/$1"

    def test_unset_env_is_empty(self) -> None:
        assert expand_variables("<${env:NOT_SET_ANYWHERE}>", _context()) == "<>"

    def test_env_name_with_illegal_characters_left_verbatim(self) -> None:
        assert expand_variables("${env:BAD-NAME}", _context()) == "${env:BAD-NAME}"


class TestScopedWorkspacePlaceholders:
    def test_match_by_folder_name(self) -> None:
        assert expand_variables("${workspaceFolder:Alpha Project}", _context()) == "/work/alpha"

    def test_match_by_basename(self) -> None:
        assert expand_variables("${workspaceFolder:beta}", _context()) == "/work/beta"

    def test_scoped_basename(self) -> None:
        assert expand_variables("${workspaceFolderBasename:Alpha Project}", _context()) == "alpha"

    def test_unknown_folder_is_empty(self) -> None:
        assert expand_variables("[${workspaceFolder:gamma}]", _context()) == "[]"


class TestVerbatimAndIdempotence:
    def test_unknown_placeholder_left_verbatim(self) -> None:
        assert expand_variables("${config:editor.fontSize}", _context()) == "${config:editor.fontSize}"

    def test_capture_references_untouched(self) -> None:
        assert expand_variables("https://x/$1/$<name>", _context()) == "https://x/$1/$<name>"

    def test_no_placeholders_is_noop_twice(self) -> None:
        text = "https://issues.example.com/$1"
        once = expand_variables(text, _context())
        assert once == text
        assert expand_variables(once, _context()) == once

    def test_expanded_values_are_not_re_expanded(self) -> None:
        ctx = _context(environ={"TRICK": "${userHome}"})
        assert expand_variables("${env:TRICK}", ctx) == "${userHome}"

    def test_backslashes_in_values_are_literal(self) -> None:
        ctx = _context(user_home="C:\\Users\\dev")
        assert expand_variables("${userHome}\\x", ctx) == "C:\\Users\\dev\\x"


class TestCapture:
    def test_capture_reads_home_from_environment(self, monkeypatch) -> None:
        monkeypatch.setenv("HOME", "/home/captured")
        ctx = WorkspaceContext.capture([WorkspaceFolder.from_path("/srv/app")])
        assert ctx.user_home == "/home/captured"
        assert ctx.primary_folder == WorkspaceFolder(path="/srv/app", name="app")

    def test_capture_falls_back_to_userprofile(self, monkeypatch) -> None:
        monkeypatch.delenv("HOME", raising=False)
        monkeypatch.setenv("USERPROFILE", "C:\\Users\\dev")
        assert WorkspaceContext.capture().user_home == "C:\\Users\\dev"
