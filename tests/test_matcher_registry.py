"""Tests for terminal_links.services.matcher_registry."""
from __future__ import annotations

import pytest

from terminal_links.services.matcher_registry import (
    ConfigurationError,
    ConfigurationErrorReason,
    MatcherRegistry,
    MatcherSet,
    parse_matchers,
    to_python_pattern,
)
from terminal_links.services.workspace_context import WorkspaceContext, WorkspaceFolder


def _context() -> WorkspaceContext:
    return WorkspaceContext(
        folders=(WorkspaceFolder(path="/work/app", name="app"),),
        environ={"TRACKER": "issues.example.com"},
        user_home="/home/dev",
        path_separator="/",
    )


def _registry() -> MatcherRegistry:
    return MatcherRegistry(_context)


VALID = [
    {"regex": r"TICKET-(\d+)", "uri": "https://${env:TRACKER}/$1"},
    {"regex": r"(\S+\.py):(\d+)", "uri": "termlinks://file${workspaceFolder}/$1:$2"},
]


class TestParseMatchers:
    def test_valid_config_keeps_length_and_order(self) -> None:
        matchers = parse_matchers(VALID, _context())
        assert [m.source for m in matchers] == [r"TICKET-(\d+)", r"(\S+\.py):(\d+)"]

    def test_templates_are_expanded_at_load(self) -> None:
        matchers = parse_matchers(VALID, _context())
        assert matchers[0].uri_template == "https://issues.example.com/$1"
        assert matchers[1].uri_template == "termlinks://file/work/app/$1:$2"

    def test_empty_list_is_valid(self) -> None:
        assert parse_matchers([], _context()) == ()

    def test_extra_fields_are_ignored(self) -> None:
        matchers = parse_matchers([{"regex": "a", "uri": "b:c", "note": 1}], _context())
        assert len(matchers) == 1


class TestNamedGroupSyntax:
    def test_angle_bracket_named_group_compiles(self) -> None:
        (config,) = parse_matchers([{"regex": r"#(?<id>\d+)", "uri": "https://t.example/$<id>"}], _context())
        match = config.pattern.search("see #42")
        assert match is not None
        assert match.group("id") == "42"

    def test_named_backreference(self) -> None:
        (config,) = parse_matchers([{"regex": r"(?<q>['\"])(\w+)\k<q>", "uri": "x:$2"}], _context())
        assert config.pattern.search("say 'hi'").group(2) == "hi"
        assert config.pattern.search("say 'hi\"") is None

    def test_lookbehind_is_left_alone(self) -> None:
        (config,) = parse_matchers([{"regex": r"(?<=v)\d+(?<!0)", "uri": "x:$&"}], _context())
        assert config.pattern.findall("v120 v13 x9") == ["12", "13"]

    def test_python_spelling_still_accepted(self) -> None:
        (config,) = parse_matchers([{"regex": r"(?P<id>\d+)", "uri": "x:$<id>"}], _context())
        assert config.pattern.search("7").group("id") == "7"

    def test_escaped_paren_is_not_a_group(self) -> None:
        (config,) = parse_matchers([{"regex": r"\(?<a>", "uri": "x:$&"}], _context())
        assert config.pattern.search("(<a>").group(0) == "(<a>"

    def test_to_python_pattern(self) -> None:
        assert to_python_pattern(r"(?<n>a)\k<n>") == r"(?P<n>a)(?P=n)"
        assert to_python_pattern(r"\\(?<n>a)") == r"\\(?P<n>a)"


class TestConfigurationErrors:
    @pytest.mark.parametrize(
        ("raw", "reason", "index", "field"),
        [
            ({"regex": "a", "uri": "b"}, ConfigurationErrorReason.NOT_A_SEQUENCE, None, None),
            ("TICKET", ConfigurationErrorReason.NOT_A_SEQUENCE, None, None),
            (None, ConfigurationErrorReason.NOT_A_SEQUENCE, None, None),
            ([{"regex": "a", "uri": "b:c"}, "oops"], ConfigurationErrorReason.NOT_A_RECORD, 1, None),
            ([{"uri": "b:c"}], ConfigurationErrorReason.MISSING_FIELD, 0, "regex"),
            ([{"regex": "a"}], ConfigurationErrorReason.MISSING_FIELD, 0, "uri"),
            ([{"regex": 5, "uri": "b:c"}], ConfigurationErrorReason.FIELD_NOT_STRING, 0, "regex"),
            ([{"regex": "a", "uri": None}], ConfigurationErrorReason.FIELD_NOT_STRING, 0, "uri"),
            ([{"regex": "(unclosed", "uri": "b:c"}], ConfigurationErrorReason.INVALID_PATTERN, 0, "regex"),
        ],
    )
    def test_reason_index_and_field(self, raw, reason, index, field) -> None:
        with pytest.raises(ConfigurationError) as info:
            parse_matchers(raw, _context())
        assert info.value.reason is reason
        assert info.value.index == index
        assert info.value.field == field

    def test_first_violation_is_reported(self) -> None:
        raw = [{"regex": "ok", "uri": "a:b"}, {"regex": 1}, {"regex": "(", "uri": "x:y"}]
        with pytest.raises(ConfigurationError) as info:
            parse_matchers(raw, _context())
        assert info.value.index == 1
        assert "string regex property" in str(info.value)


class TestMatcherRegistry:
    def test_starts_empty(self) -> None:
        current = _registry().current()
        assert current == MatcherSet()
        assert len(current) == 0

    def test_load_publishes_new_version(self) -> None:
        registry = _registry()
        published = registry.load(VALID)
        assert registry.current() is published
        assert published.version == 1
        assert len(published) == 2

    def test_failed_load_keeps_previous_set(self) -> None:
        registry = _registry()
        previous = registry.load(VALID)
        with pytest.raises(ConfigurationError):
            registry.load(VALID + [{"regex": "[", "uri": "x:y"}])
        assert registry.current() is previous

    def test_try_load_returns_tagged_result(self) -> None:
        registry = _registry()
        ok = registry.try_load(VALID)
        assert ok.ok and ok.matcher_set is registry.current()

        bad = registry.try_load("not a list")
        assert not bad.ok
        assert bad.matcher_set is None
        assert bad.error.reason is ConfigurationErrorReason.NOT_A_SEQUENCE
        assert registry.current() is ok.matcher_set

    def test_reload_with_identical_input_is_equivalent(self) -> None:
        registry = _registry()
        first = registry.load(VALID)
        second = registry.load(VALID)
        assert second.matchers == first.matchers
        assert second.version == first.version + 1

    def test_context_is_read_on_each_load(self) -> None:
        homes = iter(["/home/one", "/home/two"])
        registry = MatcherRegistry(lambda: WorkspaceContext(user_home=next(homes)))
        raw = [{"regex": "x", "uri": "file://${userHome}"}]
        assert registry.load(raw).matchers[0].uri_template == "file:///home/one"
        assert registry.load(raw).matchers[0].uri_template == "file:///home/two"
