"""Validation and publication of the user's custom link matchers.

A load either produces a complete new ``MatcherSet`` or fails with a
``ConfigurationError`` and leaves the published set as it was.
"""

from __future__ import annotations

import logging
import re
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Mapping

from terminal_links.services.variable_expander import expand_variables
from terminal_links.services.workspace_context import WorkspaceContext

logger = logging.getLogger(__name__)

REGEX_FIELD = "regex"
URI_FIELD = "uri"

EXPECTED_LIST_FORMAT = 'terminalLinks.matchers is expected to be an array of { "regex": "...", "uri": "..." }'

# Patterns may use the (?<name>...) and \k<name> group spellings of the
# configuration format; re only accepts the (?P<name>...) forms.
_RE_NAMED_GROUP = re.compile(r"(?<!\\)((?:\\\\)*)\(\?<(?=[A-Za-z_])")
_RE_NAMED_BACKREF = re.compile(r"(?<!\\)((?:\\\\)*)\\k<([A-Za-z_]\w*)>")


def to_python_pattern(pattern: str) -> str:
    pattern = _RE_NAMED_GROUP.sub(r"\1(?P<", pattern)
    return _RE_NAMED_BACKREF.sub(r"\1(?P=\2)", pattern)


class ConfigurationErrorReason(str, Enum):
    NOT_A_SEQUENCE = "not_a_sequence"
    NOT_A_RECORD = "not_a_record"
    MISSING_FIELD = "missing_field"
    FIELD_NOT_STRING = "field_not_string"
    INVALID_PATTERN = "invalid_pattern"


class ConfigurationError(ValueError):
    def __init__(
        self,
        reason: ConfigurationErrorReason,
        message: str,
        *,
        index: int | None = None,
        field: str | None = None,
    ) -> None:
        super().__init__(message)
        self.reason = reason
        self.index = index
        self.field = field


@dataclass(frozen=True)
class MatcherConfig:
    pattern: re.Pattern
    uri_template: str

    @property
    def source(self) -> str:
        return self.pattern.pattern


@dataclass(frozen=True)
class MatcherSet:
    matchers: tuple[MatcherConfig, ...] = ()
    version: int = 0

    def __len__(self) -> int:
        return len(self.matchers)

    def __iter__(self):
        return iter(self.matchers)


@dataclass(frozen=True)
class LoadResult:
    matcher_set: MatcherSet | None = None
    error: ConfigurationError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def _field_as_string(item: Mapping[str, Any], key: str, index: int) -> str:
    expected = f"Every item of terminalLinks.matchers must contain a string {key} property."
    if key not in item:
        raise ConfigurationError(ConfigurationErrorReason.MISSING_FIELD, expected, index=index, field=key)
    value = item[key]
    if not isinstance(value, str):
        raise ConfigurationError(ConfigurationErrorReason.FIELD_NOT_STRING, expected, index=index, field=key)
    return value


def parse_matchers(raw: Any, context: WorkspaceContext) -> tuple[MatcherConfig, ...]:
    """Validate raw configuration and build matchers, failing on the first fault."""
    if not isinstance(raw, (list, tuple)):
        raise ConfigurationError(ConfigurationErrorReason.NOT_A_SEQUENCE, EXPECTED_LIST_FORMAT)

    parsed: list[MatcherConfig] = []
    for index, item in enumerate(raw):
        if not isinstance(item, Mapping):
            raise ConfigurationError(ConfigurationErrorReason.NOT_A_RECORD, EXPECTED_LIST_FORMAT, index=index)
        pattern_text = _field_as_string(item, REGEX_FIELD, index)
        template = _field_as_string(item, URI_FIELD, index)
        try:
            pattern = re.compile(to_python_pattern(pattern_text))
        except re.error as exc:
            raise ConfigurationError(
                ConfigurationErrorReason.INVALID_PATTERN,
                f"Invalid regular expression in terminalLinks.matchers[{index}]: {exc}",
                index=index,
                field=REGEX_FIELD,
            ) from exc
        parsed.append(MatcherConfig(pattern=pattern, uri_template=expand_variables(template, context)))
    return tuple(parsed)


class MatcherRegistry:
    """Owns the active matcher set and swaps it as one step on reload."""

    def __init__(self, context_provider: Callable[[], WorkspaceContext] | None = None) -> None:
        self._context_provider = context_provider or WorkspaceContext.capture
        self._lock = threading.Lock()
        self._current = MatcherSet()

    def current(self) -> MatcherSet:
        with self._lock:
            return self._current

    def load(self, raw: Any) -> MatcherSet:
        matchers = parse_matchers(raw, self._context_provider())
        with self._lock:
            self._current = MatcherSet(matchers=matchers, version=self._current.version + 1)
            published = self._current
        logger.debug("Parsed config:\n%s", describe_matchers(published))
        return published

    def try_load(self, raw: Any) -> LoadResult:
        try:
            return LoadResult(matcher_set=self.load(raw))
        except ConfigurationError as exc:
            return LoadResult(error=exc)


def describe_matchers(matcher_set: MatcherSet) -> str:
    return "\n".join(
        f'  {{\n    regex: "{config.source}",\n    uri: "{config.uri_template}"\n  }}'
        for config in matcher_set
    )
