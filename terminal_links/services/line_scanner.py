from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from terminal_links.services.matcher_registry import MatcherConfig, MatcherSet

logger = logging.getLogger(__name__)

BUILTIN_URL_RE = re.compile(r"\b(?:https?|ftp|file)://\S+")


@dataclass(frozen=True)
class CandidateMatch:
    start: int
    text: str
    match: re.Match
    matcher: MatcherConfig | None = None

    @property
    def end(self) -> int:
        return self.start + len(self.text)

    @property
    def is_builtin_url(self) -> bool:
        return self.matcher is None


def scan_line(line: str, matcher_set: MatcherSet) -> list[CandidateMatch]:
    """Collect URL and custom-matcher hits, ordered by start offset.

    Hits sharing a start offset keep discovery order: built-in URLs first,
    then matchers in the order they were declared.
    """
    candidates: list[CandidateMatch] = [
        CandidateMatch(start=m.start(), text=m.group(0), match=m)
        for m in BUILTIN_URL_RE.finditer(line)
    ]

    for config in matcher_set:
        for m in config.pattern.finditer(line):
            if m.end() == m.start():
                continue
            logger.debug(
                "Found match '%s' at position %d for pattern %s",
                m.group(0),
                m.start(),
                config.source,
            )
            candidates.append(CandidateMatch(start=m.start(), text=m.group(0), match=m, matcher=config))

    candidates.sort(key=lambda candidate: candidate.start)
    return candidates
