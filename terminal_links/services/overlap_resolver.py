"""Greedy left-to-right selection of non-overlapping links."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Iterable

from terminal_links.services.line_scanner import CandidateMatch
from terminal_links.services.link_uri import LinkUri, UriResolutionError, parse_uri
from terminal_links.services.matcher_registry import MatcherConfig

logger = logging.getLogger(__name__)

_RE_TEMPLATE_TOKEN = re.compile(r"\$(?:(\$)|(&)|(`)|(')|(\d{1,2})|<([^>]*)>)")


@dataclass(frozen=True)
class ResolvedLink:
    start: int
    length: int
    target: LinkUri
    matcher: MatcherConfig | None = None

    @property
    def end(self) -> int:
        return self.start + self.length

    @property
    def tooltip(self) -> str:
        return self.target.to_string()


def _group_reference(digits: str, match: re.Match) -> tuple[str, str] | None:
    """Return (replacement, trailing literal) for a ``$n``/``$nn`` token."""
    groups = match.re.groups
    if len(digits) == 2:
        two = int(digits)
        if 1 <= two <= groups:
            return match.group(two) or "", ""
    one = int(digits[0])
    if 1 <= one <= groups:
        return match.group(one) or "", digits[1:]
    return None


def substitute_template(template: str, match: re.Match) -> str:
    """Expand ``$``-style references in ``template`` against ``match``.

    ``$$`` is a dollar, ``$&`` the whole match, ``$1``..``$99`` numbered
    groups and ``$<name>`` named groups. The template is applied to the
    matched text alone, so the before-match and after-match
    references are always empty. References that name no group are kept
    literally.
    """
    named = match.re.groupindex

    def _replace(token: re.Match) -> str:
        dollar, whole, before, after, digits, name = token.groups()
        if dollar:
            return "$"
        if whole:
            return match.group(0)
        if before or after:
            return ""
        if digits is not None:
            resolved = _group_reference(digits, match)
            if resolved is None:
                return token.group(0)
            value, rest = resolved
            return value + rest
        if not named:
            return token.group(0)
        if name in named:
            return match.group(name) or ""
        return ""

    return _RE_TEMPLATE_TOKEN.sub(_replace, template)


def resolve_target(candidate: CandidateMatch) -> LinkUri:
    if candidate.matcher is None:
        return parse_uri(candidate.text)
    return parse_uri(substitute_template(candidate.matcher.uri_template, candidate.match))


def resolve_links(candidates: Iterable[CandidateMatch], *, link_builtin_urls: bool = False) -> list[ResolvedLink]:
    links: list[ResolvedLink] = []
    pos = 0

    for candidate in candidates:
        if candidate.start < pos:
            continue

        if candidate.is_builtin_url and not link_builtin_urls:
            # Reserve the URL span so nothing inside it is linked.
            pos = candidate.end
            continue

        try:
            target = resolve_target(candidate)
        except UriResolutionError as exc:
            logger.debug("Skipping '%s' at position %d: %s", candidate.text, candidate.start, exc)
            continue

        pos = candidate.end
        links.append(
            ResolvedLink(
                start=candidate.start,
                length=len(candidate.text),
                target=target,
                matcher=candidate.matcher,
            )
        )

    return links
