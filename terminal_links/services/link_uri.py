"""Strict parsing of link targets into absolute URIs."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from urllib.parse import unquote

# RFC 3986 appendix B split; each group is optional so validation happens afterwards.
_RE_URI_PARTS = re.compile(r"^(([^:/?#]+?):)?(//([^/?#]*))?([^?#]*)(\?([^#]*))?(#(.*))?$", re.DOTALL)
_RE_SCHEME = re.compile(r"^[A-Za-z][A-Za-z0-9+.-]*$")


class UriResolutionError(ValueError):
    """Raised when a link target cannot be parsed as an absolute URI."""

    def __init__(self, value: str, message: str) -> None:
        super().__init__(f"{message}: {value!r}")
        self.value = value


@dataclass(frozen=True)
class LinkUri:
    scheme: str
    authority: str = ""
    path: str = ""
    query: str = ""
    fragment: str = ""
    raw: str = field(default="", compare=False)

    def encoded(self) -> str:
        """The URI text as it was parsed, percent-encoding intact."""
        return self.raw or self.to_string()

    def to_string(self) -> str:
        """Render the URI without percent-encoding any component."""
        out = f"{self.scheme}:"
        if self.authority or self.scheme == "file":
            out += f"//{self.authority}"
        out += self.path
        if self.query:
            out += f"?{self.query}"
        if self.fragment:
            out += f"#{self.fragment}"
        return out

    def __str__(self) -> str:
        return self.to_string()


def parse_uri(value: str) -> LinkUri:
    text = str(value)
    match = _RE_URI_PARTS.match(text)
    if match is None:
        raise UriResolutionError(text, "Not a URI")

    scheme = match.group(2) or ""
    authority = match.group(4) or ""
    path = match.group(5) or ""

    if not scheme:
        raise UriResolutionError(text, "Scheme is missing")
    if not _RE_SCHEME.match(scheme):
        raise UriResolutionError(text, "Scheme contains illegal characters")
    if any(ch.isspace() for ch in scheme + authority):
        raise UriResolutionError(text, "Whitespace in scheme or authority")
    if authority:
        if path and not path.startswith("/"):
            raise UriResolutionError(text, "Path must be empty or begin with '/' when an authority is present")
    elif path.startswith("//"):
        raise UriResolutionError(text, "Path cannot begin with '//' without an authority")

    return LinkUri(
        scheme=scheme.lower(),
        authority=unquote(authority),
        path=unquote(path),
        query=unquote(match.group(7) or ""),
        fragment=unquote(match.group(9) or ""),
        raw=text,
    )
