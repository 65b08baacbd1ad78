"""URL path patterns with `*`, `?`, `{name}` and a trailing `**`."""

from __future__ import annotations

import re

_SEGMENT_TOKEN = re.compile(r"\{[^/{}]+\}|\*|\?")
_CATCH_ALL = "**"


def _segment_regex(segment: str) -> str:
    parts = []
    position = 0
    for match in _SEGMENT_TOKEN.finditer(segment):
        parts.append(re.escape(segment[position:match.start()]))
        token = match.group(0)
        if token == "*":
            parts.append("[^/]*")
        elif token == "?":
            parts.append("[^/]")
        else:
            parts.append("[^/]+")
        position = match.end()
    parts.append(re.escape(segment[position:]))
    return "".join(parts)


class PathPattern:
    """Compiled URL pattern.

    `**` may only appear as the last segment, where it matches zero or more
    path segments: `/console/**` matches `/console`, `/console/` and
    `/console/a/b`.
    """

    def __init__(self, pattern: str):
        if not pattern.startswith("/"):
            raise ValueError(f"Path pattern must start with '/': {pattern!r}")
        self.pattern = pattern

        segments = [segment for segment in pattern.split("/") if segment]
        self._catch_all = bool(segments) and segments[-1] == _CATCH_ALL
        if self._catch_all:
            segments = segments[:-1]
        if any(_CATCH_ALL in segment for segment in segments):
            raise ValueError(
                f"'**' is only supported as the last pattern segment: {pattern!r}"
            )

        self._wildcards = sum(len(_SEGMENT_TOKEN.findall(segment)) for segment in segments)
        self._literal_length = sum(
            len(_SEGMENT_TOKEN.sub("", segment)) for segment in segments
        )

        self._literal_prefix = len(segments)
        for index, segment in enumerate(segments):
            if _SEGMENT_TOKEN.search(segment):
                self._literal_prefix = index
                break

        body = "".join("/" + _segment_regex(segment) for segment in segments)
        if self._catch_all:
            self._regex = re.compile(f"^{body}(?:/.*)?$")
        else:
            self._regex = re.compile(f"^{body}/?$")

    def __repr__(self) -> str:
        return f"PathPattern({self.pattern!r})"

    def __eq__(self, other: object) -> bool:
        return isinstance(other, PathPattern) and other.pattern == self.pattern

    def __hash__(self) -> int:
        return hash(self.pattern)

    @property
    def specificity(self) -> tuple[bool, bool, int, int]:
        """Sort key: more specific patterns first, `/**` always last.

        Patterns without a trailing `**` beat catch-alls, then fewer
        wildcards win, then the longer literal text.
        """
        return (
            self._catch_all and not self._literal_length,
            self._catch_all,
            self._wildcards,
            -self._literal_length,
        )

    def matches(self, path: str) -> bool:
        return self._regex.match(path) is not None

    def extract_path_within_pattern(self, path: str) -> str:
        """Return the part of `path` covered by the pattern's wildcards."""
        if not self.matches(path):
            return ""
        segments = [segment for segment in path.split("/") if segment]
        return "/".join(segments[self._literal_prefix:])
