"""Composable request matchers used to gate functional routes."""

from __future__ import annotations

from typing import Callable

from .http import HttpRequest
from .path_pattern import PathPattern


class RequestPredicate:
    """Boolean test over an `HttpRequest`, combinable with `&`, `|` and `~`."""

    def __init__(self, test: Callable[[HttpRequest], bool], description: str):
        self._test = test
        self.description = description

    def __call__(self, request: HttpRequest) -> bool:
        return bool(self._test(request))

    def __repr__(self) -> str:
        return f"RequestPredicate({self.description})"

    def and_(self, other: "RequestPredicate") -> "RequestPredicate":
        return RequestPredicate(
            lambda request: self(request) and other(request),
            f"({self.description} && {other.description})",
        )

    def or_(self, other: "RequestPredicate") -> "RequestPredicate":
        return RequestPredicate(
            lambda request: self(request) or other(request),
            f"({self.description} || {other.description})",
        )

    def negate(self) -> "RequestPredicate":
        return RequestPredicate(
            lambda request: not self(request),
            f"!{self.description}",
        )

    __and__ = and_
    __or__ = or_
    __invert__ = negate


def method(name: str) -> RequestPredicate:
    expected = name.upper()
    return RequestPredicate(lambda request: request.method.upper() == expected, expected)


def path(pattern: str) -> RequestPredicate:
    compiled = PathPattern(pattern)
    return RequestPredicate(lambda request: compiled.matches(request.path), pattern)


def accept(media_type: str) -> RequestPredicate:
    """Match requests whose `Accept` header is compatible with `media_type`.

    A missing `Accept` header counts as `*/*`.
    """
    wanted_type, _, wanted_subtype = media_type.lower().partition("/")

    def test(request: HttpRequest) -> bool:
        for accepted in parse_accept(request.header("Accept")):
            accepted_type, _, accepted_subtype = accepted.partition("/")
            if accepted_type == "*" or (
                accepted_type == wanted_type
                and accepted_subtype in ("*", wanted_subtype)
            ):
                return True
        return False

    return RequestPredicate(test, f"Accept: {media_type}")


def websocket_upgrade() -> RequestPredicate:
    def test(request: HttpRequest) -> bool:
        upgrade = (request.header("Upgrade") or "").strip().lower()
        connection = request.header("Connection") or ""
        tokens = {token.strip().lower() for token in connection.split(",")}
        return upgrade == "websocket" and "upgrade" in tokens

    return RequestPredicate(test, "WebSocket upgrade")


def parse_accept(header: str | None) -> list[str]:
    """Return media ranges from an `Accept` header, skipping `q=0` entries."""
    if not header or not header.strip():
        return ["*/*"]

    media_types = []
    for item in header.split(","):
        media_range, *params = (part.strip() for part in item.split(";"))
        if not media_range:
            continue
        rejected = False
        for param in params:
            key, _, value = param.partition("=")
            if key.strip().lower() == "q":
                try:
                    rejected = float(value) <= 0
                except ValueError:
                    rejected = True
        if not rejected:
            media_types.append(media_range.lower())
    return media_types
