"""Router-independent request model and response helpers."""

from __future__ import annotations

from dataclasses import dataclass, field
from http import HTTPStatus
from typing import Mapping, Optional
from urllib.parse import unquote, urlsplit

from websockets.datastructures import Headers
from websockets.http11 import Request, Response


@dataclass(frozen=True)
class HttpRequest:
    """Incoming request as seen by predicates, routes and resource handlers."""
    method: str
    target: str
    headers: Headers = field(default_factory=Headers)

    @property
    def path(self) -> str:
        return unquote(urlsplit(self.target).path) or "/"

    def header(self, name: str) -> Optional[str]:
        values = self.headers.get_all(name)
        if not values:
            return None
        return ", ".join(values)

    @classmethod
    def from_websockets(cls, request: Request) -> "HttpRequest":
        # The websockets HTTP parser only accepts GET requests.
        return cls(method="GET", target=request.path, headers=request.headers)

    @classmethod
    def build(
        cls,
        method: str,
        target: str,
        headers: Optional[Mapping[str, str]] = None,
    ) -> "HttpRequest":
        request_headers = Headers()
        for name, value in (headers or {}).items():
            request_headers[name] = value
        return cls(method=method.upper(), target=target, headers=request_headers)


def make_response(
    status_code: int,
    body: bytes = b"",
    content_type: Optional[str] = None,
    *,
    cache_control: Optional[str] = None,
    headers: Optional[Mapping[str, str]] = None,
) -> Response:
    response_headers = Headers()
    if content_type is not None:
        response_headers["Content-Type"] = content_type
    if not headers or "Content-Length" not in headers:
        response_headers["Content-Length"] = str(len(body))
    if cache_control:
        response_headers["Cache-Control"] = cache_control
    for name, value in (headers or {}).items():
        response_headers[name] = value
    return Response(status_code, HTTPStatus(status_code).phrase, response_headers, body)
