"""Request routing: functional routes first, then static resource handlers."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from http import HTTPStatus
from typing import Callable, Iterable, Optional

from websockets.http11 import Response

from app_config_schema import AppConfig

from .cache_control import CacheControl
from .codecs import JSON_CONTENT_TYPE, JsonCodec
from .console import ConsoleIndexResponder, console_index_predicate
from .errors import ResourceResolutionError
from .http import HttpRequest, make_response
from .predicates import RequestPredicate, method, path
from .resources import ResourceHandlerRegistry, configure_resource_handlers

HEALTH_PATH = "/actuator/health"

Handler = Callable[[HttpRequest], Response]


@dataclass(frozen=True)
class Route:
    predicate: RequestPredicate
    handler: Handler


class Router:
    """Dispatches a request to the first matching route or resource handler."""

    def __init__(
        self,
        routes: Iterable[Route],
        registry: ResourceHandlerRegistry,
        *,
        codec: Optional[JsonCodec] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self._routes = tuple(routes)
        self._registry = registry
        self._codec = codec or JsonCodec()
        self._logger = logger or logging.getLogger("halo.web")

    @property
    def registry(self) -> ResourceHandlerRegistry:
        return self._registry

    def route(self, request: HttpRequest) -> Response:
        try:
            for candidate in self._routes:
                if candidate.predicate(request):
                    return candidate.handler(request)

            registration = self._registry.lookup(request)
            if registration is not None:
                response = registration.handle(request)
                if response is not None:
                    return response
        except ResourceResolutionError as error:
            self._logger.error("Failed to serve %s: %s", request.path, error)
            return self.error_response(request, error.status_code)

        return self.error_response(request, 404)

    def error_response(self, request: HttpRequest, status_code: int) -> Response:
        payload = {
            "timestamp": datetime.now(timezone.utc),
            "path": request.path,
            "status": status_code,
            "error": HTTPStatus(status_code).phrase,
        }
        return make_response(
            status_code,
            self._codec.encode(payload),
            JSON_CONTENT_TYPE,
            cache_control=CacheControl.no_store_policy().header_value(),
        )


def health_route(codec: JsonCodec) -> Route:
    body = codec.encode({"status": "UP"})

    def handler(request: HttpRequest) -> Response:
        del request
        return make_response(
            200,
            body,
            JSON_CONTENT_TYPE,
            cache_control=CacheControl.no_store_policy().header_value(),
        )

    return Route(method("GET") & path(HEALTH_PATH), handler)


def build_router(
    config: AppConfig,
    *,
    routes: Iterable[Route] = (),
    codec: Optional[JsonCodec] = None,
    logger: Optional[logging.Logger] = None,
) -> Router:
    """Wire health, caller routes, the console shell and static resources.

    Raises `PathTraversalError` when an attachment mapping escapes its root.
    """
    codec = codec or JsonCodec()
    registry = configure_resource_handlers(
        ResourceHandlerRegistry(logger=logger),
        config.halo,
        config.web_resources,
        logger=logger,
    )
    console = ConsoleIndexResponder(config.halo.console.location, logger=logger)
    all_routes = [
        health_route(codec),
        *routes,
        Route(console_index_predicate(), console.serve_console_index),
    ]
    return Router(all_routes, registry, codec=codec, logger=logger)
