"""Console single-page app shell routing."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from websockets.http11 import Response

from .cache_control import CacheControl
from .errors import ResourceResolutionError
from .http import HttpRequest, make_response
from .predicates import RequestPredicate, accept, method, path, websocket_upgrade

CONSOLE_PATH_PATTERN = "/console/**"
CONSOLE_ASSETS_PATH_PATTERN = "/console/assets/**"
CONSOLE_INDEX_FILE = "index.html"


def console_index_predicate() -> RequestPredicate:
    """GET navigations under /console (not assets) accepting HTML, not WebSocket."""
    return (
        method("GET")
        & (path(CONSOLE_PATH_PATTERN) & ~path(CONSOLE_ASSETS_PATH_PATTERN))
        & accept("text/html")
        & ~websocket_upgrade()
    )


class ConsoleIndexResponder:
    """Serves `<console location>/index.html` with caching disabled."""

    def __init__(self, console_location: Path, logger: Optional[logging.Logger] = None):
        self._index_file = Path(console_location) / CONSOLE_INDEX_FILE
        self._logger = logger or logging.getLogger("halo.web.console")

    def serve_console_index(self, request: HttpRequest) -> Response:
        try:
            body = self._index_file.read_bytes()
        except FileNotFoundError as error:
            raise ResourceResolutionError(
                self._index_file,
                "console index not found",
                status_code=404,
            ) from error
        except OSError as error:
            raise ResourceResolutionError(self._index_file, str(error)) from error

        self._logger.debug("Serving console index for %s", request.path)
        return make_response(
            200,
            body,
            "text/html; charset=utf-8",
            cache_control=CacheControl.no_store_policy().header_value(),
        )

    __call__ = serve_console_index
