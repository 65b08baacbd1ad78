from __future__ import annotations

import asyncio
import contextlib
import logging
import threading
from typing import Awaitable, Callable, Mapping, Optional
from urllib.parse import urlsplit

import websockets
from websockets.asyncio.server import ServerConnection
from websockets.http11 import Request, Response

from .config import WebServerConfig
from .http import HttpRequest
from .predicates import websocket_upgrade
from .router import Router

WebSocketHandler = Callable[[ServerConnection], Awaitable[None]]


class HaloWebServer:
    """Threaded asyncio server for routed HTTP requests and websocket endpoints."""

    def __init__(
        self,
        config: WebServerConfig,
        router: Router,
        logger: Optional[logging.Logger] = None,
        websocket_handlers: Optional[Mapping[str, WebSocketHandler]] = None,
    ):
        self._config = config
        self._router = router
        self._logger = logger or logging.getLogger("halo.web")
        self._websocket_handlers = dict(websocket_handlers or {})
        self._is_websocket_upgrade = websocket_upgrade()
        self._thread: Optional[threading.Thread] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._stop_async: Optional[asyncio.Event] = None
        self._started = threading.Event()
        self._startup_error: Optional[Exception] = None

    @property
    def host(self) -> str:
        return self._config.host

    @property
    def port(self) -> int:
        return self._config.port

    @property
    def is_running(self) -> bool:
        return (
            self._thread is not None
            and self._thread.is_alive()
            and self._startup_error is None
        )

    def start(self, timeout_seconds: float = 5.0) -> None:
        if self.is_running:
            self._logger.warning("Web server is already running")
            return

        self._startup_error = None
        self._started.clear()
        self._thread = threading.Thread(
            target=self._run_loop,
            daemon=True,
            name="halo-web",
        )
        self._thread.start()

        if not self._started.wait(timeout_seconds):
            raise RuntimeError(
                f"Web server did not start within {timeout_seconds:.1f}s"
            )

        if self._startup_error is not None:
            raise RuntimeError(f"Web server startup failed: {self._startup_error}")

    def stop(self, timeout_seconds: float = 5.0) -> None:
        if self._thread is None:
            return

        if self._loop and self._stop_async:
            self._loop.call_soon_threadsafe(self._stop_async.set)

        self._thread.join(timeout=timeout_seconds)
        if self._thread.is_alive():
            self._logger.error(
                "Web server thread did not stop within %.1fs",
                timeout_seconds,
            )

        self._thread = None
        self._loop = None
        self._stop_async = None

    def _run_loop(self) -> None:
        self._loop = asyncio.new_event_loop()
        asyncio.set_event_loop(self._loop)
        self._stop_async = asyncio.Event()

        try:
            self._loop.run_until_complete(self._serve())
        except Exception as error:
            self._startup_error = error
            self._logger.error("Web server failed: %s", error, exc_info=True)
            self._started.set()
        finally:
            if self._loop is not None:
                pending = asyncio.all_tasks(self._loop)
                for task in pending:
                    task.cancel()
                with contextlib.suppress(Exception):
                    self._loop.run_until_complete(
                        asyncio.gather(*pending, return_exceptions=True)
                    )
                self._loop.close()

    async def _serve(self) -> None:
        async with websockets.serve(
            self._handler,
            host=self._config.host,
            port=self._config.port,
            process_request=self._process_request,
            logger=self._logger,
        ):
            self._logger.info(
                "Web server running at http://%s:%d",
                self._config.host,
                self._config.port,
            )
            self._started.set()
            await self._stop_async.wait()

    async def _process_request(
        self,
        connection: ServerConnection,
        request: Request,
    ) -> Response | None:
        del connection
        http_request = HttpRequest.from_websockets(request)

        # Let the handshake proceed; `_handler` dispatches by path.
        if self._is_websocket_upgrade(http_request):
            return None

        return await asyncio.to_thread(self._router.route, http_request)

    async def _handler(self, websocket: ServerConnection) -> None:
        request_path = (
            urlsplit(websocket.request.path).path
            if websocket.request is not None
            else ""
        )
        endpoint = self._websocket_handlers.get(request_path)
        if endpoint is None:
            await websocket.close(code=1008, reason="Invalid websocket path")
            return

        self._logger.info("Client connected: %s", websocket.remote_address)
        try:
            await endpoint(websocket)
        except websockets.exceptions.ConnectionClosed:
            self._logger.info("Client disconnected: %s", websocket.remote_address)
