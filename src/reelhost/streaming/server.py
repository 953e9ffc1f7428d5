import socket
import threading
import time
from collections.abc import Awaitable, Callable
from pathlib import Path

import uvicorn
from fastapi import FastAPI, Response
from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from reelhost.settings.models import FileServerModel
from reelhost.streaming.exceptions import FileServerBindException
from reelhost.streaming.registry import ActiveFileRegistry
from reelhost.streaming.responder import StreamingResponder
from routers import file_router

LOOPBACK_HOST = "127.0.0.1"


class LoguruMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        start_time = time.time()
        response = None

        try:
            response = await call_next(request)

            return response
        except Exception as e:
            logger.exception(f"Exception during request processing: {e}")
            raise
        finally:
            process_time = time.time() - start_time

            logger.log(
                "API",
                f"{request.method} {request.url.path} - {response.status_code if response else '500'} - {process_time:.2f}s",
            )


def create_app(registry: ActiveFileRegistry, responder: StreamingResponder) -> FastAPI:
    """Build the playback application around an explicitly owned registry."""
    app = FastAPI(
        title="Reelhost playback server",
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.registry = registry
    app.state.responder = responder

    app.add_middleware(LoguruMiddleware)
    app.include_router(file_router)

    return app


class FileServer:
    """
    Local playback server.

    Serves whatever file the registry currently holds on every path. The
    uvicorn server runs on a daemon thread; `start` is idempotent while
    that thread is alive and starts a fresh listener otherwise.
    """

    def __init__(
        self,
        registry: ActiveFileRegistry,
        settings: FileServerModel | None = None,
        responder: StreamingResponder | None = None,
    ) -> None:
        self.registry = registry
        self.settings = settings or FileServerModel()
        self.responder = responder or StreamingResponder(
            streaming_threshold=self.settings.streaming_threshold_bytes,
            chunk_size=self.settings.chunk_size,
        )
        self.app = create_app(self.registry, self.responder)

        self.port: int | None = None
        self._requested_port: int | None = None
        self._lock = threading.Lock()
        self._server: uvicorn.Server | None = None
        self._thread: threading.Thread | None = None
        self._bound = threading.Event()
        self.bind_error: FileServerBindException | None = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    @property
    def base_url(self) -> str | None:
        if self.port is None:
            return None
        return f"http://{LOOPBACK_HOST}:{self.port}"

    def start(self, port: int | None = None, bind_timeout: float = 5.0) -> str:
        """
        Start listening and return the base URL.

        Calling this while the listener is running returns the existing
        URL. A bind failure ends only the listener thread; it is logged and
        kept on `bind_error`, and the next call tries again.
        """
        with self._lock:
            if self.is_running and self.bind_error is None:
                return self.base_url or f"http://{LOOPBACK_HOST}:{self._requested_port}"

            port = self.settings.port if port is None else port
            self._requested_port = port
            self.port = None
            self.bind_error = None
            self._bound.clear()

            config = uvicorn.Config(
                self.app,
                host=self.settings.host,
                port=port,
                log_config=None,
                access_log=False,
            )
            self._server = uvicorn.Server(config=config)
            self._thread = threading.Thread(
                target=self._serve,
                args=(self._server, self.settings.host, port),
                name="reelhost-file-server",
                daemon=True,
            )
            self._thread.start()
            self._bound.wait(timeout=bind_timeout)

            if self.port is None:
                return f"http://{LOOPBACK_HOST}:{port}"
            return self.base_url

    def _serve(self, server: uvicorn.Server, host: str, port: int) -> None:
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        try:
            sock.bind((host, port))
        except OSError as e:
            sock.close()
            self.bind_error = FileServerBindException(host, port, e)
            logger.error(f"Failed to bind file server: {e}")
            self._bound.set()
            return

        self.port = sock.getsockname()[1]
        logger.log("STREAM", f"File server started on {host}:{self.port}")
        self._bound.set()

        try:
            server.run(sockets=[sock])
        except Exception as e:
            logger.exception(f"File server error: {e}")
        finally:
            sock.close()

    def wait_until_started(self, timeout: float = 5.0) -> bool:
        """Block until uvicorn accepts connections; False on timeout or failure."""
        deadline = time.monotonic() + timeout
        while time.monotonic() < deadline:
            if self._server is not None and self._server.started:
                return True
            if self._thread is not None and not self._thread.is_alive():
                return False
            time.sleep(0.01)
        return False

    def stop(self, timeout: float = 5.0) -> None:
        with self._lock:
            if self._server is not None:
                self._server.should_exit = True
            if self._thread is not None:
                self._thread.join(timeout=timeout)
            self._server = None
            self._thread = None
            self.port = None
        logger.log("STREAM", "File server stopped")

    def serve(self, path: str | Path) -> str:
        """Select the file to serve and return its playback URL."""
        self.registry.set(path)
        return self.playback_url()

    def playback_url(self, port: int | None = None) -> str:
        if port is None:
            port = self.port if self.port is not None else self.settings.port
        return f"http://{LOOPBACK_HOST}:{port}/{self.settings.playback_filename}"
