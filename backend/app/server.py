"""Process entry point: binds the HTTP server and supervises shutdown."""

import asyncio
import contextlib
import logging
import os
import signal
import sys
import threading
from typing import Optional

import uvicorn
from fastapi import FastAPI

from .config import Settings, get_settings
from .main import configure_logging, create_app

logger = logging.getLogger(__name__)


def force_exit() -> None:
    """Terminate immediately when graceful shutdown overruns its bound."""
    logger.error("Forced shutdown after timeout")
    os._exit(1)


def _signal_name(sig) -> str:
    try:
        return signal.Signals(sig).name
    except (ValueError, TypeError):
        return str(sig)


class ValidationServer(uvicorn.Server):
    """
    Uvicorn server with a bounded shutdown.

    The first shutdown trigger (a termination signal or an unhandled error on
    the event loop) starts a watchdog. Uvicorn then stops accepting
    connections, drains in-flight requests and runs the lifespan shutdown. If
    that has not finished within ``shutdown_timeout`` seconds the watchdog
    exits the process with status 1.
    """

    def __init__(self, config: uvicorn.Config, shutdown_timeout: float = 30.0):
        super().__init__(config)
        self.shutdown_timeout = shutdown_timeout
        self.exit_code = 0
        self._watchdog: Optional[threading.Timer] = None

    def begin_shutdown(self, reason: str) -> None:
        if self._watchdog is not None:
            return
        logger.info(f"{reason} received, starting graceful shutdown...")
        self._watchdog = threading.Timer(self.shutdown_timeout, force_exit)
        self._watchdog.daemon = True
        self._watchdog.start()

    def cancel_watchdog(self) -> None:
        if self._watchdog is not None:
            self._watchdog.cancel()

    @contextlib.contextmanager
    def capture_signals(self):
        """
        Install the signal handlers for the duration of ``serve``.

        Uvicorn re-raises captured signals once serving ends, which would kill
        the process after a completed graceful shutdown. The captured signals
        are discarded so ``run`` can return the exit status.
        """
        with super().capture_signals():
            try:
                yield
            finally:
                self._captured_signals.clear()

    def handle_exit(self, sig, frame) -> None:
        self.begin_shutdown(_signal_name(sig))
        super().handle_exit(sig, frame)

    def handle_loop_exception(self, loop, context: dict) -> None:
        """Last-resort handler for errors no request handler caught."""
        exc = context.get("exception")
        logger.error(f"Unhandled error: {context.get('message')}", exc_info=exc)
        self.exit_code = 1
        self.begin_shutdown("unhandledError")
        self.should_exit = True

    async def serve(self, sockets=None) -> None:
        asyncio.get_running_loop().set_exception_handler(self.handle_loop_exception)
        await super().serve(sockets)

    async def startup(self, sockets=None) -> None:
        await super().startup(sockets)
        if self.started:
            logger.info(f"Server is running on {self.config.host}:{self.config.port}")


def build_server(settings: Settings, app: Optional[FastAPI] = None) -> ValidationServer:
    """Create the server for ``app`` (a fresh application by default)."""
    config = uvicorn.Config(
        app or create_app(settings),
        host=settings.host,
        port=settings.port,
        lifespan="on",
        log_config=None,
        proxy_headers=settings.trust_proxy,
        forwarded_allow_ips="*" if settings.trust_proxy else None,
        timeout_graceful_shutdown=int(settings.shutdown_timeout_seconds),
    )
    return ValidationServer(config, shutdown_timeout=settings.shutdown_timeout_seconds)


def run(settings: Settings, app: Optional[FastAPI] = None) -> int:
    """Serve until shutdown and return the process exit status."""
    server = build_server(settings, app)
    try:
        server.run()
    except SystemExit as exc:
        # uvicorn exits this way when startup fails
        logger.error(f"Failed to start server (exit status {exc.code})")
        return 1
    except Exception:
        logger.exception("Failed to start server")
        return 1
    finally:
        server.cancel_watchdog()

    if not server.started:
        logger.error("Failed to start server")
        return 1
    if server.exit_code == 0:
        logger.info("Graceful shutdown completed")
    return server.exit_code


def main() -> None:
    settings = get_settings()
    configure_logging(settings)
    sys.exit(run(settings))


if __name__ == "__main__":
    main()
