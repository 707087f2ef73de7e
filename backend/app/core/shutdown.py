"""
Startup and graceful shutdown for the Web3 Payroll API.
Creates the schema on boot, drains in-flight requests on exit and releases the engine.
"""

import asyncio
import logging
import signal
from contextlib import asynccontextmanager
from typing import Callable, Optional

logger = logging.getLogger("web3payroll.shutdown")


class GracefulShutdownManager:
    """
    Coordinates shutdown: waits for pending requests, cancels tracked
    background tasks, then runs the registered cleanup callbacks.
    """

    def __init__(self, timeout: int = 30):
        self._shutdown_requested = False
        self._timeout = timeout
        self._shutdown_callbacks: list[Callable] = []
        self._request_count = 0
        self._lock = asyncio.Lock()

    @property
    def shutdown_requested(self) -> bool:
        return self._shutdown_requested

    async def increment_requests(self) -> None:
        async with self._lock:
            self._request_count += 1

    async def decrement_requests(self) -> None:
        async with self._lock:
            self._request_count -= 1

    @property
    def pending_requests(self) -> int:
        return self._request_count

    def add_shutdown_callback(self, callback: Callable) -> None:
        self._shutdown_callbacks.append(callback)

    async def shutdown(self) -> None:
        if self._shutdown_requested:
            return

        self._shutdown_requested = True
        logger.info("Graceful shutdown initiated...")

        loop = asyncio.get_running_loop()
        start_time = loop.time()
        while self._request_count > 0:
            if loop.time() - start_time > self._timeout:
                logger.warning(
                    f"Shutdown timeout reached with {self._request_count} pending requests"
                )
                break
            logger.info(f"Waiting for {self._request_count} pending requests...")
            await asyncio.sleep(0.5)

        logger.info(f"Running {len(self._shutdown_callbacks)} shutdown callbacks...")
        for callback in self._shutdown_callbacks:
            try:
                result = callback()
                if asyncio.iscoroutine(result):
                    await result
            except Exception as e:
                logger.error(f"Error in shutdown callback: {e}")

        logger.info("Graceful shutdown complete")


_shutdown_manager: Optional[GracefulShutdownManager] = None


def get_shutdown_manager() -> GracefulShutdownManager:
    global _shutdown_manager
    if _shutdown_manager is None:
        _shutdown_manager = GracefulShutdownManager()
    return _shutdown_manager


def reset_shutdown_manager() -> None:
    """Forget the current manager so the next lifespan starts fresh."""
    global _shutdown_manager
    _shutdown_manager = None


def setup_signal_handlers(loop: asyncio.AbstractEventLoop) -> None:
    """
    Route SIGTERM (containers) and SIGINT (Ctrl+C) into a graceful shutdown.
    """
    shutdown_manager = get_shutdown_manager()

    def signal_handler(sig: signal.Signals) -> None:
        logger.info(f"Received signal {sig.name}")
        asyncio.create_task(shutdown_manager.shutdown())

    for sig in (signal.SIGTERM, signal.SIGINT):
        try:
            loop.add_signal_handler(sig, lambda s=sig: signal_handler(s))
            logger.debug(f"Registered handler for {sig.name}")
        except NotImplementedError:
            # Windows event loops have no add_signal_handler
            signal.signal(sig, lambda s, f, sig=sig: signal_handler(sig))
            logger.debug(f"Registered fallback handler for {sig.name}")


@asynccontextmanager
async def lifespan_manager(app):
    """
    FastAPI lifespan: create tables, seed the ENS parent record and open
    the ENS provider; on exit drain requests, then close the provider and
    the engine.
    """
    from app.core.config import settings
    from app.db.init_db import init_db
    from app.db.session import engine
    from app.services.ens_service import get_ens_service

    logger.info("Application starting up...")
    shutdown_manager = get_shutdown_manager()

    try:
        setup_signal_handlers(asyncio.get_running_loop())
    except Exception as e:
        logger.warning(f"Could not setup signal handlers: {e}")

    await init_db()

    ens_service = get_ens_service()
    logger.info(
        f"ENS network: {ens_service.network}, ledger owner: {settings.LEDGER_OWNER_ADDRESS.lower()}"
    )
    shutdown_manager.add_shutdown_callback(ens_service.close)

    async def cleanup_database():
        logger.info("Closing database connections...")
        await engine.dispose()
        logger.info("Database connections closed")

    shutdown_manager.add_shutdown_callback(cleanup_database)

    logger.info("Application startup complete")

    try:
        yield
    finally:
        logger.info("Application shutting down...")
        await shutdown_manager.shutdown()
        reset_shutdown_manager()


class RequestTrackingMiddleware:
    """
    ASGI middleware counting in-flight requests; answers 503 once shutdown has begun.
    """

    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        shutdown_manager = get_shutdown_manager()
        if shutdown_manager.shutdown_requested:
            await send({
                "type": "http.response.start",
                "status": 503,
                "headers": [
                    [b"content-type", b"application/json"],
                    [b"connection", b"close"],
                    [b"retry-after", b"5"],
                ],
            })
            await send({
                "type": "http.response.body",
                "body": b'{"error": "Service is shutting down", "retry_after": 5}',
            })
            return

        await shutdown_manager.increment_requests()
        try:
            await self.app(scope, receive, send)
        finally:
            await shutdown_manager.decrement_requests()
