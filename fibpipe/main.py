"""
Process entry points.

- run_gateway: serve the HTTP gateway with uvicorn
- run_worker: run a worker pool against the configured backends
"""

import asyncio
import logging
import signal
from typing import Optional

from .api.middleware_logging import configure_logging
from .config import Settings, get_settings
from .services import Backends, build_worker_pool

logger = logging.getLogger(__name__)


def run_gateway(settings: Optional[Settings] = None) -> None:
    """Serve the gateway until interrupted."""
    import uvicorn

    from .api import create_app

    settings = settings or get_settings()
    configure_logging(settings.LOG_LEVEL)
    app = create_app(settings)
    uvicorn.run(app, host=settings.HOST, port=settings.PORT, log_config=None)


async def serve_workers(
    settings: Settings,
    backends: Optional[Backends] = None,
    stop_event: Optional[asyncio.Event] = None,
) -> None:
    """Run a worker pool until ``stop_event`` is set."""
    backends = backends or Backends.from_settings(settings)
    stop_event = stop_event or asyncio.Event()

    await backends.connect()
    pool = build_worker_pool(backends, settings)
    try:
        await pool.start()
        if settings.RECONCILE_ON_START:
            await pool.reconcile(backends.log)
        await stop_event.wait()
    finally:
        await pool.stop()
        await backends.disconnect()


def run_worker(settings: Optional[Settings] = None) -> None:
    """Run workers until SIGINT/SIGTERM."""
    settings = settings or get_settings()
    configure_logging(settings.LOG_LEVEL)

    async def _main() -> None:
        stop_event = asyncio.Event()
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, stop_event.set)
            except NotImplementedError:
                # Windows event loops lack add_signal_handler
                pass
        logger.info(f"Starting {settings.WORKER_COUNT} worker(s)")
        await serve_workers(settings, stop_event=stop_event)

    asyncio.run(_main())
