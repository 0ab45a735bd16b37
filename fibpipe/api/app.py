"""
HTTP surface of the gateway.

Routes:
- GET  /               liveness text
- POST /values         submit {"index": n}
- GET  /values/all     every durable record
- GET  /values/current result cache snapshot
- GET  /health         status and public settings
"""

from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional
import logging

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel

from .. import __version__
from ..config import Settings, get_settings
from ..core.gateway import Gateway
from ..services import Backends, build_gateway, build_worker_pool
from .error_handlers import register_error_handlers
from .middleware_logging import register_request_logging

logger = logging.getLogger(__name__)


class ValueSubmission(BaseModel):
    # Left untyped so malformed indexes reach the gateway's own validation.
    index: Any = None


def get_gateway(request: Request) -> Gateway:
    return request.app.state.gateway


def create_app(
    settings: Optional[Settings] = None,
    backends: Optional[Backends] = None,
    embedded_workers: Optional[bool] = None,
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: Settings to use (defaults to the environment)
        backends: Pre-built backends; built from settings when omitted
        embedded_workers: Run a worker pool inside the app process. Defaults
            to True for the in-memory backend, where no other process can
            reach the dispatch channel.
    """
    settings = settings or get_settings()
    backends = backends or Backends.from_settings(settings)
    if embedded_workers is None:
        embedded_workers = settings.BACKEND == "memory"

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await backends.connect()
        app.state.gateway = build_gateway(backends, settings)
        app.state.worker_pool = None

        if embedded_workers:
            pool = build_worker_pool(backends, settings)
            await pool.start()
            if settings.RECONCILE_ON_START:
                await pool.reconcile(backends.log)
            app.state.worker_pool = pool

        logger.info(f"Gateway ready (max_index={settings.MAX_INDEX})")
        try:
            yield
        finally:
            if app.state.worker_pool is not None:
                await app.state.worker_pool.stop()
            await backends.disconnect()

    app = FastAPI(title="fibpipe gateway", version=__version__, lifespan=lifespan)
    app.state.settings = settings
    app.state.backends = backends
    register_request_logging(app)
    register_error_handlers(app)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/", response_class=PlainTextResponse)
    def root():
        return "Hi"

    @app.post("/values")
    async def submit_value(
        body: ValueSubmission,
        gateway: Gateway = Depends(get_gateway),
    ) -> Dict[str, bool]:
        await gateway.submit(body.index)
        return {"working": True}

    @app.get("/values/all")
    async def all_values(gateway: Gateway = Depends(get_gateway)) -> List[Dict[str, int]]:
        records = await gateway.list_all()
        return [record.to_dict() for record in records]

    @app.get("/values/current")
    async def current_values(gateway: Gateway = Depends(get_gateway)) -> Dict[str, str]:
        return await gateway.current_values()

    @app.get("/health")
    def health_check(request: Request):
        pool = request.app.state.worker_pool
        return {
            "status": "ok",
            "version": __version__,
            **settings.public(),
            "workers": pool.get_info() if pool is not None else [],
        }

    return app
