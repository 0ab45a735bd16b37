import logging
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from ..core.errors import CacheWriteError, DispatchError, ValidationError

logger = logging.getLogger("fibpipe.errors")


def register_error_handlers(app: FastAPI):
    @app.exception_handler(ValidationError)
    async def index_validation_handler(request: Request, exc: ValidationError):
        logger.warning(
            "Rejected path=%s value=%r reason=%s",
            request.url.path, exc.value, exc.message
        )
        return PlainTextResponse(exc.message, status_code=422)

    @app.exception_handler(CacheWriteError)
    @app.exception_handler(DispatchError)
    async def backend_exc_handler(request: Request, exc: Exception):
        logger.error("Backend unavailable path=%s error=%s", request.url.path, exc)
        return JSONResponse(
            status_code=503,
            content={"error": "Service unavailable"},
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exc_handler(request: Request, exc: StarletteHTTPException):
        logger.warning(
            "HTTPException path=%s status=%s detail=%r",
            request.url.path, exc.status_code, exc.detail
        )
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": str(exc.detail) if exc.detail else "HTTP error"},
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exc_handler(request: Request, exc: RequestValidationError):
        logger.warning(
            "RequestValidationError path=%s errors=%s",
            request.url.path, exc.errors()
        )
        return JSONResponse(
            status_code=422,
            content={"error": "Validation error", "details": exc.errors()},
        )

    @app.exception_handler(Exception)
    async def unhandled_exc_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error at path=%s", request.url.path)
        return JSONResponse(
            status_code=500,
            content={"error": "Internal server error"},
        )
