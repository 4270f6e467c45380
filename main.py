from __future__ import annotations

import logging
import time
import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware

from api.v1.documents_route import router as v1_documents_route_router
from api.v1.public_upload_route import router as v1_public_upload_route_router
from api.v1.upload_token_route import router as v1_upload_token_route_router
from core.context import AppContext, build_app_context, get_app_context
from core.logging import request_id_context, setup_logging
from core.response_envelope import (
    document_response,
    error_response,
    format_validation_error_details,
    http_exception_response,
    request_id_from,
)
from core.settings import get_settings

logger = logging.getLogger(__name__)


class RequestIdMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id
        reset_token = request_id_context.set(request_id)
        try:
            response = await call_next(request)
        finally:
            request_id_context.reset(reset_token)
        response.headers["X-Request-ID"] = request_id
        return response


class RequestTimingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        start_time = time.time()
        response = await call_next(request)
        response.headers["X-Process-Time"] = str(time.time() - start_time)
        return response


def create_app(context: AppContext | None = None) -> FastAPI:
    """Build the API. Tests pass a prepared context; uvicorn builds one from the environment."""
    settings = context.settings if context is not None else get_settings()
    setup_logging(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owns_context = context is None
        app.state.context = build_app_context(settings) if owns_context else context
        logger.info("Claim upload API started with %s storage", settings.storage_backend)
        try:
            yield
        finally:
            if owns_context:
                await app.state.context.close()

    app = FastAPI(lifespan=lifespan, title="Claim Upload API")
    if context is not None:
        app.state.context = context

    app.add_middleware(RequestTimingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins) if settings.cors_origins else [settings.public_app_origin],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestIdMiddleware)

    @app.exception_handler(HTTPException)
    async def custom_http_exception_handler(request: Request, exc: HTTPException):
        return http_exception_response(exc=exc, request=request)

    @app.exception_handler(RequestValidationError)
    async def custom_validation_exception_handler(request: Request, exc: RequestValidationError):
        return error_response(
            status_code=422,
            message="Validation error",
            data={"code": "VALIDATION_FAILED", "details": format_validation_error_details(exc.errors())},
            request_id=request_id_from(request),
        )

    @app.exception_handler(Exception)
    async def custom_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        details = str(exc) if (settings.debug_include_error_details and not settings.is_production) else None
        return error_response(
            status_code=500,
            message="Internal Server Error",
            data={"code": "INTERNAL_ERROR", "details": details},
            request_id=request_id_from(request),
        )

    @app.get("/health", tags=["Health"])
    @document_response(message="Health check completed")
    async def health_check(request: Request):
        app_context = get_app_context(request)
        services: dict[str, dict[str, str | float]] = {}
        overall_status = "healthy"

        start = time.perf_counter()
        try:
            await app_context.database.command("ping")
            services["mongo"] = {
                "status": "healthy",
                "latency_ms": round((time.perf_counter() - start) * 1000, 2),
                "message": "MongoDB ping successful",
            }
        except Exception as exc:
            overall_status = "degraded"
            services["mongo"] = {
                "status": "unhealthy",
                "latency_ms": round((time.perf_counter() - start) * 1000, 2),
                "message": str(exc),
            }

        services["storage"] = {"status": "configured", "latency_ms": 0, "message": app_context.storage.backend_name}

        return {
            "status": overall_status,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "services": services,
        }

    app.include_router(v1_upload_token_route_router, prefix="/v1")
    app.include_router(v1_public_upload_route_router, prefix="/v1")
    app.include_router(v1_documents_route_router, prefix="/v1")

    return app
