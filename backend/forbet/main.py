"""
backend/forbet/main.py

Purpose:
    FastAPI application bootstrap: context lifecycle, middleware/router
    wiring and exception mapping for provider exhaustion.

Dependencies:
    - forbet.context
    - forbet.routers.*
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from forbet.config import Settings, settings as default_settings
from forbet.context import AppContext
from forbet.errors import ProviderError, ProvidersExhaustedError
from forbet.middleware.logging import StructuredLoggingMiddleware, setup_logging
from forbet.routers.cache_admin import router as cache_admin_router
from forbet.routers.fixtures import router as fixtures_router

logger = logging.getLogger("forbet")


def create_app(settings: Settings = default_settings, context: AppContext | None = None) -> FastAPI:
    """Build the app; ``context`` lets tests inject fakes instead of real providers."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        setup_logging(settings.LOG_LEVEL)
        ctx = context or AppContext.build(settings)
        await ctx.start()
        app.state.ctx = ctx
        logger.info("forbet-data started")

        yield

        await ctx.aclose()
        logger.info("forbet-data stopped")

    app = FastAPI(
        title="forbet-data",
        description="Multi-provider football fixture acquisition and caching",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.BACKEND_CORS_ORIGINS.split(","),
        allow_credentials=True,
        allow_methods=["GET", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type"],
    )
    app.add_middleware(StructuredLoggingMiddleware)

    app.include_router(fixtures_router)
    app.include_router(cache_admin_router)

    @app.exception_handler(ProvidersExhaustedError)
    async def providers_exhausted_handler(request: Request, exc: ProvidersExhaustedError):
        logger.error("Providers exhausted on %s %s: %s", request.method, request.url.path, exc)
        return JSONResponse(
            status_code=503,
            content={
                "detail": str(exc),
                "retryable": True,
                "failures": [{"provider": f.provider, "message": f.message} for f in exc.failures],
            },
        )

    @app.exception_handler(ProviderError)
    async def provider_error_handler(request: Request, exc: ProviderError):
        logger.warning("Provider error on %s %s: %s", request.method, request.url.path, exc)
        return JSONResponse(
            status_code=502,
            content={"detail": f"Upstream provider {exc.provider} failed.", "retryable": True},
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        """Return clean validation errors without leaking internal field paths."""
        errors = []
        for err in exc.errors():
            loc = err.get("loc", ())
            field = ".".join(str(part) for part in loc[1:]) if len(loc) > 1 else str(loc[-1]) if loc else "unknown"
            errors.append({"field": field, "message": err.get("msg", "Invalid value.")})
        return JSONResponse(status_code=422, content={"detail": "Validation error.", "errors": errors})

    @app.exception_handler(ValueError)
    async def value_error_handler(request: Request, exc: ValueError):
        logger.warning("ValueError on %s %s: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=400, content={"detail": str(exc) or "Invalid input."})

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        """Catch-all: log the real error, return a safe generic message."""
        logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content={"detail": "An internal error occurred."})

    @app.get("/health")
    async def health(request: Request):
        ctx: AppContext = request.app.state.ctx
        circuits = {
            name: {"circuit_open": adapter.circuit_open}
            for name, adapter in ctx.providers.items()
        }
        connected = ctx.cache.is_connected()
        return {
            "status": "healthy" if connected else "degraded",
            "cache": ctx.cache.get_cache_info(),
            "providers": circuits,
        }

    return app


app = create_app()
