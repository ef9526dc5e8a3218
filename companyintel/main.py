"""
CompanyIntel — Company Intelligence Service

Composite public-registry reports (SEC, CFPB, EPA, OSHA, USPTO, FDIC) with a
trust score on top.

Start with:
    uvicorn companyintel.main:app --host 0.0.0.0 --port 8000
"""
import time
import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
import httpx
import structlog

from companyintel import __version__
from companyintel.api.reports import router as reports_router
from companyintel.compute.cache import ResultCache
from companyintel.compute.pipeline import ReportPipeline
from companyintel.config import Settings, get_settings

structlog.configure(
    processors=[
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.JSONRenderer(),
    ],
)
logger = structlog.get_logger()


def create_app(
    settings: Optional[Settings] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    """Build the service. `transport` replaces the network for every upstream call."""
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("service_starting", version=__version__, environment=settings.ENVIRONMENT)

        cache = ResultCache(sweep_interval=settings.CACHE_SWEEP_INTERVAL)
        await cache.start()
        app.state.cache = cache
        app.state.pipeline = ReportPipeline(cache, settings=settings, transport=transport)

        yield

        await cache.close()
        logger.info("service_stopped")

    app = FastAPI(
        title="CompanyIntel — Company Intelligence API",
        description=(
            "Composite company reports from public U.S. registries, "
            "with a transparent trust score."
        ),
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    @app.middleware("http")
    async def request_middleware(request: Request, call_next):
        request_id = str(uuid.uuid4())[:8]
        start = time.time()
        request.state.request_id = request_id
        response = await call_next(request)
        duration_ms = round((time.time() - start) * 1000, 2)
        response.headers["X-Request-Id"] = request_id
        response.headers["X-Response-Time"] = f"{duration_ms}ms"
        if request.url.path != "/health":
            logger.info("request",
                        method=request.method,
                        path=request.url.path,
                        status=response.status_code,
                        duration_ms=duration_ms,
                        request_id=request_id)
        return response

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.error("unhandled_exception",
                     path=request.url.path,
                     error=str(exc),
                     type=type(exc).__name__)
        return JSONResponse(
            status_code=500,
            content={
                "error": "internal_server_error",
                "message": "Something went wrong.",
                "request_id": getattr(request.state, "request_id", "unknown"),
            },
        )

    app.include_router(reports_router)

    @app.get("/health")
    async def health(request: Request):
        return {
            "status": "healthy",
            "service": "companyintel",
            "version": __version__,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "cache": request.app.state.cache.stats(),
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("companyintel.main:app", host=get_settings().HOST, port=get_settings().PORT)
