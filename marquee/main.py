"""
Main FastAPI application
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import logging
import time
from prometheus_client import make_asgi_app
import uuid

from marquee.config import settings
from marquee.core.database import db_manager, init_db, close_db
from marquee.core.exceptions import MarqueeException
from marquee.core.logging import setup_logging
from marquee.core.metrics import REQUEST_COUNT, REQUEST_DURATION
from marquee.core.seeding import seed_if_empty
from marquee.schemas.response import ErrorDetail, ErrorResponse
from marquee.services import build_services
from marquee.api.v1.api import api_router

# Setup logging
setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager
    """
    # Startup
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")

    await init_db(db_manager)
    logger.info("Database connection established")

    services = build_services(db_manager)
    app.state.services = services

    if settings.SEED_DEMO_DATA:
        await seed_if_empty(db_manager, services.seat_inventory)

    yield

    # Shutdown
    logger.info("Shutting down application")
    await close_db(db_manager)


def _error_response(status_code: int, code: str, message: str, details: dict = None) -> JSONResponse:
    body = ErrorResponse(error=ErrorDetail(code=code, message=message, details=details or {}))
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))


def create_app() -> FastAPI:
    app = FastAPI(
        title=settings.APP_NAME,
        description="Movie theater seat reservation and ticketing",
        version=settings.APP_VERSION,
        docs_url="/docs" if settings.DEBUG else None,
        redoc_url="/redoc" if settings.DEBUG else None,
        openapi_url="/openapi.json" if settings.DEBUG else None,
        lifespan=lifespan
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=False,
        allow_methods=settings.CORS_ALLOW_METHODS,
        allow_headers=settings.CORS_ALLOW_HEADERS,
    )

    @app.middleware("http")
    async def track_requests(request: Request, call_next):
        """
        Track request metrics and add request ID
        """
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id

        start_time = time.perf_counter()
        response = await call_next(request)
        duration = time.perf_counter() - start_time

        # Route template keeps the label set bounded
        route = request.scope.get("route")
        endpoint = getattr(route, "path", request.url.path)

        REQUEST_COUNT.labels(
            method=request.method,
            endpoint=endpoint,
            status=response.status_code
        ).inc()
        REQUEST_DURATION.labels(
            method=request.method,
            endpoint=endpoint
        ).observe(duration)

        response.headers["X-Request-ID"] = request_id
        response.headers["X-Process-Time"] = str(duration)
        return response

    @app.exception_handler(MarqueeException)
    async def marquee_exception_handler(request: Request, exc: MarqueeException):
        if exc.status_code >= 500:
            logger.error(f"{exc.code} on {request.method} {request.url.path}: {exc.message}")
        else:
            logger.info(f"{exc.code} on {request.method} {request.url.path}: {exc.message}")
        return _error_response(exc.status_code, exc.code, exc.message, exc.details)

    @app.exception_handler(404)
    async def not_found_handler(request: Request, exc):
        return _error_response(404, "NOT_FOUND", "The requested resource was not found")

    @app.exception_handler(Exception)
    async def internal_error_handler(request: Request, exc: Exception):
        logger.error(f"Internal server error: {exc}", exc_info=exc)
        return _error_response(500, "INTERNAL_ERROR", "An internal server error occurred")

    @app.get("/")
    async def root():
        """Root endpoint"""
        return {
            "name": settings.APP_NAME,
            "version": settings.APP_VERSION,
            "environment": settings.APP_ENV,
            "api_docs": "/docs" if settings.DEBUG else None
        }

    app.include_router(api_router, prefix=settings.API_PREFIX)

    # Mount Prometheus metrics endpoint
    if settings.PROMETHEUS_ENABLED:
        app.mount("/metrics", make_asgi_app())

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "marquee.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower()
    )
