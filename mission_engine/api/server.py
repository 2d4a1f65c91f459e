"""FastAPI application setup"""
import logging
from contextlib import asynccontextmanager
from typing import Optional
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from mission_engine import __version__
from mission_engine.api.metrics_routes import router as metrics_router
from mission_engine.api.middleware import setup_cors
from mission_engine.api.routes import router
from mission_engine.config import LOG_LEVEL, MISSION_STORE_BACKEND
from mission_engine.db.connection import db
from mission_engine.exceptions import (
    ConflictError,
    InvalidStateError,
    InvalidTargetError,
    MissionEngineError,
    RecordNotFoundError,
    StoreUnavailableError,
    ValidationError,
)
from mission_engine.observability.metrics import errors_total
from mission_engine.observability.metrics_middleware import setup_metrics_middleware
from mission_engine.services.container import (
    ServiceContainer,
    build_memory_container,
    build_postgres_container,
    init_container,
    reset_container,
)

# Configure logging
logging.basicConfig(
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    level=getattr(logging, LOG_LEVEL)
)

logger = logging.getLogger(__name__)

# Most specific first
ERROR_STATUS_CODES = [
    (ConflictError, 409),
    (InvalidStateError, 409),
    (RecordNotFoundError, 404),
    (ValidationError, 422),
    (StoreUnavailableError, 503),
]


def status_code_for(exc: MissionEngineError) -> int:
    """HTTP status for an engine error; 500 for anything not caused by the caller"""
    for error_class, status_code in ERROR_STATUS_CODES:
        if isinstance(exc, error_class):
            return status_code
    return 500


async def mission_error_handler(request: Request, exc: MissionEngineError) -> JSONResponse:
    """Render engine errors; server-side defects get a generic body"""
    status_code = status_code_for(exc)
    errors_total.labels(error_type=exc.__class__.__name__, component="api").inc()

    if status_code == 500:
        if isinstance(exc, InvalidTargetError):
            logger.error(f"Mission catalog misconfiguration: {exc.message} [request_id={exc.request_id}]")
        return JSONResponse(
            status_code=500,
            content={"error": "Internal server error", "request_id": exc.request_id}
        )

    return JSONResponse(status_code=status_code, content=exc.to_dict())


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """422 without echoing the rejected input, which may not be JSON-serializable (NaN, Infinity)"""
    errors = [
        {key: value for key, value in error.items() if key not in ("input", "ctx")}
        for error in exc.errors()
    ]
    return JSONResponse(status_code=422, content={"detail": jsonable_encoder(errors)})


def create_api_application(container: Optional[ServiceContainer] = None) -> FastAPI:
    """
    Create and configure FastAPI application

    Args:
        container: Pre-built service container. When omitted, one is built at
            startup for MISSION_STORE_BACKEND (opening the database pool for
            the postgres backend).
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Lifecycle manager for FastAPI application"""
        logger.info("Starting mission engine API...")
        owns_pool = False
        if container is not None:
            init_container(container)
        elif MISSION_STORE_BACKEND == "memory":
            init_container(build_memory_container())
        else:
            await db.init_pool()
            owns_pool = True
            logger.info("Database pool initialized")
            init_container(build_postgres_container(db))

        yield

        logger.info("Shutting down mission engine API...")
        reset_container()
        if owns_pool:
            await db.close_pool()
            logger.info("Database pool closed")

    app = FastAPI(
        title="Mission Engine API",
        description="Wellness missions: accept, track progress, complete",
        version=__version__,
        lifespan=lifespan
    )

    # Setup middleware
    setup_cors(app)
    setup_metrics_middleware(app)

    # Include routes
    app.include_router(router)
    app.include_router(metrics_router)

    app.add_exception_handler(MissionEngineError, mission_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)

    # Global exception handler
    @app.exception_handler(Exception)
    async def global_exception_handler(request, exc):
        logger.error(f"Unhandled exception: {exc}", exc_info=True)
        errors_total.labels(error_type=exc.__class__.__name__, component="api").inc()
        return JSONResponse(
            status_code=500,
            content={"error": "Internal server error"}
        )

    logger.info("FastAPI application created")

    return app
