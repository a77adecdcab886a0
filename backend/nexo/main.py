"""FastAPI application entrypoint.

Configures CORS, includes routers, renders every error as `{error, details?}`
and exposes a healthcheck endpoint.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

from .agent.exceptions import DataAccessError, NexoError, RecordNotFoundError
from .deps import Settings, get_settings
from .routers import agent as agent_router
from .routers import catalog as catalog_router
from .routers import dashboard as dashboard_router
from .telemetry import capture_exception, init_sentry
from . import schemas

# Import models so Alembic can discover metadata
from . import models  # noqa: F401


SERVICE_NAME = "NEXO MG Tools"

# Public error message per failure kind; the exception text only goes to `details`
ANALYSIS_ERROR_MESSAGE = "Erro ao processar análise"
DATA_ERROR_MESSAGE = "Erro ao acessar os dados"
INTERNAL_ERROR_MESSAGE = "Erro interno do servidor"
VALIDATION_ERROR_MESSAGE = "Requisição inválida"


def _error_response(
    status_code: int,
    error: str,
    details: Optional[str],
    settings: Settings,
) -> JSONResponse:
    body = {"error": error}
    if settings.DEBUG and details:
        body["details"] = details
    return JSONResponse(status_code=status_code, content=body)


def register_exception_handlers(app: FastAPI, settings: Settings) -> None:
    """Map every failure to the `{error, details?}` body."""

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        # HTTPException detail is already user-facing
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": str(exc.detail)},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        logger.info(f"[API] Invalid request to {request.url.path}: {exc.errors()}")
        return _error_response(
            status.HTTP_400_BAD_REQUEST,
            VALIDATION_ERROR_MESSAGE,
            str(exc.errors()),
            settings,
        )

    @app.exception_handler(RecordNotFoundError)
    async def not_found_handler(request: Request, exc: RecordNotFoundError):
        return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"error": exc.message})

    @app.exception_handler(DataAccessError)
    async def data_access_handler(request: Request, exc: DataAccessError):
        logger.error(f"[API] Data access failure on {request.url.path}: {exc.message}")
        capture_exception(exc, extra={"path": request.url.path, "operation": exc.operation})
        return _error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            DATA_ERROR_MESSAGE,
            exc.message,
            settings,
        )

    @app.exception_handler(NexoError)
    async def nexo_error_handler(request: Request, exc: NexoError):
        # ModelInvocationError and HistoryPersistenceError
        logger.error(f"[API] {type(exc).__name__} on {request.url.path}: {exc.message}")
        capture_exception(exc, extra={"path": request.url.path})
        return _error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            ANALYSIS_ERROR_MESSAGE,
            exc.message,
            settings,
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception(f"[API] Unhandled error on {request.url.path}: {exc}")
        capture_exception(exc, extra={"path": request.url.path})
        return _error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            INTERNAL_ERROR_MESSAGE,
            str(exc),
            settings,
        )


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()

    init_sentry(settings)

    app = FastAPI(
        title="NEXO API",
        description="""
        NEXO is the conversational analytics agent of MG Tools.

        This API provides endpoints for:
        - Natural language questions answered from live sales data
        - Persisted chat history with the agent
        - Dashboard KPIs
        - Read-only client and product listings

        ## Authentication

        Every endpoint except /health requires a JWT in the `access_token`
        cookie ("Bearer <jwt>") or in the Authorization header.
        """,
        version="1.0.0",
    )
    app.state.settings = settings

    # BACKEND_CORS_ORIGINS is a comma-separated list
    allowed_origins = [origin.strip() for origin in settings.BACKEND_CORS_ORIGINS.split(",") if origin.strip()]
    logger.info(f"[CORS] Allowed origins: {allowed_origins}")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app, settings)

    app.include_router(agent_router.router)
    app.include_router(dashboard_router.router)
    app.include_router(catalog_router.router)

    @app.get(
        "/health",
        response_model=schemas.HealthResponse,
        tags=["Health"],
        summary="Health check",
        description="""
        Simple health check endpoint to verify the API is running.

        This endpoint:
        - Does not require authentication
        - Does not touch the database or the language model
        - Can be used for load balancer health checks
        """,
    )
    def health():
        return schemas.HealthResponse(
            status="ok",
            service=SERVICE_NAME,
            timestamp=datetime.now(timezone.utc).isoformat(),
            environment=settings.ENVIRONMENT,
        )

    return app


app = create_app()
