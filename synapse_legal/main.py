"""FastAPI application entry point."""

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional
from uuid import uuid4

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from synapse_legal.api.v1.endpoints import health
from synapse_legal.api.v1.router import api_router
from synapse_legal.core.config import settings
from synapse_legal.core.context import AppContext, build_context
from synapse_legal.core.database import close_database, init_database
from synapse_legal.core.exceptions import AppError, AuthError
from synapse_legal.services.document_service import ALLOWED_MIME_TYPES
from synapse_legal.utils.logging import get_logger
from synapse_legal.utils.responses import create_error_detail

LOGGER = get_logger(__name__, level=settings.log_level)


class RootResponse(BaseModel):
    """Root endpoint response payload."""

    message: str = Field(..., description="Service status message")
    version: str = Field(..., description="Running application version")
    docs: str = Field(..., description="Path to the interactive API docs")
    health: str = Field(..., description="Path to the health check endpoint")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    context: AppContext = app.state.context
    app_settings = context.settings

    LOGGER.info(
        "Starting application",
        extra={
            "app_name": app_settings.app_name,
            "version": app_settings.app_version,
            "environment": app_settings.environment,
            "kv_backend": context.kv_store.__class__.__name__,
        },
    )

    if context.db_client is not None:
        try:
            await init_database(context.db_client)
        except Exception as e:
            LOGGER.error(f"Database initialization failed: {e}", exc_info=True)

    if app_settings.storage.ensure_bucket and app_settings.supabase_url:
        try:
            await context.storage.ensure_bucket(app_settings.storage.bucket, ALLOWED_MIME_TYPES)
        except AppError as e:
            LOGGER.error(f"Storage bucket setup failed: {e}", exc_info=True)

    yield

    LOGGER.info("Shutting down application")
    if context.db_client is not None:
        await close_database(context.db_client)


def _error_response(request: Request, status_code: int, title: str, detail: str, headers=None) -> JSONResponse:
    error_detail = create_error_detail(title=title, status=status_code, detail=detail, request=request)
    return JSONResponse(
        status_code=status_code,
        content={"detail": error_detail.model_dump(mode="json")},
        headers=headers,
    )


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code >= 500:
        LOGGER.error(
            f"{exc.__class__.__name__}: {exc.message}",
            exc_info=exc.original_error or exc,
            extra={"path": request.url.path},
        )
        # Backend details stay in the logs
        return _error_response(request, exc.status_code, exc.title, "An internal error occurred")

    LOGGER.warning(
        f"{exc.__class__.__name__}: {exc.message}",
        extra={"path": request.url.path, "status_code": exc.status_code},
    )
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, AuthError) else None
    return _error_response(request, exc.status_code, exc.title, exc.message, headers=headers)


async def request_validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    messages = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        messages.append(f"{location}: {error.get('msg')}" if location else error.get("msg", "Invalid value"))
    return _error_response(request, 400, "Validation Error", "; ".join(messages) or "Invalid request")


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    LOGGER.error(f"Unhandled error: {exc}", exc_info=exc, extra={"path": request.url.path})
    return _error_response(request, 500, "Internal Server Error", "An internal error occurred")


def create_app(context: Optional[AppContext] = None) -> FastAPI:
    """Build the application around ``context``, or one wired from settings."""
    context = context or build_context(settings)
    app_settings = context.settings

    app = FastAPI(
        title=app_settings.app_name,
        version=app_settings.app_version,
        description="Legal document upload and risk analysis API",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )
    app.state.context = context

    @app.middleware("http")
    async def add_correlation_id(request: Request, call_next):
        correlation_id = request.headers.get("X-Correlation-ID", str(uuid4()))
        request.state.correlation_id = correlation_id
        response = await call_next(request)
        response.headers["X-Correlation-ID"] = correlation_id
        return response

    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=["X-Correlation-ID"],
    )

    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    app.include_router(api_router, prefix=app_settings.api_v1_prefix)
    app.include_router(health.router, prefix="/health", tags=["Health"])

    @app.get(
        "/",
        response_model=RootResponse,
        tags=["Root"],
        summary="Root endpoint",
        description="Get basic information about the API",
        operation_id="get_public_root_metadata",
    )
    async def root() -> RootResponse:
        return RootResponse(
            message="Server is running",
            version=app_settings.app_version,
            docs="/docs",
            health="/health",
        )

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "synapse_legal.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )
