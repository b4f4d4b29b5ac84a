#!/usr/bin/env python3
"""
bssbridge - Main Entry Point

This is the thin orchestration layer that:
1. Loads configuration
2. Initializes modules
3. Runs the API server and the background queue sweeper

All business logic is in the modules, following black box principles.
"""

import logging
import logging.config as log_config
import time
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from bssbridge.config.provider import ConfigProvider, EnvConfigProvider
from bssbridge.logging_config import get_logging_config

# Import modules through their black box interfaces
from bssbridge.modules.api import ErrorCode, create_queue_router, error_response, validation_error_code
from bssbridge.modules.auth import ApiKeyAuth
from bssbridge.modules.config import get_config
from bssbridge.modules.queue import CommandQueue, QueueSweeper
from bssbridge.modules.queue.queue import Clock

# Get configuration
config = get_config()

log_config.dictConfig(get_logging_config(config.get("log_level")))
logger = logging.getLogger(__name__)

HTTP_ERROR_CODES = {
    401: "UNAUTHORIZED",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    503: "SERVICE_UNAVAILABLE",
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application lifecycle - start and stop the expiration sweeper.
    """
    logger.info("Starting bssbridge API...")

    sweeper: Optional[QueueSweeper] = app.state.sweeper
    if sweeper:
        await sweeper.start_background()

    logger.info("bssbridge API started successfully")

    yield

    logger.info("Shutting down bssbridge API...")
    if sweeper:
        await sweeper.stop()
    logger.info("bssbridge API shutdown complete")


def create_app(
    config_provider: Optional[ConfigProvider] = None,
    clock: Optional[Clock] = None,
    enable_sweeper: bool = True,
) -> FastAPI:
    """
    Build the FastAPI application with its own queue instance.

    Args:
        config_provider: Source of queue and auth configuration
        clock: Millisecond clock injected into the queue (tests)
        enable_sweeper: Start the periodic expiration sweep on startup

    Returns:
        Configured FastAPI application
    """
    config_provider = config_provider or EnvConfigProvider()
    queue_config = config_provider.get_queue_config()
    auth_config = config_provider.get_auth_config()

    app = FastAPI(
        title="bssbridge API",
        description="Command mediation queue between a monitoring script and a polling mobile client",
        version=config.get("version"),
        lifespan=lifespan,
    )

    app.state.command_queue = CommandQueue(queue_config, clock=clock)
    app.state.auth = ApiKeyAuth.from_config(auth_config)
    app.state.sweeper = QueueSweeper(app.state.command_queue) if enable_sweeper else None
    app.state.started_at = time.time()
    app.state.version = config.get("version")

    if not auth_config.is_configured and not auth_config.require_auth:
        logger.warning("API_KEY not set - running without authentication")

    logger.info(
        f"Queue configured: max={queue_config.max_queue_size}, "
        f"expiration={queue_config.command_expiration_ms}ms, "
        f"cooldown={queue_config.duplicate_cooldown_ms}ms"
    )

    app.include_router(create_queue_router())
    _register_service_routes(app)
    _register_error_handlers(app)

    return app


def _register_service_routes(app: FastAPI) -> None:
    @app.get("/")
    async def root():
        """Service banner, unauthenticated."""
        return {
            "status": "online",
            "message": "BSS Bridge Server is running",
            "version": app.state.version,
            "endpoints": {
                "status": "/api/status",
                "command": "/api/command",
                "poll": "/api/poll",
                "complete": "/api/complete",
            },
        }

    @app.get("/healthz")
    async def healthz():
        """
        Minimal health check endpoint for readiness and liveness checks.

        Returns:
            200: Service is running
        """
        return {"status": "ok"}


def _register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        """Handle malformed input with a specific error code."""
        code, message = validation_error_code(exc.errors())
        logger.info(f"Rejected {request.method} {request.url.path}: {code.value}")
        return error_response(400, code.value, message)

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        """Render HTTP errors with the common error body."""
        if isinstance(exc.detail, dict):
            return error_response(exc.status_code, exc.detail["error"], exc.detail["message"])
        error = HTTP_ERROR_CODES.get(exc.status_code, "HTTP_ERROR")
        return error_response(exc.status_code, error, str(exc.detail))

    @app.exception_handler(Exception)
    async def internal_error_handler(request: Request, exc: Exception):
        """Handle unexpected faults without leaking details."""
        logger.exception(f"Error in {request.method} {request.url.path}: {exc}")
        return error_response(
            500, ErrorCode.INTERNAL_SERVER_ERROR.value, "An unexpected error occurred"
        )


# Create FastAPI application
app = create_app()


def run(config_provider: Optional[ConfigProvider] = None) -> None:
    """Console entry point."""
    api_config = (config_provider or EnvConfigProvider()).get_api_config()

    # Use dict config for logging, not file path
    uvicorn.run(
        "bssbridge.main:app",
        host=api_config.host,
        port=api_config.port,
        log_level=config.get("log_level").lower(),
        reload=api_config.debug,
        log_config=get_logging_config(config.get("log_level")),
    )


if __name__ == "__main__":
    run()
