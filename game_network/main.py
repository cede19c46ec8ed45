"""
Game server network - FastAPI observer application and process entry point.
"""

import argparse
import uuid
from contextlib import asynccontextmanager
from typing import List, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .api.routes import router
from .cloudprovider.registry import PluginRegistry, build_registry
from .config import Settings, get_settings, load_settings, validate_configuration
from .exceptions import (
    ApiCallError,
    ErrorCode,
    GameNetworkError,
    PluginNotFoundError,
)
from .kube.client import create_kubernetes_client
from .models.base import ErrorResponse
from .utils.logging import get_logger, setup_logging

logger = get_logger(__name__)


def generate_request_id() -> str:
    """Generate a unique request ID for error tracking."""
    return str(uuid.uuid4())[:8]


async def game_network_exception_handler(request: Request, exc: GameNetworkError):
    """Handle GameNetworkError exceptions with structured response."""
    request_id = generate_request_id()

    if isinstance(exc, PluginNotFoundError):
        status_code = 404
    elif isinstance(exc, ApiCallError):
        status_code = 502
    else:
        status_code = 500

    if status_code >= 500:
        logger.error(f"[{request_id}] Server error for {request.url}: {exc}", exc_info=exc.cause)
    else:
        logger.warning(f"[{request_id}] Client error for {request.url}: {exc}")

    error_dict = exc.to_dict()
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(
            error=error_dict["error"],
            message=error_dict["message"],
            details=error_dict["details"],
            request_id=request_id
        ).model_dump(mode='json')
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Handle HTTP exceptions with structured response."""
    request_id = generate_request_id()
    logger.warning(f"[{request_id}] HTTP error {exc.status_code} for {request.url}: {exc.detail}")

    error_code_map = {
        404: ErrorCode.NOT_FOUND.value,
        409: ErrorCode.CONFLICT.value,
        422: ErrorCode.VALIDATION_ERROR.value,
        500: ErrorCode.INTERNAL_SERVER_ERROR.value,
        503: "SERVICE_UNAVAILABLE",
    }

    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(
            error=error_code_map.get(exc.status_code, f"HTTP_{exc.status_code}"),
            message=str(exc.detail) if exc.detail else f"HTTP {exc.status_code} error occurred",
            details={"status_code": exc.status_code},
            request_id=request_id
        ).model_dump(mode='json')
    )


def create_app(registry: PluginRegistry, settings: Optional[Settings] = None,
               lifespan=None) -> FastAPI:
    """Build the observer application around an existing plugin registry."""
    settings = settings or get_settings()

    app = FastAPI(
        title=settings.api.title,
        description=settings.api.description,
        version=settings.api.version,
        lifespan=lifespan
    )
    app.state.registry = registry
    app.state.settings = settings

    app.add_exception_handler(GameNetworkError, game_network_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.include_router(router)
    return app


def build_application(settings: Optional[Settings] = None) -> FastAPI:
    """Application that connects to the cluster and initialises every plugin on start-up."""
    settings = settings or get_settings()
    registry = build_registry(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        for issue in validate_configuration(settings):
            logger.warning(f"Configuration issue: {issue}")

        client = await create_kubernetes_client(settings)
        app.state.client = client
        try:
            for plugin in registry.plugins():
                await plugin.init(client, settings.cloud_provider)
            logger.info(
                "Game server network started",
                extra={'environment': settings.environment.value, 'plugins': registry.names()}
            )
            yield
        finally:
            await client.close()
            logger.info("Game server network stopped")

    return create_app(registry, settings, lifespan=lifespan)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Game server network plugins and observer API"
    )
    parser.add_argument(
        "--config",
        help="YAML or JSON settings file, layered over GSN_ environment variables"
    )
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> None:
    import uvicorn

    args = parse_args(argv)
    settings = load_settings(args.config) if args.config else get_settings()
    setup_logging(
        log_level=settings.monitoring.log_level.value,
        structured=settings.monitoring.structured_logging
    )
    uvicorn.run(build_application(settings), host=settings.api.host, port=settings.api.port)


if __name__ == "__main__":
    main()
