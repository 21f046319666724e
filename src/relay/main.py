"""
Main FastAPI application for the chat relay.
"""

import argparse
import asyncio
import logging
import os
import sys
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import structlog
import uvicorn

from .api.routes import router as api_router
from .config import AppConfig, load_config
from .errors import RelayError
from .gateway import ChatRelay
from .providers.registry import ProviderRegistry
from .translator.registry import TranslatorRegistry
from .utils.http_client import HTTPClient

__version__ = "1.0.0"


def configure_logging(debug: bool = False, json_logs: bool = False) -> None:
    """Configure structlog on top of stdlib logging."""
    shared_processors = [
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    structlog.configure(
        processors=[structlog.stdlib.filter_by_level]
        + shared_processors
        + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    renderer = structlog.processors.JSONRenderer() if json_logs else structlog.dev.ConsoleRenderer()
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=renderer,
            foreign_pre_chain=shared_processors,
        )
    )

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(logging.DEBUG if debug else logging.INFO)


logger = structlog.get_logger(__name__)


class AppState:
    """Application state shared across the application."""
    def __init__(self):
        self.config: Optional[AppConfig] = None
        self.http_client: Optional[HTTPClient] = None
        self.provider_registry: Optional[ProviderRegistry] = None
        self.translator_registry: Optional[TranslatorRegistry] = None
        self.chat_relay: Optional[ChatRelay] = None
        self.is_shutting_down = False


def create_app(
    config: Optional[AppConfig] = None,
    http_client: Optional[HTTPClient] = None,
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        config: Configuration to use instead of loading one at startup
        http_client: HTTP client to use instead of creating one at startup

    Returns:
        FastAPI application
    """
    app_state = AppState()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Lifespan manager for FastAPI application."""
        logger.info("Starting chat relay")

        try:
            app_state.config = config or load_config(os.getenv("RELAY_CONFIG_FILE"))
            configure_logging(debug=app_state.config.debug, json_logs=app_state.config.json_logs)
            logger.info("Configuration loaded", port=app_state.config.port)

            app_state.http_client = http_client or HTTPClient(
                config=app_state.config,
                timeout=app_state.config.request_timeout,
            )
            app_state.provider_registry = ProviderRegistry(app_state.config, app_state.http_client)
            app_state.translator_registry = TranslatorRegistry(app_state.config.cohere.web_connector_id)
            app_state.chat_relay = ChatRelay(
                app_state.config,
                app_state.provider_registry,
                app_state.translator_registry,
            )

            # Set state on app for route access
            app.state.config = app_state.config
            app.state.provider_registry = app_state.provider_registry
            app.state.chat_relay = app_state.chat_relay

            logger.info("Application startup completed")
            yield

        except Exception as e:
            logger.error("Failed to start application", error=str(e), exc_info=True)
            raise

        finally:
            logger.info("Shutting down chat relay")
            app_state.is_shutting_down = True

            if app_state.http_client:
                await app_state.http_client.aclose()

            logger.info("Application shutdown completed")

    app = FastAPI(
        title="Chat Relay",
        description="OpenAI-compatible chat completions relayed to Cohere and Bing",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs" if os.getenv("ENABLE_DOCS", "false").lower() == "true" else None,
        redoc_url="/redoc" if os.getenv("ENABLE_DOCS", "false").lower() == "true" else None,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """Log all incoming requests."""
        start_time = asyncio.get_running_loop().time()

        request_id = request.headers.get("X-Request-ID", "unknown")
        client_ip = request.client.host if request.client else "unknown"
        method = request.method
        path = request.url.path

        logger.info(
            "Request started",
            request_id=request_id,
            client_ip=client_ip,
            method=method,
            path=path,
        )

        response = await call_next(request)
        process_time = asyncio.get_running_loop().time() - start_time

        logger.info(
            "Request completed",
            request_id=request_id,
            method=method,
            path=path,
            status_code=response.status_code,
            process_time=f"{process_time:.3f}s",
        )

        response.headers["X-Process-Time"] = f"{process_time:.3f}"
        return response

    @app.exception_handler(RelayError)
    async def relay_error_handler(request: Request, exc: RelayError):
        """Render relay errors with their own status."""
        log = logger.error if exc.status_code >= 500 else logger.warning
        log(
            "Request rejected",
            path=request.url.path,
            status_code=exc.status_code,
            code=exc.code,
            error=exc.message,
        )
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Global exception handler."""
        logger.error(
            "Unhandled exception",
            path=request.url.path,
            method=request.method,
            error=str(exc),
            exc_info=True,
        )

        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": {
                    "message": "Internal server error",
                    "type": "internal_error",
                    "code": "internal_error",
                }
            },
        )

    @app.exception_handler(404)
    async def not_found_handler(request: Request, exc: Exception):
        """Handle 404 errors."""
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content={
                "error": {
                    "message": f"Endpoint {request.url.path} not found",
                    "type": "not_found",
                    "code": "not_found",
                }
            },
        )

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        if app_state.is_shutting_down:
            return JSONResponse(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                content={"status": "shutting_down"},
            )

        return {
            "status": "healthy",
            "version": __version__,
            "services": {
                "api": "healthy",
                "config": "healthy" if app_state.config else "unhealthy",
                "providers": "healthy" if app_state.provider_registry else "unhealthy",
                "relay": "healthy" if app_state.chat_relay else "unhealthy",
            },
        }

    @app.get("/")
    async def root():
        """Root endpoint with API information."""
        return {
            "name": "Chat Relay",
            "version": __version__,
            "description": "OpenAI-compatible chat completions relayed to Cohere and Bing",
            "endpoints": {
                "health": "/health",
                "openai_compatible": "/v1/chat/completions",
                "models": "/v1/models",
                "providers": "/v1/providers",
            },
            "supported_providers": ["cohere", "bing"],
        }

    app.include_router(api_router, prefix="/v1")

    return app


app = create_app()


def main():
    """Main entry point for the application."""
    parser = argparse.ArgumentParser(description="Chat Relay Server")
    parser.add_argument(
        "--config",
        type=str,
        help="Path to configuration file",
    )
    parser.add_argument(
        "--port",
        type=int,
        help="Port to run the server on (overrides config)",
    )
    parser.add_argument(
        "--host",
        type=str,
        help="Host to bind the server to (overrides config)",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=1,
        help="Number of worker processes",
    )
    parser.add_argument(
        "--reload",
        action="store_true",
        help="Enable auto-reload for development",
    )
    args = parser.parse_args()

    if args.config:
        os.environ["RELAY_CONFIG_FILE"] = args.config

    config = load_config(args.config)

    uvicorn.run(
        "relay.main:app",
        host=args.host or config.host,
        port=args.port or config.port,
        workers=args.workers if not args.reload else 1,
        reload=args.reload,
        log_config=None,
        access_log=True,
    )


if __name__ == "__main__":
    main()
