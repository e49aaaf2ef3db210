"""FastAPI application factory and configuration.

Main application entry point with lifespan management, middleware,
error handling, and router registration.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from chat_relay.api.chat import router as chat_router
from chat_relay.relay.config import RelayConfig, get_relay_config
from chat_relay.relay.exceptions import RelayError
from chat_relay.relay.forwarder import ChatRelay
from chat_relay.relay.upstream import UpstreamClient

logger = logging.getLogger(__name__)


async def relay_error_handler(request: Request, exc: RelayError) -> JSONResponse:
    """Report a relay failure that happened before streaming started."""
    if exc.status_code >= 500:
        logger.error(f"{request.url.path} failed: {exc.message} ({exc.details})")
    else:
        logger.warning(f"{request.url.path} rejected: {exc.message} ({exc.details})")
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_response().model_dump(exclude_none=True),
    )


def create_app(
    config: RelayConfig | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        config: Relay configuration. Loads from environment if not provided.
        http_client: Client used for upstream requests. A client owned by
            the app is created (and closed on shutdown) if not provided.

    Returns:
        Configured FastAPI application instance.
    """
    config = config or get_relay_config()
    owns_client = http_client is None
    upstream_http = http_client or httpx.AsyncClient(timeout=config.request_timeout)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
        """Manage application startup and shutdown lifecycle.

        Yields:
            Control to the application while it runs.
        """
        # Startup
        logger.info(f"Starting chat relay (model={config.model_name})...")
        if not config.has_credentials:
            logger.warning("No upstream API key configured; chat requests will fail")
        yield
        # Shutdown
        if owns_client:
            await upstream_http.aclose()
        logger.info("Shutting down chat relay...")

    application = FastAPI(
        title="Chat Relay API",
        description=(
            "Streaming relay between a browser chat client and an OpenAI-compatible "
            "chat-completion provider. Forwards the conversation upstream and "
            "re-emits generated tokens as server-sent events."
        ),
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    application.state.relay = ChatRelay(config, UpstreamClient(config, upstream_http))

    application.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["*"],
    )

    application.add_exception_handler(RelayError, relay_error_handler)
    application.include_router(chat_router)

    @application.get("/health")
    async def health_check() -> dict[str, str]:
        """Check service health status."""
        return {"status": "healthy", "service": "chat-relay"}

    return application
