"""Main application entry point.

Serves the chat relay on one port, with the NiceGUI chat page mounted
alongside it unless ``RUN_MODE=relay`` asks for the relay alone.
Environment variables are loaded from .env file.
"""

import logging
import os
import sys

from dotenv import load_dotenv
from fastapi import FastAPI

# Load environment variables before any other imports that might need them
load_dotenv()

# Configure logging
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)
logger = logging.getLogger(__name__)


def mount_chat_ui(app: FastAPI) -> None:
    """Register the chat page and mount NiceGUI onto the relay app."""
    from nicegui import ui

    from chat_relay.ui.chat_page import chat_page  # noqa: F401 - Registers the page

    ui.run_with(
        app,
        title="Chat",
        favicon="💬",
        storage_secret=os.getenv("NICEGUI_STORAGE_SECRET", "chat-relay-secret"),
    )


def main() -> None:
    """Application entry point.

    RUN_MODE=relay serves only ``POST /chat`` and ``/health``, for a UI
    hosted elsewhere, e.g. ``python -m chat_relay.ui.chat_page``
    with API_BASE_URL pointing here. Any other value also
    serves the chat page at ``/``.
    """
    import uvicorn

    from chat_relay.api.app import create_app
    from chat_relay.relay.config import get_relay_config

    mode = os.getenv("RUN_MODE", "integrated").lower()
    port = int(os.getenv("PORT", "8000"))
    config = get_relay_config()

    if not config.has_credentials:
        logger.warning("No LLM API key configured; /chat will answer 500 until one is set")
    logger.info(f"Relaying to {config.base_url} with model {config.model_name}")

    app = create_app(config=config)
    if mode != "relay":
        mount_chat_ui(app)
        logger.info(f"Chat UI available at http://localhost:{port}/")

    logger.info(f"Starting chat relay ({mode} mode) on http://localhost:{port}")
    logger.info(f"API docs available at http://localhost:{port}/docs")

    uvicorn.run(
        app,
        host=os.getenv("HOST", "0.0.0.0"),
        port=port,
        log_level=os.getenv("LOG_LEVEL", "info").lower(),
    )


if __name__ == "__main__":
    main()
