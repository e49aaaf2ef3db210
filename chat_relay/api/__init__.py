"""FastAPI endpoints for the chat relay.

HTTP and streaming routes with async request handling.
Supports Server-Sent Events for real-time chat streaming.

Endpoints:
    - GET /health: Service health status
    - POST /chat: Streaming chat completion relay
"""

from chat_relay.api.app import create_app

__all__ = ["create_app"]
