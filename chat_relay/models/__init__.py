"""Pydantic models for API requests and responses.

Provides type safety, validation, and automatic OpenAPI documentation.

Models:
    - Role: Speaker of a turn (user or assistant)
    - Turn: Individual role/content unit of a conversation
    - ChatRequest: Incoming chat request payload
    - ErrorResponse: JSON error body for failures before streaming
"""

from chat_relay.models.schemas import ChatRequest, ErrorResponse, Role, Turn

__all__ = ["ChatRequest", "ErrorResponse", "Role", "Turn"]
