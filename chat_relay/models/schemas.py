from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class Role(str, Enum):
    """Speaker of a conversation turn."""

    USER = "user"
    ASSISTANT = "assistant"


class Turn(BaseModel):
    """One role-tagged unit of conversation content.

    Attributes:
        role: Who produced the content.
        content: The message text.
    """

    model_config = ConfigDict(frozen=True)

    role: Role
    content: str


class ChatRequest(BaseModel):
    """Request payload for the streaming chat endpoint.

    Accepts the full conversation, or a single ``message`` which is
    normalized into a one-turn conversation.

    Attributes:
        messages: Ordered conversation history, oldest first.
        message: Single user message (legacy single-turn form).
    """

    messages: list[Turn] | None = Field(None, min_length=1)
    message: str | None = Field(None, min_length=1)

    @field_validator("message", mode="before")
    @classmethod
    def strip_message(cls, v: str) -> str:
        """Strip whitespace from message before validation."""
        if isinstance(v, str):
            return v.strip()
        return v

    @model_validator(mode="after")
    def require_conversation(self) -> "ChatRequest":
        if self.messages is None and self.message is None:
            raise ValueError("Request body must include 'messages' or 'message'")
        return self

    def to_conversation(self) -> list[Turn]:
        if self.messages is not None:
            return list(self.messages)
        return [Turn(role=Role.USER, content=self.message or "")]


class ErrorResponse(BaseModel):
    """JSON body returned when a request fails before streaming starts.

    Attributes:
        error: Short description of the failure.
        details: Extra context, e.g. the provider's own error text.
    """

    error: str
    details: str | None = None
