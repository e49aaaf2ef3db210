"""Client-side message list with an explicit open/finalized lifecycle.

An assistant reply starts as an open placeholder, grows only through
``append_to_open_message``, and ends either finalized or replaced by an
error message. User and error messages are settled from the start.
"""

import uuid
from collections.abc import Iterator
from enum import Enum

from pydantic import BaseModel, Field

from chat_relay.models.schemas import Role, Turn

ERROR_PREFIX = "❌ "


class MessageState(str, Enum):
    """Lifecycle states of a chat message."""

    OPEN = "open"
    FINALIZED = "finalized"
    REPLACED = "replaced"
    SETTLED = "settled"


class MessageStateError(RuntimeError):
    """Raised when a message is mutated outside its allowed state."""


def new_message_id() -> str:
    return uuid.uuid4().hex


class Message(BaseModel):
    """A message as displayed in the chat window.

    Attributes:
        id: Locally generated identifier, never sent to the relay.
        role: The speaker.
        content: Current text; grows while the message is open.
        state: Lifecycle state.
        is_error: Whether this message reports a failed reply.
    """

    id: str = Field(default_factory=new_message_id)
    role: Role
    content: str = ""
    state: MessageState = MessageState.SETTLED
    is_error: bool = False

    @property
    def is_open(self) -> bool:
        return self.state is MessageState.OPEN

    def to_turn(self) -> Turn:
        return Turn(role=self.role, content=self.content)


class MessageLog:
    """Ordered messages addressed by id.

    Insertion order is display order and conversation order. At most one
    message is open at a time.
    """

    def __init__(self) -> None:
        self._messages: dict[str, Message] = {}
        self._open_id: str | None = None

    def __iter__(self) -> Iterator[Message]:
        return iter(list(self._messages.values()))

    def __len__(self) -> int:
        return len(self._messages)

    def get(self, message_id: str) -> Message | None:
        return self._messages.get(message_id)

    @property
    def open_message(self) -> Message | None:
        if self._open_id is None:
            return None
        return self._messages[self._open_id]

    def add_settled(self, role: Role, content: str, is_error: bool = False) -> Message:
        message = Message(role=role, content=content, is_error=is_error)
        self._messages[message.id] = message
        return message

    def open_placeholder(self) -> Message:
        """Append an empty, open assistant message.

        Raises:
            MessageStateError: If another message is still open.
        """
        if self._open_id is not None:
            raise MessageStateError(f"Message {self._open_id} is still open")
        message = Message(role=Role.ASSISTANT, state=MessageState.OPEN)
        self._messages[message.id] = message
        self._open_id = message.id
        return message

    def _require_open(self, message_id: str) -> Message:
        message = self._messages.get(message_id)
        if message is None:
            raise MessageStateError(f"Unknown message {message_id}")
        if not message.is_open:
            raise MessageStateError(f"Message {message_id} is {message.state.value}")
        return message

    def append_to_open_message(self, message_id: str, fragment: str) -> Message:
        """Append a streamed fragment to the open message.

        Raises:
            MessageStateError: If the message is unknown or no longer open.
        """
        message = self._require_open(message_id)
        message.content += fragment
        return message

    def finalize(self, message_id: str) -> Message:
        message = self._require_open(message_id)
        message.state = MessageState.FINALIZED
        self._open_id = None
        return message

    def replace_with_error(self, message_id: str, reason: str) -> Message:
        """Remove the open message and append a settled error message.

        Text already streamed into the open message is kept ahead of the
        error notice.

        Raises:
            MessageStateError: If the message is unknown or no longer open.
        """
        message = self._require_open(message_id)
        message.state = MessageState.REPLACED
        del self._messages[message_id]
        self._open_id = None

        notice = f"{ERROR_PREFIX}{reason}"
        if message.content:
            notice = f"{message.content}\n\n{notice}"
        return self.add_settled(Role.ASSISTANT, notice, is_error=True)

    def conversation(self) -> list[Turn]:
        """Role/content history to send upstream, without the open placeholder."""
        return [m.to_turn() for m in self._messages.values() if not m.is_open]

    def clear(self) -> None:
        self._messages.clear()
        self._open_id = None
