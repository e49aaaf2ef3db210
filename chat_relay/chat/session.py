"""Chat session: submits user turns and reassembles streamed replies."""

import asyncio
import logging
import uuid
from collections.abc import Callable
from contextlib import aclosing

from chat_relay.chat.client import ChatClientError, RelayClient
from chat_relay.chat.messages import MessageLog
from chat_relay.models.schemas import Role

logger = logging.getLogger(__name__)

GENERIC_ERROR = "Unexpected error – please retry."
CANCELLED_ERROR = "Response cancelled."
EMPTY_REPLY_ERROR = "No response received – please retry."


class ChatSession:
    """Manages chat state for a user session.

    Holds the message list and the pending flag. Only one reply streams at
    a time; submissions made while one is pending are ignored.
    """

    def __init__(
        self,
        client: RelayClient,
        on_change: Callable[[], None] | None = None,
    ) -> None:
        self.client = client
        self.messages = MessageLog()
        self.session_id: str = str(uuid.uuid4())
        self.pending: bool = False
        self._on_change = on_change

    def _changed(self) -> None:
        if self._on_change is not None:
            self._on_change()

    def accepts(self, text: str) -> bool:
        return bool(text and text.strip()) and not self.pending

    async def submit(self, text: str) -> bool:
        """Send a user message and stream the assistant's reply into the log.

        Args:
            text: The user's message.

        Returns:
            False if the submission was ignored, True otherwise.
        """
        if not self.accepts(text):
            return False

        self.messages.add_settled(Role.USER, text)
        self.pending = True
        placeholder = self.messages.open_placeholder()
        conversation = self.messages.conversation()
        self._changed()

        try:
            async with aclosing(self.client.stream_reply(conversation)) as fragments:
                async for fragment in fragments:
                    self.messages.append_to_open_message(placeholder.id, fragment)
                    self._changed()
            if placeholder.content:
                self.messages.finalize(placeholder.id)
            else:
                logger.warning(f"Empty reply in session {self.session_id}")
                self.messages.replace_with_error(placeholder.id, EMPTY_REPLY_ERROR)
        except ChatClientError as e:
            logger.warning(f"Reply failed in session {self.session_id}: {e}")
            self.messages.replace_with_error(placeholder.id, str(e) or GENERIC_ERROR)
        except asyncio.CancelledError:
            logger.info(f"Reply cancelled in session {self.session_id}")
            self.messages.replace_with_error(placeholder.id, CANCELLED_ERROR)
            raise
        except Exception:
            logger.exception(f"Unexpected failure in session {self.session_id}")
            self.messages.replace_with_error(placeholder.id, GENERIC_ERROR)
        finally:
            self.pending = False
            self._changed()

        return True

    def reset(self) -> bool:
        """Start a new conversation. Ignored while a reply is pending."""
        if self.pending:
            return False
        self.messages.clear()
        self.session_id = str(uuid.uuid4())
        self._changed()
        return True
