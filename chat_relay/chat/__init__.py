"""Chat client: message state and incremental reply reassembly.

Responsibilities:
    - Message list with open/finalized/replaced lifecycle
    - Streaming POST to the relay and event-stream decoding
    - Submit gating via the pending flag and error recovery

Knows nothing about rendering; the UI observes changes through a callback.
"""

from chat_relay.chat.client import (
    ChatClientError,
    MissingBodyError,
    RelayClient,
    RelayResponseError,
    StreamInterruptedError,
    TransportError,
)
from chat_relay.chat.messages import Message, MessageLog, MessageState, MessageStateError
from chat_relay.chat.session import ChatSession

__all__ = [
    "ChatClientError",
    "ChatSession",
    "Message",
    "MessageLog",
    "MessageState",
    "MessageStateError",
    "MissingBodyError",
    "RelayClient",
    "RelayResponseError",
    "StreamInterruptedError",
    "TransportError",
]
