"""Server-side stream forwarder.

Takes a conversation from the chat endpoint, opens a streaming
chat-completion request to the upstream provider, and re-emits each text
delta as a normalized server-sent event.

Responsibilities:
    - Configuration loading and credential checks
    - Upstream request and provider event-stream decoding
    - One outbound frame per delta, in order, unbuffered
    - Error reporting before and after the first byte
"""

from chat_relay.relay.config import RelayConfig, get_relay_config
from chat_relay.relay.exceptions import (
    ConfigurationError,
    MalformedRequestError,
    MidStreamFailure,
    RelayError,
    UpstreamRejection,
)
from chat_relay.relay.forwarder import ChatRelay, RelayStream
from chat_relay.relay.upstream import UpstreamClient

__all__ = [
    "ChatRelay",
    "ConfigurationError",
    "MalformedRequestError",
    "MidStreamFailure",
    "RelayConfig",
    "RelayError",
    "RelayStream",
    "UpstreamClient",
    "UpstreamRejection",
    "get_relay_config",
]
