"""Event-stream framing used by the relay and the chat client."""

from chat_relay.streaming.sse import (
    DONE_SENTINEL,
    SSEFrame,
    SSEFrameDecoder,
    format_done,
    format_frame,
    parse_frame,
)

__all__ = [
    "DONE_SENTINEL",
    "SSEFrame",
    "SSEFrameDecoder",
    "format_done",
    "format_frame",
    "parse_frame",
]
