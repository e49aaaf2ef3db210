"""Stream forwarder between the chat endpoint and the upstream provider.

Each provider delta becomes exactly one outbound frame, in order, with no
buffering. A clean end of the provider stream is followed by a ``[DONE]``
frame. A failure after the first frame is reported in a final
``event: error`` frame because the HTTP status is already committed.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import aclosing

from chat_relay.models.schemas import Turn
from chat_relay.relay.config import RelayConfig
from chat_relay.relay.exceptions import MidStreamFailure
from chat_relay.relay.upstream import UpstreamClient, UpstreamStream
from chat_relay.streaming.sse import format_done, format_frame

logger = logging.getLogger(__name__)

ERROR_EVENT = "error"


async def _forward(stream: UpstreamStream) -> AsyncGenerator[str]:
    frames = 0
    try:
        async with aclosing(stream.deltas()) as deltas:
            async for delta in deltas:
                frames += 1
                yield format_frame(delta)
    except MidStreamFailure as e:
        logger.error(f"Upstream stream failed after {frames} frame(s): {e.message}")
        yield format_frame(e.message, event=ERROR_EVENT)
        return
    finally:
        await stream.aclose()

    logger.info(f"Relay stream complete ({frames} frame(s))")
    yield format_done()


class RelayStream:
    """Outbound frames for one relayed turn.

    Owns the provider response behind the frames. ``aclose()`` releases it
    whether or not iteration ever started.
    """

    def __init__(self, upstream: UpstreamStream) -> None:
        self._upstream = upstream
        self._frames = _forward(upstream)

    def __aiter__(self) -> "RelayStream":
        return self

    async def __anext__(self) -> str:
        return await anext(self._frames)

    async def aclose(self) -> None:
        try:
            await self._frames.aclose()
        finally:
            await self._upstream.aclose()


class ChatRelay:
    """Forwards one conversation per call to the upstream provider."""

    def __init__(self, config: RelayConfig, upstream: UpstreamClient) -> None:
        self._config = config
        self._upstream = upstream

    async def open(self, conversation: list[Turn]) -> RelayStream:
        """Open the upstream stream and return the outbound frames.

        Everything that can fail before the first byte happens here, so the
        caller can still answer with a JSON error instead of a stream.

        Args:
            conversation: Turns to forward, oldest first.

        Returns:
            Async iterator of encoded SSE frames. The caller must close it.

        Raises:
            ConfigurationError: If no API key is configured.
            UpstreamRejection: If the provider refuses or cannot be reached.
        """
        self._config.require_credentials()
        logger.info(f"Relaying conversation of {len(conversation)} turn(s)")
        stream = await self._upstream.open_stream(conversation)
        return RelayStream(stream)
