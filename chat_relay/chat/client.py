"""HTTP client for the relay's streaming chat endpoint.

Reads the event stream incrementally and yields text fragments in order.
Every way a reply can fail is raised as a ``ChatClientError`` carrying a
message fit to show the user.
"""

import logging
from collections.abc import AsyncIterator

import httpx

from chat_relay.models.schemas import ErrorResponse, Turn
from chat_relay.streaming.sse import SSEFrame, SSEFrameDecoder

logger = logging.getLogger(__name__)

ERROR_EVENT = "error"


class ChatClientError(Exception):
    """Base error for a failed reply."""


class TransportError(ChatClientError):
    """The relay could not be reached or the connection failed."""


class RelayResponseError(ChatClientError):
    """The relay answered with an error status instead of a stream."""

    def __init__(self, message: str, status_code: int) -> None:
        super().__init__(message)
        self.status_code = status_code


class MissingBodyError(ChatClientError):
    """The relay answered without a readable event stream."""


class StreamInterruptedError(ChatClientError):
    """The stream ended before the reply completed."""


def _error_message(response: httpx.Response) -> str:
    try:
        body = ErrorResponse.model_validate_json(response.content)
    except ValueError:
        return f"HTTP {response.status_code}"
    if body.details:
        return f"{body.error}: {body.details}"
    return body.error


class RelayClient:
    """Posts conversations to the relay and streams back the reply."""

    def __init__(
        self,
        base_url: str,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = 120.0,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._http = http_client
        self._timeout = timeout

    async def stream_reply(self, conversation: list[Turn]) -> AsyncIterator[str]:
        """Stream reply fragments for a conversation.

        Args:
            conversation: Role/content turns, oldest first.

        Yields:
            Text fragments in the order the relay sent them.

        Raises:
            TransportError: If the request fails at the network level.
            RelayResponseError: If the relay returns a non-2xx status.
            MissingBodyError: If a 2xx response is not an event stream.
            StreamInterruptedError: If the stream reports an error or closes
                without a ``[DONE]`` frame.
        """
        payload = {"messages": [turn.model_dump(mode="json") for turn in conversation]}

        if self._http is not None:
            async for fragment in self._stream(self._http, payload):
                yield fragment
            return

        async with httpx.AsyncClient(timeout=self._timeout) as client:
            async for fragment in self._stream(client, payload):
                yield fragment

    async def _stream(self, client: httpx.AsyncClient, payload: dict) -> AsyncIterator[str]:
        try:
            async with client.stream(
                "POST",
                f"{self._base_url}/chat",
                json=payload,
                headers={"Accept": "text/event-stream"},
            ) as response:
                if not response.is_success:
                    await response.aread()
                    raise RelayResponseError(_error_message(response), response.status_code)

                content_type = response.headers.get("content-type", "")
                if not content_type.startswith("text/event-stream"):
                    raise MissingBodyError("No response body")

                async for fragment in self._read_fragments(response):
                    yield fragment
        except httpx.RequestError as e:
            raise TransportError(f"Connection failed: {e}") from e

    async def _read_fragments(self, response: httpx.Response) -> AsyncIterator[str]:
        decoder = SSEFrameDecoder()

        async for chunk in response.aiter_bytes():
            for frame in decoder.feed(chunk):
                if frame.is_done:
                    return
                fragment = self._fragment(frame)
                if fragment:
                    yield fragment

        for frame in decoder.flush():
            if frame.is_done:
                return
            fragment = self._fragment(frame)
            if fragment:
                yield fragment

        raise StreamInterruptedError("Connection closed before the response completed")

    @staticmethod
    def _fragment(frame: SSEFrame) -> str | None:
        if frame.event == ERROR_EVENT:
            raise StreamInterruptedError(frame.data or "The response stream failed")
        if frame.event not in (None, "message"):
            logger.warning(f"Skipping frame with unknown event '{frame.event}'")
            return None
        return frame.data or None
