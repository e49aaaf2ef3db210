"""Unit tests for RelayClient stream consumption.

The relay is replaced by httpx.MockTransport serving canned event streams.
"""

import json
from collections.abc import AsyncGenerator, Callable

import httpx
import pytest
import pytest_check as check

from chat_relay.chat.client import (
    MissingBodyError,
    RelayClient,
    RelayResponseError,
    StreamInterruptedError,
    TransportError,
)
from chat_relay.models.schemas import Role, Turn
from chat_relay.streaming.sse import format_done, format_frame
from tests.conftest import sse_response

CONVERSATION = [Turn(role=Role.USER, content="hello")]
REPLY = (format_frame("Hi") + format_frame(" thére") + format_frame("!") + format_done()).encode()


def relay_client(handler: Callable[[httpx.Request], httpx.Response]) -> RelayClient:
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return RelayClient("http://relay.test/", http_client=http)


async def collect(client: RelayClient) -> list[str]:
    return [fragment async for fragment in client.stream_reply(CONVERSATION)]


def chunked(raw: bytes, size: int) -> Callable[[httpx.Request], httpx.Response]:
    async def body() -> AsyncGenerator[bytes]:
        for i in range(0, len(raw), size):
            yield raw[i : i + size]

    return lambda request: sse_response(body())


class TestStreamReply:
    """Tests for reading fragments from the relay."""

    async def test_posts_conversation(self) -> None:
        """The request body holds role/content turns only."""
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return sse_response(REPLY)

        await collect(relay_client(handler))

        check.equal(str(seen[0].url), "http://relay.test/chat")
        check.equal(seen[0].headers["accept"], "text/event-stream")
        check.equal(
            json.loads(seen[0].content),
            {"messages": [{"role": "user", "content": "hello"}]},
        )

    async def test_yields_fragments_in_order(self) -> None:
        fragments = await collect(relay_client(lambda request: sse_response(REPLY)))

        assert fragments == ["Hi", " thére", "!"]

    @pytest.mark.parametrize("size", [1, 2, 3, 5, 7, 64])
    async def test_fragmented_body_reassembles(self, size: int) -> None:
        """Arbitrary read boundaries produce the same text."""
        fragments = await collect(relay_client(chunked(REPLY, size)))

        assert "".join(fragments) == "Hi thére!"

    async def test_done_stops_reading(self) -> None:
        """Frames after [DONE] are ignored even if more bytes follow."""
        body = (format_frame("kept") + format_done() + format_frame("ignored")).encode()

        fragments = await collect(relay_client(lambda request: sse_response(body)))

        assert fragments == ["kept"]

    async def test_empty_frames_skipped(self) -> None:
        body = ("data:\n\n: keep-alive\n\n" + format_frame("x") + format_done()).encode()

        assert await collect(relay_client(lambda request: sse_response(body))) == ["x"]

    async def test_unknown_event_skipped(self) -> None:
        body = (
            format_frame("usage", event="metrics") + format_frame("x") + format_done()
        ).encode()

        assert await collect(relay_client(lambda request: sse_response(body))) == ["x"]


class TestStreamReplyErrors:
    """Tests for each failure path."""

    async def test_error_status_uses_json_body(self) -> None:
        """The relay's error and details become the message."""
        client = relay_client(
            lambda request: httpx.Response(
                502,
                json={"error": "Upstream provider rejected the request", "details": "Bad key"},
            )
        )

        with pytest.raises(RelayResponseError) as exc_info:
            await collect(client)

        check.equal(str(exc_info.value), "Upstream provider rejected the request: Bad key")
        check.equal(exc_info.value.status_code, 502)

    async def test_error_status_without_details(self) -> None:
        client = relay_client(
            lambda request: httpx.Response(500, json={"error": "Missing OpenAI API credential"})
        )

        with pytest.raises(RelayResponseError, match="^Missing OpenAI API credential$"):
            await collect(client)

    async def test_error_status_with_non_json_body(self) -> None:
        client = relay_client(lambda request: httpx.Response(503, text="Service Unavailable"))

        with pytest.raises(RelayResponseError, match="HTTP 503"):
            await collect(client)

    async def test_non_stream_success_is_missing_body(self) -> None:
        client = relay_client(lambda request: httpx.Response(200, json={"reply": "hi"}))

        with pytest.raises(MissingBodyError):
            await collect(client)

    async def test_close_without_done_is_interruption(self) -> None:
        """An early close keeps earlier fragments but raises at the end."""
        client = relay_client(lambda request: sse_response(format_frame("part").encode()))
        received: list[str] = []

        with pytest.raises(StreamInterruptedError, match="closed before"):
            async for fragment in client.stream_reply(CONVERSATION):
                received.append(fragment)

        assert received == ["part"]

    async def test_error_event_is_interruption(self) -> None:
        body = (format_frame("part") + format_frame("Upstream lost", event="error")).encode()
        client = relay_client(lambda request: sse_response(body))

        with pytest.raises(StreamInterruptedError, match="Upstream lost"):
            await collect(client)

    async def test_connection_error_is_transport_error(self) -> None:
        def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("Connection refused", request=request)

        with pytest.raises(TransportError, match="Connection failed"):
            await collect(relay_client(refuse))

    async def test_read_error_mid_stream_is_transport_error(self) -> None:
        async def broken() -> AsyncGenerator[bytes]:
            yield format_frame("part").encode()
            raise httpx.ReadError("reset by peer")

        client = relay_client(lambda request: sse_response(broken()))

        with pytest.raises(TransportError, match="reset by peer"):
            await collect(client)
