"""Pytest fixtures and shared test configuration.

Provides reusable fixtures for unit and integration tests.

Fixtures:
    - relay_config: RelayConfig pointing at a fake upstream provider
    - upstream: Recording fake provider served through httpx.MockTransport
    - make_app: Factory building the FastAPI app around the fake provider
    - async_client: HTTPX client for API testing

The upstream provider is never contacted; every test runs offline.
"""

import json
from collections.abc import AsyncGenerator, Callable, Iterable

import httpx
import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from chat_relay.api.app import create_app
from chat_relay.relay.config import RelayConfig

UPSTREAM_BASE_URL = "https://upstream.test/v1"


def openai_event(delta: dict | None = None, finish_reason: str | None = None) -> bytes:
    """Encode one provider chat-completion chunk as an SSE record."""
    chunk = {
        "id": "chatcmpl-test",
        "object": "chat.completion.chunk",
        "choices": [{"index": 0, "delta": delta or {}, "finish_reason": finish_reason}],
    }
    return f"data: {json.dumps(chunk)}\n\n".encode()


def openai_stream(deltas: Iterable[str], done: bool = True) -> bytes:
    """Build a provider event stream the way OpenAI sends it."""
    body = openai_event({"role": "assistant", "content": ""})
    for text in deltas:
        body += openai_event({"content": text})
    body += openai_event(finish_reason="stop")
    if done:
        body += b"data: [DONE]\n\n"
    return body


def sse_response(body: bytes | AsyncGenerator[bytes], status_code: int = 200) -> httpx.Response:
    return httpx.Response(
        status_code,
        headers={"content-type": "text/event-stream"},
        content=body,
    )


class FakeUpstream:
    """Fake provider recording each request it receives."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.respond: Callable[[httpx.Request], httpx.Response] = lambda request: (
            sse_response(openai_stream(["Hi", " there", "!"]))
        )

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.respond(request)

    @property
    def last_body(self) -> dict:
        return json.loads(self.requests[-1].content)


@pytest.fixture
def relay_config() -> RelayConfig:
    """Configuration with a test key and the fake provider's URL."""
    return RelayConfig(api_key="sk-test-key", base_url=UPSTREAM_BASE_URL, model_name="gpt-test")


@pytest.fixture
def upstream() -> FakeUpstream:
    return FakeUpstream()


@pytest.fixture
async def upstream_http(upstream: FakeUpstream) -> AsyncGenerator[httpx.AsyncClient]:
    """HTTP client whose requests are answered by the fake provider."""
    async with httpx.AsyncClient(transport=httpx.MockTransport(upstream.handler)) as client:
        yield client


@pytest.fixture
def make_app(
    relay_config: RelayConfig, upstream_http: httpx.AsyncClient
) -> Callable[..., FastAPI]:
    """Return a factory building the app, optionally with another config."""

    def factory(config: RelayConfig | None = None) -> FastAPI:
        return create_app(config=config or relay_config, http_client=upstream_http)

    return factory


@pytest.fixture
async def async_client(make_app: Callable[..., FastAPI]) -> AsyncGenerator[AsyncClient]:
    """Create async HTTP client for API testing.

    Yields:
        Configured AsyncClient for making test requests.
    """
    transport = ASGITransport(app=make_app())
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
