"""Streaming chat-completion client for the upstream provider.

Speaks the OpenAI ``/chat/completions`` protocol with ``stream=true`` and
reduces the provider's event stream to plain text deltas.
"""

import json
import logging
from collections.abc import AsyncIterator
from contextlib import aclosing

import httpx
from fastapi import status

from chat_relay.models.schemas import Turn
from chat_relay.relay.config import RelayConfig
from chat_relay.relay.exceptions import MidStreamFailure, UpstreamRejection
from chat_relay.streaming.sse import SSEFrame, SSEFrameDecoder

logger = logging.getLogger(__name__)


def _provider_error_message(error: object) -> str:
    if isinstance(error, dict) and error.get("message"):
        return str(error["message"])
    return str(error)


def _extract_delta(payload: object) -> str | None:
    """Return ``choices[0].delta.content`` when it holds text.

    Raises:
        MidStreamFailure: If the provider reports an error in the stream.
        ValueError: If the payload is not a JSON object.
    """
    if not isinstance(payload, dict):
        raise ValueError("payload is not a JSON object")
    if payload.get("error"):
        raise MidStreamFailure(
            f"Upstream provider error: {_provider_error_message(payload['error'])}"
        )

    choices = payload.get("choices") or []
    if not choices:
        return None
    delta = choices[0].get("delta") or {}
    content = delta.get("content")
    if isinstance(content, str) and content:
        return content
    return None


def _error_text(response: httpx.Response) -> str:
    """Pull the provider's error message out of a failed response."""
    try:
        body = response.json()
    except ValueError:
        return response.text.strip() or response.reason_phrase

    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict) and error.get("message"):
        return str(error["message"])
    if isinstance(error, str):
        return error
    return response.text.strip() or response.reason_phrase


class UpstreamStream:
    """An open provider response, consumed once via ``deltas()``."""

    def __init__(self, response: httpx.Response) -> None:
        self._response = response

    async def deltas(self) -> AsyncIterator[str]:
        """Yield text deltas in provider order.

        Events without text (role announcements, finish reasons) are
        skipped. Frames that fail to parse are logged and skipped.

        Raises:
            MidStreamFailure: If the connection breaks while reading, the
                provider sends an error object, or the stream held no
                readable frames at all.
        """
        parsed = 0
        failed = 0

        async with aclosing(self._frames()) as frames:
            async for frame in frames:
                if frame.is_done:
                    break
                if not frame.data:
                    continue
                try:
                    delta = _extract_delta(json.loads(frame.data))
                except (ValueError, AttributeError, TypeError) as e:
                    failed += 1
                    logger.warning(f"Skipping unreadable upstream frame: {e}")
                    continue
                parsed += 1
                if delta:
                    yield delta

        if failed and not parsed:
            raise MidStreamFailure("Upstream stream contained no readable frames")

    async def _frames(self) -> AsyncIterator[SSEFrame]:
        decoder = SSEFrameDecoder()
        try:
            async for chunk in self._response.aiter_bytes():
                for frame in decoder.feed(chunk):
                    yield frame
        except httpx.HTTPError as e:
            raise MidStreamFailure(f"Upstream connection lost: {e}") from e
        for frame in decoder.flush():
            yield frame

    async def aclose(self) -> None:
        await self._response.aclose()


class UpstreamClient:
    """Opens streaming completion requests against the configured provider."""

    def __init__(self, config: RelayConfig, http_client: httpx.AsyncClient) -> None:
        self._config = config
        self._http = http_client

    def _build_body(self, conversation: list[Turn]) -> dict:
        body: dict = {
            "model": self._config.model_name,
            "messages": [turn.model_dump(mode="json") for turn in conversation],
            "stream": True,
        }
        if self._config.temperature is not None:
            body["temperature"] = self._config.temperature
        if self._config.max_tokens is not None:
            body["max_tokens"] = self._config.max_tokens
        return body

    async def open_stream(self, conversation: list[Turn]) -> UpstreamStream:
        """Send the request and wait for the provider's response headers.

        Args:
            conversation: Turns forwarded verbatim, oldest first.

        Returns:
            The open stream, ready to be read.

        Raises:
            UpstreamRejection: If the provider is unreachable, times out, or
                answers with a non-2xx status.
        """
        request = self._http.build_request(
            "POST",
            f"{self._config.base_url}/chat/completions",
            json=self._build_body(conversation),
            headers={
                "Authorization": f"Bearer {self._config.api_key}",
                "Accept": "text/event-stream",
            },
            timeout=self._config.request_timeout,
        )

        try:
            response = await self._http.send(request, stream=True)
        except httpx.TimeoutException as e:
            raise UpstreamRejection(
                "Upstream provider timed out",
                details=str(e) or type(e).__name__,
                status_code=status.HTTP_504_GATEWAY_TIMEOUT,
            ) from e
        except httpx.RequestError as e:
            raise UpstreamRejection(
                "Could not reach upstream provider",
                details=str(e) or type(e).__name__,
            ) from e

        if response.is_success:
            return UpstreamStream(response)

        try:
            await response.aread()
            details = _error_text(response)
        except httpx.HTTPError:
            details = response.reason_phrase
        finally:
            await response.aclose()
        raise UpstreamRejection(
            f"Upstream provider rejected the request (HTTP {response.status_code})",
            details=details,
        )
