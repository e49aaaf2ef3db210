"""Streaming chat endpoint.

Accepts a conversation, relays it to the upstream provider, and streams
the generated text back as server-sent events.
"""

import json
import logging

from fastapi import APIRouter, BackgroundTasks, Request
from fastapi.responses import StreamingResponse
from pydantic import ValidationError

from chat_relay.models.schemas import ChatRequest, ErrorResponse
from chat_relay.relay.exceptions import MalformedRequestError
from chat_relay.relay.forwarder import ChatRelay

logger = logging.getLogger(__name__)

router = APIRouter(tags=["chat"])

STREAM_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


def _describe_validation_error(error: ValidationError) -> str:
    parts = []
    for item in error.errors():
        location = ".".join(str(p) for p in item["loc"])
        parts.append(f"{location}: {item['msg']}" if location else item["msg"])
    return "; ".join(parts)


async def _parse_chat_request(request: Request) -> ChatRequest:
    """Read and validate the request body.

    Raises:
        MalformedRequestError: 400 if the body is not JSON or has no conversation.
    """
    try:
        payload = json.loads(await request.body())
    except ValueError as e:
        raise MalformedRequestError("Request body must be valid JSON", details=str(e)) from e

    try:
        return ChatRequest.model_validate(payload)
    except ValidationError as e:
        raise MalformedRequestError(
            "Request body must include a non-empty 'messages' list or 'message'",
            details=_describe_validation_error(e),
        ) from e


@router.post(
    "/chat",
    response_class=StreamingResponse,
    responses={
        200: {"content": {"text/event-stream": {}}},
        400: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
        504: {"model": ErrorResponse},
    },
)
async def chat_stream(request: Request) -> StreamingResponse:
    """Stream a chat completion for the posted conversation.

    Each frame is ``data: <text fragment>``; the stream ends with
    ``data: [DONE]``, or with an ``event: error`` frame if the provider
    fails mid-stream.

    Raises:
        400: Body is not JSON or lacks ``messages``/``message``.
        500: Upstream credentials are not configured.
        502: Provider rejected the request or was unreachable.
        504: Provider timed out.
    """
    chat_request = await _parse_chat_request(request)
    relay: ChatRelay = request.app.state.relay

    frames = await relay.open(chat_request.to_conversation())
    # Also runs when the client leaves before the first frame is pulled
    cleanup = BackgroundTasks()
    cleanup.add_task(frames.aclose)

    return StreamingResponse(
        frames,
        media_type="text/event-stream",
        headers=STREAM_HEADERS,
        background=cleanup,
    )
