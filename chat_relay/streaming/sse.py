"""Server-sent event framing shared by both legs of the relay.

The relay decodes the provider's event stream and re-encodes each delta,
and the chat client decodes the relay's stream. Both use the same grammar:
records separated by a blank line, ``data:`` fields folded with newlines.
"""

import codecs
import re

from pydantic import BaseModel

DONE_SENTINEL = "[DONE]"

# A record ends at the first blank line, whichever line terminator is used
_FRAME_TERMINATOR = re.compile(r"\r?\n\r?\n")
_LINE_SPLIT = re.compile(r"\r\n|\r|\n")


class SSEFrame(BaseModel):
    """A single decoded event-stream record.

    Attributes:
        event: Value of the ``event:`` field, None for plain data records.
        data: All ``data:`` fields joined with newlines.
    """

    event: str | None = None
    data: str = ""

    @property
    def is_done(self) -> bool:
        return self.data == DONE_SENTINEL


def parse_frame(raw: str) -> SSEFrame:
    """Parse the text of one record (terminator already removed)."""
    event: str | None = None
    data_lines: list[str] = []

    for line in _LINE_SPLIT.split(raw):
        if not line or line.startswith(":"):
            continue
        field, sep, value = line.partition(":")
        if sep and value.startswith(" "):
            value = value[1:]
        if field == "data":
            data_lines.append(value)
        elif field == "event":
            event = value or None

    return SSEFrame(event=event, data="\n".join(data_lines))


class SSEFrameDecoder:
    """Incremental decoder turning raw byte chunks into complete frames.

    One decoder belongs to exactly one read loop. Bytes are decoded with a
    resumable UTF-8 decoder, so a character split across two reads is
    completed by the next ``feed`` call. Anything after the last complete
    record stays buffered until more bytes arrive.
    """

    def __init__(self) -> None:
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._buffer = ""

    @property
    def pending_text(self) -> str:
        """Text received but not yet part of a complete frame."""
        return self._buffer

    def feed(self, chunk: bytes) -> list[SSEFrame]:
        self._buffer += self._decoder.decode(chunk)
        return self._drain()

    def flush(self) -> list[SSEFrame]:
        """Finish decoding at end of stream.

        Returns a final record that arrived without its terminating blank
        line, if there is one.
        """
        self._buffer += self._decoder.decode(b"", final=True)
        frames = self._drain()
        rest, self._buffer = self._buffer, ""
        if rest.strip():
            frames.append(parse_frame(rest))
        return frames

    def _drain(self) -> list[SSEFrame]:
        frames: list[SSEFrame] = []
        while match := _FRAME_TERMINATOR.search(self._buffer):
            raw = self._buffer[: match.start()]
            self._buffer = self._buffer[match.end() :]
            if raw:
                frames.append(parse_frame(raw))
        return frames


def format_frame(data: str, event: str | None = None) -> str:
    """Encode one outbound record.

    Each line of ``data`` gets its own ``data:`` field so that newlines in
    a fragment never terminate the record early.
    """
    lines = [f"event: {event}"] if event else []
    lines.extend(f"data: {line}" for line in _LINE_SPLIT.split(data))
    return "\n".join(lines) + "\n\n"


def format_done() -> str:
    return format_frame(DONE_SENTINEL)
