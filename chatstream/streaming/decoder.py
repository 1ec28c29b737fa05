"""SSE frame decoding for streamed chat responses.

Chunks arrive at whatever granularity the transport delivers, so a frame
may be split across reads. Complete frames are parsed into StreamEvents;
a trailing frame without its blank-line terminator is dropped.
"""

import codecs
import logging
from collections.abc import AsyncGenerator, AsyncIterable

from pydantic import ValidationError

from chatstream.models.schemas import StreamEvent

logger = logging.getLogger(__name__)

FRAME_DELIMITER = "\n\n"
DATA_PREFIX = "data:"


class CancelToken:
    """Stops a decoder at the next frame boundary.

    Cancelling only abandons the local stream; the backend job is not told.
    """

    def __init__(self) -> None:
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True


class FrameBuffer:
    """Carry-over buffer that splits text into complete frames."""

    def __init__(self) -> None:
        self._buffer = ""
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")

    @property
    def pending(self) -> str:
        return self._buffer

    def feed(self, chunk: str | bytes) -> list[str]:
        """Add a chunk and return every frame it completes."""
        if isinstance(chunk, bytes):
            chunk = self._decoder.decode(chunk)
        self._buffer += chunk
        *frames, self._buffer = self._buffer.split(FRAME_DELIMITER)
        return frames

    def discard(self) -> str:
        """Drop and return whatever unterminated text is left."""
        remainder, self._buffer = self._buffer, ""
        return remainder


def extract_payload(frame: str) -> str | None:
    """Return the text after the ``data:`` marker, if the frame has one."""
    for line in frame.split("\n"):
        if line.startswith(DATA_PREFIX):
            return line[len(DATA_PREFIX) :]
    return None


def parse_event(payload: str) -> StreamEvent | None:
    """Parse a frame payload, returning None for malformed frames."""
    try:
        return StreamEvent.model_validate_json(payload)
    except ValidationError as e:
        logger.warning(f"Skipping malformed stream frame {payload[:80]!r}: {e}")
        return None


async def decode_stream(
    chunks: AsyncIterable[str | bytes],
    cancel_token: CancelToken | None = None,
) -> AsyncGenerator[StreamEvent]:
    """Decode a chunked SSE body into stream events.

    Args:
        chunks: Raw text or bytes as read from the network.
        cancel_token: Optional token that stops decoding early.

    Yields:
        StreamEvents in the order their frames completed.
    """
    buffer = FrameBuffer()
    async for chunk in chunks:
        for frame in buffer.feed(chunk):
            if cancel_token is not None and cancel_token.cancelled:
                logger.info("Stream cancelled, abandoning remaining frames")
                return
            payload = extract_payload(frame)
            if payload is None:
                continue
            event = parse_event(payload)
            if event is not None:
                yield event

    remainder = buffer.discard()
    if remainder.strip():
        logger.debug(f"Discarding unterminated frame at end of stream: {remainder[:80]!r}")
