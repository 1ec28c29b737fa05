"""Streaming response handling.

Turns a chunked SSE body into StreamEvents and applies them to the
session store in arrival order.
"""

from chatstream.streaming.applier import StreamEventApplier
from chatstream.streaming.decoder import CancelToken, FrameBuffer, decode_stream

__all__ = ["CancelToken", "FrameBuffer", "StreamEventApplier", "decode_stream"]
