"""Applies decoded stream events to the session store.

Events are applied one at a time in arrival order. The applier owns the
streaming marker, the reasoning buffer and the busy flag for the request
in flight.
"""

import logging

from chatstream.constants import STREAM_FAILED
from chatstream.models.schemas import StreamEvent, StreamEventType, StreamingMarker
from chatstream.store.session_store import SessionStore

logger = logging.getLogger(__name__)


class StreamEventApplier:
    """State machine over stream event tags.

    Attributes:
        streaming: Message currently receiving tokens, if any.
        reasoning: UI-only reasoning text for the request in flight.
        busy_session_id: Session with a request in flight, if any.
    """

    def __init__(self, store: SessionStore) -> None:
        self._store = store
        self.streaming: StreamingMarker | None = None
        self.reasoning = ""
        self.busy_session_id: str | None = None

    def begin(self, session_id: str) -> None:
        """Mark a session busy for a new request."""
        self.busy_session_id = session_id
        self.reasoning = ""
        self._store.notify()

    def finish(self) -> None:
        """Clear all per-request streaming state."""
        self.streaming = None
        self.busy_session_id = None
        self.reasoning = ""
        self._store.notify()

    def is_busy(self, session_id: str | None = None) -> bool:
        if session_id is None:
            return self.busy_session_id is not None
        return self.busy_session_id == session_id or (
            self.streaming is not None and self.streaming.chat_id == session_id
        )

    def apply(self, event: StreamEvent) -> None:
        """Apply a single event to the store."""
        if event.type == StreamEventType.SESSION:
            self._on_session(event)
        elif event.type == StreamEventType.TOKEN:
            self._on_token(event)
        elif event.type == StreamEventType.REASONING:
            if event.content:
                self.reasoning += event.content
                self._store.notify()
        elif event.type == StreamEventType.FINAL:
            if event.session is not None:
                self._store.upsert_session(event.session)
            self.finish()
        elif event.type == StreamEventType.ERROR:
            self._on_error(event)
        else:
            logger.debug(f"Ignoring stream event with unknown type {event.type!r}")

    def _on_session(self, event: StreamEvent) -> None:
        if event.session is None:
            return
        had_selection = bool(self._store.selected_id)
        self._store.upsert_session(event.session)
        if not had_selection:
            self._store.select_session(event.session.id)
        if event.chat_id and event.message_id:
            self.streaming = StreamingMarker(chat_id=event.chat_id, message_id=event.message_id)

    def _on_token(self, event: StreamEvent) -> None:
        if not event.content or self.streaming is None:
            return
        self._store.append_to_message(
            event.chat_id or self.streaming.chat_id,
            event.message_id or self.streaming.message_id,
            event.content,
        )

    def _on_error(self, event: StreamEvent) -> None:
        # An explicit chatId wins even when empty
        chat_id = event.chat_id
        if chat_id is None:
            chat_id = self._active_chat_id()
        if chat_id is None:
            chat_id = self._selected_chat_id()
        logger.error(f"Stream error for chat {chat_id}: {event.message}")
        self._store.set_error(chat_id, event.message or STREAM_FAILED)
        self.finish()

    def _active_chat_id(self) -> str | None:
        if self.streaming is not None:
            return self.streaming.chat_id
        return self.busy_session_id

    def _selected_chat_id(self) -> str:
        current = self._store.current_session
        return current.id if current is not None else ""
