"""In-memory collection of chat sessions plus the selection cursor.

All mutations replace session and message objects instead of editing them,
so a snapshot handed to an observer never changes underneath it. Every
mutation notifies subscribers; the rendering layer re-renders from there.
"""

import logging
from collections.abc import Callable, Iterable

from chatstream.models.schemas import ChatError, ChatMessage, ChatSession

logger = logging.getLogger(__name__)

Listener = Callable[["SessionStore"], None]


def sort_sessions(sessions: Iterable[ChatSession]) -> list[ChatSession]:
    """Order sessions by descending update time.

    The sort is stable, so sessions with equal timestamps keep their
    incoming order.
    """
    return sorted(sessions, key=lambda s: s.updated_at, reverse=True)


class SessionStore:
    """Single source of truth for chat sessions.

    Attributes:
        sessions: Sessions ordered newest update first.
        selected_id: Id of the selected session, or "" when empty.
        error: Current session-scoped error, if any.
        list_error: Current session-list error, if any.
    """

    def __init__(self, sessions: Iterable[ChatSession] = ()) -> None:
        self._sessions: list[ChatSession] = sort_sessions(sessions)
        self._selected_id = self._sessions[0].id if self._sessions else ""
        self._error: ChatError | None = None
        self._list_error: str | None = None
        self._listeners: list[Listener] = []

    @property
    def sessions(self) -> tuple[ChatSession, ...]:
        return tuple(self._sessions)

    @property
    def selected_id(self) -> str:
        return self._selected_id

    @property
    def current_session(self) -> ChatSession | None:
        """The selected session, falling back to the first one."""
        if not self._sessions:
            return None
        return self.get_session(self._selected_id) or self._sessions[0]

    @property
    def error(self) -> ChatError | None:
        return self._error

    @property
    def list_error(self) -> str | None:
        return self._list_error

    def is_empty(self) -> bool:
        return not self._sessions

    def get_session(self, session_id: str) -> ChatSession | None:
        return next((s for s in self._sessions if s.id == session_id), None)

    # === Observers ===

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a change listener.

        Returns:
            A callable that removes the listener again.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def notify(self) -> None:
        for listener in list(self._listeners):
            listener(self)

    # === Sessions ===

    def upsert_session(self, session: ChatSession) -> None:
        """Insert or wholesale-replace a session, then re-sort."""
        others = [s for s in self._sessions if s.id != session.id]
        self._sessions = sort_sessions([session, *others])
        self._repair_selection()
        self.notify()

    def replace_sessions(self, sessions: Iterable[ChatSession]) -> None:
        """Replace the whole collection, e.g. after listing from the backend."""
        self._sessions = sort_sessions(sessions)
        self._repair_selection()
        self.notify()

    def remove_session(self, session_id: str) -> bool:
        """Remove a session by id.

        If it was selected, selection moves to the first remaining session,
        or to "" once the collection is empty. Provisioning a replacement is
        up to the caller.

        Returns:
            True if a session was removed.
        """
        remaining = [s for s in self._sessions if s.id != session_id]
        if len(remaining) == len(self._sessions):
            return False

        self._sessions = remaining
        if self._selected_id == session_id:
            self._selected_id = remaining[0].id if remaining else ""
            self._error = None
        self.notify()
        return True

    def select_session(self, session_id: str) -> bool:
        """Select a session; unknown ids are ignored."""
        if self.get_session(session_id) is None or session_id == self._selected_id:
            return False
        self._selected_id = session_id
        self.notify()
        return True

    def _repair_selection(self) -> None:
        if self.get_session(self._selected_id) is None:
            self._selected_id = self._sessions[0].id if self._sessions else ""

    # === Messages ===

    def add_message(self, session_id: str, message: ChatMessage) -> None:
        session = self.get_session(session_id)
        if session is None:
            logger.debug(f"Dropping message {message.id} for unknown session {session_id}")
            return
        self._replace(session.model_copy(update={"messages": [*session.messages, message]}))

    def remove_message(self, session_id: str, message_id: str) -> None:
        session = self.get_session(session_id)
        if session is None or session.find_message(message_id) is None:
            return
        messages = [m for m in session.messages if m.id != message_id]
        self._replace(session.model_copy(update={"messages": messages}))

    def append_to_message(self, session_id: str, message_id: str, delta: str) -> None:
        """Append streamed text to a message.

        A frame can arrive for a session that is no longer present (deleted
        mid-stream), so unknown ids are a silent no-op.
        """
        self._update_content(session_id, message_id, lambda content: content + delta)

    def reset_message_content(self, session_id: str, message_id: str) -> None:
        """Clear a message before its content is streamed again."""
        self._update_content(session_id, message_id, lambda _: "")

    def _update_content(
        self, session_id: str, message_id: str, change: Callable[[str], str]
    ) -> None:
        session = self.get_session(session_id)
        if session is None or session.find_message(message_id) is None:
            return
        messages = [
            m.model_copy(update={"content": change(m.content)}) if m.id == message_id else m
            for m in session.messages
        ]
        self._replace(session.model_copy(update={"messages": messages}))

    def _replace(self, session: ChatSession) -> None:
        # Message edits keep the session's position; only upserts re-sort
        self._sessions = [session if s.id == session.id else s for s in self._sessions]
        self.notify()

    # === Errors ===

    def set_error(self, chat_id: str, message: str) -> None:
        self._error = ChatError(chat_id=chat_id, message=message)
        self.notify()

    def clear_error(self) -> None:
        if self._error is not None:
            self._error = None
            self.notify()

    def set_list_error(self, message: str | None) -> None:
        self._list_error = message
        self.notify()
