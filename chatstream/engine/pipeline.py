"""Optimistic message submission and regeneration.

A user message is shown before the backend confirms it. The authoritative
session from the stream later replaces the whole session, which supersedes
the provisional message because server message ids differ from local ones.
If the request fails, the provisional message is removed and, while its
session is still active, the prompt is handed back for another try.
"""

import logging
from collections.abc import AsyncIterable
from datetime import UTC, datetime

import httpx

from chatstream.api.client import ChatApiClient, ChatApiError
from chatstream.constants import (
    ATTACHMENTS_NEED_OPENAI,
    EMPTY_PROMPT,
    NO_ACTIVE_SESSION,
    REGENERATE_FAILED,
    REGENERATE_TARGET_INVALID,
    SEND_FAILED,
    UPLOADS_PENDING,
)
from chatstream.engine.uploads import UploadCoordinator
from chatstream.models.schemas import Attachment, ChatMessage, PendingAttachment, new_id
from chatstream.store.preferences import PreferenceStore
from chatstream.store.session_store import SessionStore
from chatstream.streaming.applier import StreamEventApplier
from chatstream.streaming.decoder import CancelToken, decode_stream

logger = logging.getLogger(__name__)


class ChatBusyError(RuntimeError):
    """Raised when a request is started while the session is still streaming."""

    def __init__(self, session_id: str) -> None:
        super().__init__(f"Chat {session_id} already has a response in progress")
        self.session_id = session_id


class MessagePipeline:
    """Builds, sends and reconciles user messages.

    Attributes:
        prompt: Current input text; cleared on send, restored on failure.
    """

    def __init__(
        self,
        store: SessionStore,
        applier: StreamEventApplier,
        uploads: UploadCoordinator,
        preferences: PreferenceStore,
        client: ChatApiClient,
    ) -> None:
        self._store = store
        self._applier = applier
        self._uploads = uploads
        self._preferences = preferences
        self._client = client
        self._cancel_token: CancelToken | None = None
        self.prompt = ""

    def _reject(self, chat_id: str, message: str) -> bool:
        logger.info(f"Submission rejected for chat {chat_id or '-'}: {message}")
        self._store.set_error(chat_id, message)
        return False

    def _validate_submission(self) -> str | None:
        """Return the rejection message for the current input, if any."""
        if not self.prompt.strip():
            return EMPTY_PROMPT
        if self._uploads.pending_count > 0:
            return UPLOADS_PENDING
        if self._uploads.pending_attachments and not self._preferences.accepts_attachments():
            return ATTACHMENTS_NEED_OPENAI
        return None

    async def submit(self) -> bool:
        """Send the current prompt to the active session.

        Returns:
            True once the request was accepted and its stream consumed,
            False if the submission was rejected or the request failed.

        Raises:
            ChatBusyError: If the active session already has a request in flight.
        """
        session = self._store.current_session
        if session is None:
            return self._reject(self._store.selected_id, NO_ACTIVE_SESSION)
        if self._applier.is_busy(session.id):
            raise ChatBusyError(session.id)
        if rejection := self._validate_submission():
            return self._reject(session.id, rejection)

        content = self.prompt.strip()
        pending = self._uploads.take_pending()
        message = self._build_optimistic_message(
            session.id, len(session.messages) + 1, content, pending
        )

        self.prompt = ""
        self._store.clear_error()
        self._applier.begin(session.id)
        self._store.add_message(session.id, message)

        try:
            async with self._client.stream_message(
                session.id,
                content,
                self._preferences.model_id,
                pending,
                self._preferences.completion_params,
            ) as chunks:
                await self._consume(chunks)
        except (ChatApiError, httpx.HTTPError) as e:
            logger.error(f"Sending message to chat {session.id} failed: {e}")
            self._store.remove_message(session.id, message.id)
            if self._uploads.session_id == session.id:
                self.prompt = content
                self._uploads.restore_pending(pending)
            else:
                logger.info(f"Chat {session.id} no longer active, dropping unsent input")
            self._store.set_error(session.id, SEND_FAILED)
            self._applier.finish()
            return False
        return True

    async def regenerate(self, session_id: str, message_id: str) -> bool:
        """Stream a fresh answer into an existing assistant message.

        Raises:
            ChatBusyError: If the session already has a request in flight.
        """
        session = self._store.get_session(session_id)
        if session is None:
            return self._reject(session_id, NO_ACTIVE_SESSION)
        if self._applier.is_busy(session_id):
            raise ChatBusyError(session_id)
        target = session.find_message(message_id)
        if target is None or target.role != "assistant":
            return self._reject(session_id, REGENERATE_TARGET_INVALID)

        self._store.clear_error()
        self._applier.begin(session_id)
        self._store.reset_message_content(session_id, message_id)

        try:
            async with self._client.stream_regeneration(
                session_id,
                message_id,
                self._preferences.model_id,
                self._preferences.completion_params,
            ) as chunks:
                await self._consume(chunks)
        except (ChatApiError, httpx.HTTPError) as e:
            logger.error(f"Regenerating message {message_id} failed: {e}")
            self._store.set_error(session_id, REGENERATE_FAILED)
            self._applier.finish()
            return False
        return True

    def cancel(self) -> None:
        """Stop applying frames from the stream in flight, if any."""
        if self._cancel_token is not None:
            self._cancel_token.cancel()

    async def _consume(self, chunks: AsyncIterable[str]) -> None:
        self._cancel_token = token = CancelToken()
        try:
            async for event in decode_stream(chunks, token):
                self._applier.apply(event)
        finally:
            self._cancel_token = None
            self._applier.finish()

    @staticmethod
    def _build_optimistic_message(
        session_id: str,
        position: int,
        content: str,
        pending: list[PendingAttachment],
    ) -> ChatMessage:
        message_id = new_id()
        now = datetime.now(UTC)
        return ChatMessage(
            id=message_id,
            session_id=session_id,
            role="user",
            content=content,
            position=position,
            created_at=now,
            attachments=[
                Attachment(
                    id=new_id(),
                    message_id=message_id,
                    file_name=a.file_name,
                    mime_type=a.mime_type,
                    size_bytes=a.size_bytes,
                    url=a.url,
                    created_at=now,
                )
                for a in pending
            ],
        )
