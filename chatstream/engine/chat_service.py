"""Chat service tying the engine components together.

Wires one SessionStore to the stream applier, optimistic pipeline, upload
coordinator and preference store, and owns session management: listing,
creating, archiving and deleting sessions. Whenever the collection ends up
empty a fresh session is provisioned, so there is always something to
chat in.
"""

import logging
from collections.abc import Awaitable, Callable, Iterable

import httpx

from chatstream.api.client import ChatApiClient, ChatApiError
from chatstream.config import ClientConfig, get_client_config
from chatstream.constants import ARCHIVE_FAILED, CREATE_FAILED, DELETE_FAILED, LIST_FAILED
from chatstream.engine.pipeline import MessagePipeline
from chatstream.engine.uploads import UploadCoordinator
from chatstream.models.schemas import ChatMessage, ChatSession, UploadSource
from chatstream.store.preferences import (
    JsonFilePreferenceBackend,
    PreferenceBackend,
    PreferenceStore,
)
from chatstream.store.session_store import SessionStore
from chatstream.streaming.applier import StreamEventApplier

logger = logging.getLogger(__name__)

Clipboard = Callable[[str], Awaitable[None] | None]


class ChatService:
    """Facade over the chat engine.

    Wraps the engine with:
    - Session lifecycle calls against the backend
    - Provisioning of a replacement session when none are left
    - Error reporting into the store instead of raising
    - Fire-and-forget clipboard copy of message text

    Args:
        client: Backend client. Built from config if not provided.
        preference_backend: Storage for the model preference. Defaults to
            a JSON file at ``config.preferences_path``.
        clipboard: Callable writing text to the clipboard, sync or async.
        config: Client configuration. Loads from environment if not provided.
    """

    def __init__(
        self,
        client: ChatApiClient | None = None,
        preference_backend: PreferenceBackend | None = None,
        clipboard: Clipboard | None = None,
        config: ClientConfig | None = None,
    ) -> None:
        self._config = config or get_client_config()
        self.client = client or ChatApiClient(self._config)
        self.store = SessionStore()
        self.preferences = PreferenceStore(
            preference_backend or JsonFilePreferenceBackend(self._config.preferences_path)
        )
        self.preferences.load()
        self.applier = StreamEventApplier(self.store)
        self.uploads = UploadCoordinator(self.store, self.client)
        self.pipeline = MessagePipeline(
            self.store, self.applier, self.uploads, self.preferences, self.client
        )
        self._clipboard = clipboard
        self.copied_message_id: str | None = None

    # === Sessions ===

    async def load_sessions(self) -> None:
        """Fetch sessions from the backend, provisioning one if there are none."""
        try:
            sessions = await self.client.list_sessions()
        except (ChatApiError, httpx.HTTPError) as e:
            logger.error(f"Failed to load chat sessions: {e}")
            self.store.set_list_error(LIST_FAILED)
            return

        if sessions:
            self.store.replace_sessions(sessions)
        else:
            await self._provision_session()
        self.store.set_list_error(None)

    async def create_session(self, title: str | None = None) -> ChatSession | None:
        """Create a session on the backend and select it."""
        self.store.clear_error()
        self.store.set_list_error(None)
        session = await self._provision_session(title)
        if session is not None:
            self.pipeline.prompt = ""
        return session

    async def archive_session(self, chat_id: str) -> bool:
        return await self._drop_session(chat_id, self.client.archive_session, ARCHIVE_FAILED)

    async def delete_session(self, chat_id: str) -> bool:
        return await self._drop_session(chat_id, self.client.delete_session, DELETE_FAILED)

    async def _drop_session(
        self,
        chat_id: str,
        call: Callable[[str], Awaitable[None]],
        failure_message: str,
    ) -> bool:
        self.store.set_list_error(None)
        try:
            await call(chat_id)
        except (ChatApiError, httpx.HTTPError) as e:
            logger.error(f"Failed to remove chat {chat_id}: {e}")
            self.store.set_list_error(failure_message)
            return False

        was_selected = self.store.selected_id == chat_id
        self.store.remove_session(chat_id)
        if was_selected:
            self.pipeline.prompt = ""
        if self.store.is_empty():
            await self._provision_session()
        return True

    async def _provision_session(self, title: str | None = None) -> ChatSession | None:
        try:
            session = await self.client.create_session(title)
        except (ChatApiError, httpx.HTTPError) as e:
            logger.error(f"Failed to create chat session: {e}")
            self.store.set_list_error(CREATE_FAILED)
            return None
        self.store.upsert_session(session)
        self.store.select_session(session.id)
        logger.info(f"Created chat session {session.id}")
        return session

    def select_session(self, chat_id: str) -> bool:
        changed = self.store.select_session(chat_id)
        if changed:
            self.copied_message_id = None
        return changed

    # === Messages ===

    async def submit(self, prompt: str | None = None) -> bool:
        """Send a prompt (or the pipeline's current input) to the active session."""
        if prompt is not None:
            self.pipeline.prompt = prompt
        return await self.pipeline.submit()

    async def regenerate(self, chat_id: str, message_id: str) -> bool:
        return await self.pipeline.regenerate(chat_id, message_id)

    def cancel_stream(self) -> None:
        self.pipeline.cancel()

    async def upload_files(self, sources: Iterable[UploadSource]) -> None:
        await self.uploads.upload_files(sources)

    def remove_attachment(self, client_id: str) -> bool:
        return self.uploads.remove_attachment(client_id)

    async def copy_message(self, message: ChatMessage) -> bool:
        """Copy message text to the clipboard. Failures are only logged.

        ``copied_message_id`` marks the last copied message until the next
        copy attempt or a change of session.
        """
        self.copied_message_id = None
        if self._clipboard is None:
            logger.warning("No clipboard available, cannot copy message")
            return False
        try:
            result = self._clipboard(message.content)
            if isinstance(result, Awaitable):
                await result
        except Exception as e:
            logger.error(f"Failed to copy message {message.id}: {e}")
            return False
        self.copied_message_id = message.id
        return True

    async def aclose(self) -> None:
        await self.client.aclose()
