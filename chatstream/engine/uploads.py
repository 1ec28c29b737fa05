"""Concurrent file uploads feeding pending attachments.

Every file uploads as its own asyncio task. The pending count goes up as
soon as a task starts and down when it ends, success or not; submission is
blocked while it is above zero. Pending attachments belong to the session
that was current when their upload began.
"""

import asyncio
import logging
from collections.abc import Iterable, Sequence

import httpx

from chatstream.api.client import ChatApiClient, ChatApiError
from chatstream.constants import UPLOAD_FAILED
from chatstream.models.schemas import PendingAttachment, UploadSource
from chatstream.store.session_store import SessionStore

logger = logging.getLogger(__name__)


class UploadCoordinator:
    """Tracks in-flight uploads and the pending-attachment set."""

    def __init__(self, store: SessionStore, client: ChatApiClient) -> None:
        self._store = store
        self._client = client
        self._pending: list[PendingAttachment] = []
        self._pending_count = 0
        self._tasks: set[asyncio.Task[None]] = set()
        self._scope = self._current_session_id()
        # Bumped on every scope change so stale uploads can be recognised
        self._generation = 0
        store.subscribe(self._on_store_change)

    @property
    def pending_count(self) -> int:
        return self._pending_count

    @property
    def pending_attachments(self) -> tuple[PendingAttachment, ...]:
        return tuple(self._pending)

    @property
    def session_id(self) -> str:
        """Session the pending attachments belong to."""
        return self._scope

    def start_upload(self, source: UploadSource) -> asyncio.Task[None]:
        """Start uploading one file in the background.

        Must be called from within a running event loop.
        """
        self._pending_count += 1
        task = asyncio.create_task(self._upload(source, self._scope, self._generation))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        self._store.notify()
        return task

    async def upload_files(self, sources: Iterable[UploadSource]) -> None:
        """Upload several files concurrently and wait for all of them."""
        tasks = [self.start_upload(source) for source in sources]
        if tasks:
            await asyncio.gather(*tasks)

    async def _upload(self, source: UploadSource, session_id: str, generation: int) -> None:
        try:
            meta = await self._client.upload_file(source)
        except (ChatApiError, httpx.HTTPError) as e:
            logger.error(f"Upload of {source.file_name} failed: {e}")
            if generation == self._generation:
                self._store.set_error(session_id, UPLOAD_FAILED)
            return
        finally:
            if generation == self._generation:
                self._pending_count = max(0, self._pending_count - 1)

        if generation != self._generation:
            logger.info(f"Discarding upload {source.file_name}: session changed meanwhile")
            return
        self._pending.append(PendingAttachment(**meta.model_dump()))
        logger.info(f"Uploaded {source.file_name} ({meta.size_bytes} bytes)")
        self._store.notify()

    def remove_attachment(self, client_id: str) -> bool:
        """Drop a pending attachment by its correlation id."""
        remaining = [a for a in self._pending if a.client_id != client_id]
        if len(remaining) == len(self._pending):
            return False
        self._pending = remaining
        self._store.notify()
        return True

    def take_pending(self) -> list[PendingAttachment]:
        """Return and clear the pending attachments."""
        taken, self._pending = self._pending, []
        return taken

    def restore_pending(self, attachments: Sequence[PendingAttachment]) -> None:
        """Put attachments back after a failed submission."""
        self._pending = [*attachments, *self._pending]
        self._store.notify()

    def _current_session_id(self) -> str:
        current = self._store.current_session
        return current.id if current is not None else ""

    def _on_store_change(self, store: SessionStore) -> None:
        session_id = self._current_session_id()
        if session_id == self._scope:
            return
        self._scope = session_id
        self._generation += 1
        self._pending = []
        self._pending_count = 0
