"""HTTPX client for the chat backend.

Wraps the session, streaming and upload endpoints. Non-2xx responses and
malformed bodies raise ChatApiError carrying the response body; streaming
calls raise before any chunk is yielded.
"""

import logging
from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager
from typing import Any, Self, TypeVar

import httpx
from pydantic import TypeAdapter, ValidationError

from chatstream.config import ClientConfig, get_client_config
from chatstream.models.schemas import (
    AttachmentMetadata,
    ChatSession,
    CompletionParams,
    UploadSource,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

_SESSION = TypeAdapter(ChatSession)
_SESSION_LIST = TypeAdapter(list[ChatSession])
_ATTACHMENT = TypeAdapter(AttachmentMetadata)


class ChatApiError(Exception):
    """Raised when the backend answers with a non-2xx status or a malformed body."""

    def __init__(self, status_code: int, detail: str) -> None:
        super().__init__(f"HTTP {status_code}: {detail}")
        self.status_code = status_code
        self.detail = detail


async def _ensure_ok(response: httpx.Response) -> None:
    """Raise ChatApiError with the body as detail for error statuses."""
    if response.is_error:
        await response.aread()
        raise ChatApiError(response.status_code, response.text)


def _parse_body(response: httpx.Response, adapter: TypeAdapter[T]) -> T:
    """Validate a successful JSON body.

    Raises:
        ChatApiError: Body is not JSON or does not match the expected shape.
    """
    try:
        return adapter.validate_json(response.content)
    except ValidationError as e:
        logger.error(f"Malformed response body from {response.request.url}: {e}")
        raise ChatApiError(response.status_code, response.text) from e


class ChatApiClient:
    """Async client for the chat backend contract.

    Args:
        config: Client configuration. Loads from environment if not provided.
        http_client: Preconfigured httpx client, e.g. with an ASGI transport.
    """

    def __init__(
        self,
        config: ClientConfig | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._config = config or get_client_config()
        self._client = http_client or httpx.AsyncClient(
            base_url=self._config.api_base_url,
            timeout=self._config.request_timeout,
        )

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    # === Sessions ===

    async def create_session(self, title: str | None = None) -> ChatSession:
        response = await self._client.post("/chat/sessions", json={"title": title})
        await _ensure_ok(response)
        return _parse_body(response, _SESSION)

    async def list_sessions(self) -> list[ChatSession]:
        """Fetch all sessions. The backend guarantees no ordering."""
        response = await self._client.get("/chat/sessions")
        await _ensure_ok(response)
        return _parse_body(response, _SESSION_LIST)

    async def archive_session(self, chat_id: str) -> None:
        response = await self._client.post(f"/chat/sessions/{chat_id}/archive")
        await _ensure_ok(response)

    async def delete_session(self, chat_id: str) -> None:
        response = await self._client.delete(f"/chat/sessions/{chat_id}")
        await _ensure_ok(response)

    # === Streaming ===

    @asynccontextmanager
    async def stream_message(
        self,
        chat_id: str,
        content: str,
        model: str,
        attachments: Sequence[AttachmentMetadata] = (),
        completion_params: CompletionParams | None = None,
    ) -> AsyncIterator[AsyncIterator[str]]:
        """Send a message and open its response stream.

        Yields:
            The response body as text chunks.

        Raises:
            ChatApiError: Backend rejected the request.
            httpx.HTTPError: Transport failure.
        """
        body = {
            "content": content,
            "model": model,
            "attachments": [a.to_payload() for a in attachments],
            "completion_params": completion_params.to_payload() if completion_params else None,
        }
        async with self._open_stream(f"/chat/sessions/{chat_id}/messages/stream", body) as chunks:
            yield chunks

    @asynccontextmanager
    async def stream_regeneration(
        self,
        chat_id: str,
        message_id: str,
        model: str,
        completion_params: CompletionParams | None = None,
    ) -> AsyncIterator[AsyncIterator[str]]:
        """Regenerate an assistant message and open its response stream."""
        body = {
            "message_id": message_id,
            "model": model,
            "completion_params": completion_params.to_payload() if completion_params else None,
        }
        async with self._open_stream(f"/chat/sessions/{chat_id}/regenerate/stream", body) as chunks:
            yield chunks

    @asynccontextmanager
    async def _open_stream(
        self, path: str, body: dict[str, Any]
    ) -> AsyncIterator[AsyncIterator[str]]:
        async with self._client.stream(
            "POST",
            path,
            json=body,
            headers={"Accept": "text/event-stream"},
        ) as response:
            await _ensure_ok(response)
            logger.debug(f"Stream opened: POST {path}")
            yield response.aiter_text()

    # === Uploads ===

    async def upload_file(self, source: UploadSource) -> AttachmentMetadata:
        response = await self._client.post(
            "/uploads",
            files={"file": (source.file_name, source.content, source.mime_type)},
        )
        await _ensure_ok(response)
        return _parse_body(response, _ATTACHMENT)
