"""Pytest fixtures and shared test configuration.

Provides reusable fixtures for unit and integration tests.

Fixtures:
    - config: Client configuration pointing at the fake backend
    - backend: In-process fake chat backend with failure switches
    - api_client: ChatApiClient wired to the fake backend via ASGITransport
    - service: ChatService on top of api_client with in-memory preferences
    - store: Empty SessionStore
"""

from collections.abc import AsyncGenerator
from pathlib import Path

import pytest
from httpx import ASGITransport, AsyncClient

from chatstream.api.client import ChatApiClient
from chatstream.config import ClientConfig
from chatstream.engine.chat_service import ChatService
from chatstream.store.preferences import InMemoryPreferenceBackend
from chatstream.store.session_store import SessionStore
from tests.fake_backend import FakeBackend

BASE_URL = "http://test/api"


@pytest.fixture
def config(tmp_path: Path) -> ClientConfig:
    """Return configuration for the fake backend.

    Args:
        tmp_path: Per-test temporary directory for preference files.
    """
    return ClientConfig(
        api_base_url=BASE_URL,
        request_timeout=5.0,
        preferences_path=tmp_path / "preferences.json",
    )


@pytest.fixture
def backend() -> FakeBackend:
    """Return a fresh fake backend with no sessions."""
    return FakeBackend()


@pytest.fixture
async def api_client(
    backend: FakeBackend, config: ClientConfig
) -> AsyncGenerator[ChatApiClient]:
    """Create a chat API client served by the fake backend.

    Yields:
        ChatApiClient making in-process requests.
    """
    transport = ASGITransport(app=backend.app)
    async with AsyncClient(transport=transport, base_url=BASE_URL) as http_client:
        yield ChatApiClient(config=config, http_client=http_client)


@pytest.fixture
def preference_backend() -> InMemoryPreferenceBackend:
    return InMemoryPreferenceBackend()


@pytest.fixture
def service(
    api_client: ChatApiClient,
    preference_backend: InMemoryPreferenceBackend,
    config: ClientConfig,
) -> ChatService:
    """Create a chat service on top of the fake backend."""
    return ChatService(client=api_client, preference_backend=preference_backend, config=config)


@pytest.fixture
def store() -> SessionStore:
    return SessionStore()
