"""Client-side state: chat sessions and persisted preferences.

Responsibilities:
    - Session collection ordered by last update, with a selection cursor
    - Incremental message edits driven by the stream applier
    - Session-scoped and session-list error state
    - Model preference persistence through an injected backend
"""

from chatstream.store.preferences import (
    InMemoryPreferenceBackend,
    JsonFilePreferenceBackend,
    PreferenceBackend,
    PreferenceStore,
)
from chatstream.store.session_store import SessionStore

__all__ = [
    "InMemoryPreferenceBackend",
    "JsonFilePreferenceBackend",
    "PreferenceBackend",
    "PreferenceStore",
    "SessionStore",
]
