"""HTTP client for the chat backend.

Endpoints consumed:
    - POST/GET /chat/sessions: Create and list sessions
    - POST /chat/sessions/{id}/archive, DELETE /chat/sessions/{id}
    - POST /chat/sessions/{id}/messages/stream: Send a message (SSE)
    - POST /chat/sessions/{id}/regenerate/stream: Regenerate a reply (SSE)
    - POST /uploads: Upload one file
"""

from chatstream.api.client import ChatApiClient, ChatApiError

__all__ = ["ChatApiClient", "ChatApiError"]
