"""Integration tests for components working together as a system.

Drives the real ChatApiClient through httpx ASGITransport against an
in-process FastAPI fake of the chat backend.

Coverage:
    - Session listing, creation, archive and delete with provisioning
    - Message submission with optimistic insert and rollback
    - Regeneration of assistant responses
    - File uploads gating submission
"""
