"""Chat engine orchestration.

Responsibilities:
    - Optimistic message submission with rollback on failure
    - Regeneration of assistant responses
    - Concurrent uploads gating submission
    - Session lifecycle and provisioning against the backend
"""

from chatstream.engine.chat_service import ChatService
from chatstream.engine.pipeline import ChatBusyError, MessagePipeline
from chatstream.engine.uploads import UploadCoordinator

__all__ = ["ChatBusyError", "ChatService", "MessagePipeline", "UploadCoordinator"]
