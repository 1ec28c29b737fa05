"""Pydantic models for chat sessions and the streaming wire format.

Provides type safety and validation for everything exchanged with the backend.

Models:
    - ChatSession: A conversation with its ordered messages
    - ChatMessage: Individual message in a conversation
    - Attachment: File confirmed as part of a message
    - PendingAttachment: Uploaded file not yet sent with a message
    - StreamEvent: One decoded frame of a streamed response
    - CompletionParams: Optional sampling parameters
"""

from chatstream.models.schemas import (
    Attachment,
    AttachmentMetadata,
    ChatError,
    ChatMessage,
    ChatRole,
    ChatSession,
    CompletionParams,
    PendingAttachment,
    StreamEvent,
    StreamEventType,
    StreamingMarker,
    UploadSource,
)

__all__ = [
    "Attachment",
    "AttachmentMetadata",
    "ChatError",
    "ChatMessage",
    "ChatRole",
    "ChatSession",
    "CompletionParams",
    "PendingAttachment",
    "StreamEvent",
    "StreamEventType",
    "StreamingMarker",
    "UploadSource",
]
