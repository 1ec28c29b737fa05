import mimetypes
import uuid
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

ChatRole = Literal["user", "assistant"]


def new_id() -> str:
    """Generate a locally unique identifier."""
    return str(uuid.uuid4())


class Attachment(BaseModel):
    """A file attached to a confirmed message."""

    id: str
    message_id: str
    file_name: str
    mime_type: str
    size_bytes: int = Field(ge=0)
    url: str
    created_at: datetime


class AttachmentMetadata(BaseModel):
    """Upload result returned by the backend.

    Attributes:
        file_name: Original file name.
        mime_type: Detected MIME type.
        size_bytes: Stored size in bytes.
        url: Retrieval URL for the stored file.
        storage_key: Backend storage key, never sent back with a message.
    """

    file_name: str
    mime_type: str
    size_bytes: int = Field(ge=0)
    url: str
    storage_key: str

    def to_payload(self) -> dict[str, Any]:
        """Attachment entry for a send-message request."""
        return {
            "file_name": self.file_name,
            "mime_type": self.mime_type,
            "size_bytes": self.size_bytes,
            "url": self.url,
        }


class PendingAttachment(AttachmentMetadata):
    """Uploaded file held client-side until the next submission."""

    client_id: str = Field(default_factory=new_id)


class ChatMessage(BaseModel):
    """A single message in a chat session.

    Attributes:
        id: Identifier, unique within the session.
        session_id: Owning session.
        role: Speaker, user or assistant.
        content: Message text; grows by append while streaming.
        position: Ordinal position in the conversation.
        created_at: Creation timestamp.
        attachments: Files sent with the message.
    """

    id: str
    session_id: str
    role: ChatRole
    content: str = ""
    position: int = Field(ge=0)
    created_at: datetime
    attachments: list[Attachment] = Field(default_factory=list)


class ChatSession(BaseModel):
    """A chat session and its ordered messages."""

    id: str
    title: str
    created_at: datetime
    updated_at: datetime
    archived: bool = False
    messages: list[ChatMessage] = Field(default_factory=list)

    def find_message(self, message_id: str) -> ChatMessage | None:
        return next((m for m in self.messages if m.id == message_id), None)


class StreamEventType(str, Enum):
    """Known tags of a streamed response frame."""

    SESSION = "session"
    TOKEN = "token"
    REASONING = "reasoning"
    FINAL = "final"
    ERROR = "error"


class StreamEvent(BaseModel):
    """One decoded frame of a streamed response.

    ``type`` stays a plain string so frames with tags this client does not
    know yet still decode; the applier ignores them.

    Attributes:
        type: Event tag (session, token, reasoning, final, error).
        session: Full session snapshot for session and final events.
        chat_id: Session the event refers to (``chatId`` on the wire).
        message_id: Message the event refers to (``messageId`` on the wire).
        content: Token or reasoning text.
        message: Error description for error events.
    """

    model_config = ConfigDict(populate_by_name=True)

    type: str
    session: ChatSession | None = None
    chat_id: str | None = Field(None, alias="chatId")
    message_id: str | None = Field(None, alias="messageId")
    content: str | None = None
    message: str | None = None


class StreamingMarker(BaseModel):
    """The (session, message) pair currently receiving tokens."""

    model_config = ConfigDict(frozen=True)

    chat_id: str
    message_id: str


class ChatError(BaseModel):
    """User-visible error scoped to one chat session."""

    chat_id: str
    message: str


class CompletionParams(BaseModel):
    """Optional sampling parameters sent with a completion request.

    Every field may be None, in which case it is left out of the request
    and the backend default applies.
    """

    temperature: float | None = Field(default=0.7, ge=0.0, le=2.0)
    max_tokens: int | None = Field(default=None, ge=1)
    top_p: float | None = Field(default=1.0, ge=0.0, le=1.0)
    presence_penalty: float | None = Field(default=0.0, ge=-2.0, le=2.0)
    frequency_penalty: float | None = Field(default=0.0, ge=-2.0, le=2.0)
    seed: int | None = None

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


class UploadSource(BaseModel):
    """A local file waiting to be uploaded."""

    file_name: str = Field(..., min_length=1)
    content: bytes
    mime_type: str = "application/octet-stream"

    @classmethod
    def from_path(cls, path: Path) -> "UploadSource":
        """Read a file from disk, guessing its MIME type from the name."""
        mime_type, _ = mimetypes.guess_type(path.name)
        return cls(
            file_name=path.name,
            content=path.read_bytes(),
            mime_type=mime_type or "application/octet-stream",
        )
