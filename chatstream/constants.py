"""Model options and user-facing messages shared across the engine."""

MODEL_OPTIONS: tuple[tuple[str, str], ...] = (
    ("llama-3.1-8b-instant", "Llama 3.1 8B (Groq)"),
    ("gpt-5.1", "GPT-5.1 (OpenAI)"),
    ("gpt-5-mini", "GPT-5 mini (OpenAI)"),
    ("gpt-5-nano", "GPT-5 nano (OpenAI)"),
    ("gpt-5-pro", "GPT-5 pro (OpenAI)"),
    ("gpt-5", "GPT-5 (OpenAI)"),
    ("gpt-4.1", "GPT-4.1 (OpenAI)"),
)
MODEL_IDS = frozenset(model_id for model_id, _ in MODEL_OPTIONS)
DEFAULT_MODEL_ID = MODEL_OPTIONS[0][0]

# The Groq-hosted model cannot read files or images
ATTACHMENT_RESTRICTED_MODEL_ID = "llama-3.1-8b-instant"

PREFERRED_MODEL_KEY = "preferred-model"

# User-facing messages
NO_ACTIVE_SESSION = "No chat session is open."
EMPTY_PROMPT = "Type a message before sending."
UPLOADS_PENDING = "Please wait, files are still uploading."
ATTACHMENTS_NEED_OPENAI = (
    "Files and images require an OpenAI model (GPT-5.1, GPT-5 mini, etc.)."
)
SEND_FAILED = "Could not send the message to the AI. Check the backend and try again."
REGENERATE_FAILED = "Could not regenerate this response."
REGENERATE_TARGET_INVALID = "Only assistant responses can be regenerated."
STREAM_FAILED = "An error occurred while streaming the response."
UPLOAD_FAILED = "Could not upload this file."
LIST_FAILED = "Could not load chat sessions right now."
CREATE_FAILED = "Could not create a new chat right now."
ARCHIVE_FAILED = "Could not archive this chat."
DELETE_FAILED = "Could not delete this chat."
