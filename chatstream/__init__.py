"""chatstream - client-side engine for streamed AI chat sessions.

Keeps a collection of chat sessions consistent while a backend streams
responses token-by-token over chunked HTTP.

Components:
    - models: Session, message, attachment and stream event schemas
    - store: In-memory session store and persisted model preferences
    - streaming: SSE frame decoding and stream event application
    - api: HTTPX client for the chat backend contract
    - engine: Optimistic message pipeline, upload coordination, chat service
"""

__version__ = "0.1.0"
