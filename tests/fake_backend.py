"""In-process FastAPI fake of the chat backend.

Implements the session, streaming and upload endpoints the client consumes,
with knobs to make individual calls fail. Served through httpx ASGITransport,
so tests exercise the real client without any network.
"""

import asyncio
from collections.abc import AsyncIterator
from datetime import UTC, datetime, timedelta
from itertools import count
from typing import Any

from fastapi import FastAPI, HTTPException, Request, Response, UploadFile
from fastapi.responses import PlainTextResponse, StreamingResponse
from pydantic import BaseModel

from tests.factories import sse


class CreateSessionBody(BaseModel):
    title: str | None = None


class SendMessageBody(BaseModel):
    content: str
    model: str
    attachments: list[dict[str, Any]] = []
    completion_params: dict[str, Any] | None = None


class RegenerateBody(BaseModel):
    message_id: str
    model: str
    completion_params: dict[str, Any] | None = None


class FakeBackend:
    """Chat backend state plus failure switches.

    Attributes:
        sessions: Stored sessions as plain JSON-ready dicts.
        requests: "METHOD /path" for every request received.
        bodies: JSON bodies of streaming requests.
        stream_status: Status for streaming endpoints; non-200 fails them.
        reply_tokens: Tokens streamed for each assistant reply.
        extra_frames: Raw frames sent between the tokens and the final frame.
        stream_error: If set, an error frame replaces the final frame.
        failing_uploads: File names whose upload returns 500.
        upload_gate: If set, uploads wait on it before answering.
        stream_gate: If set, streaming endpoints wait on it before answering.
        malformed_body: If set, non-streaming endpoints answer 200 with it.
    """

    def __init__(self) -> None:
        self.sessions: dict[str, dict[str, Any]] = {}
        self.requests: list[str] = []
        self.bodies: list[dict[str, Any]] = []
        self.stream_status = 200
        self.reply_tokens = ["Hel", "lo"]
        self.extra_frames: list[str] = []
        self.stream_error: str | None = None
        self.failing_uploads: set[str] = set()
        self.upload_gate: asyncio.Event | None = None
        self.stream_gate: asyncio.Event | None = None
        self.malformed_body: str | None = None
        self._ids = count(1)
        self._clock = datetime(2025, 1, 1, tzinfo=UTC)
        self.app = self._build_app()

    def streamed_requests(self) -> list[str]:
        return [r for r in self.requests if r.endswith("/stream")]

    def _next_id(self, prefix: str) -> str:
        return f"{prefix}-{next(self._ids)}"

    def _tick(self) -> str:
        self._clock += timedelta(minutes=1)
        return self._clock.isoformat()

    def add_session(self, title: str = "New chat") -> dict[str, Any]:
        now = self._tick()
        session = {
            "id": self._next_id("chat"),
            "title": title,
            "created_at": now,
            "updated_at": now,
            "archived": False,
            "messages": [],
        }
        self.sessions[session["id"]] = session
        return session

    def add_message(
        self,
        session: dict[str, Any],
        role: str,
        content: str,
        attachments: list[dict[str, Any]] | None = None,
    ) -> dict[str, Any]:
        message_id = self._next_id("msg")
        now = self._tick()
        message = {
            "id": message_id,
            "session_id": session["id"],
            "role": role,
            "content": content,
            "position": len(session["messages"]) + 1,
            "created_at": now,
            "attachments": [
                {"id": self._next_id("att"), "message_id": message_id, "created_at": now, **a}
                for a in attachments or []
            ],
        }
        session["messages"].append(message)
        session["updated_at"] = now
        return message

    async def _reply(
        self, session: dict[str, Any], assistant: dict[str, Any]
    ) -> AsyncIterator[str]:
        ids = {"chatId": session["id"], "messageId": assistant["id"]}
        yield sse({"type": "session", "session": session, **ids})
        yield sse({"type": "reasoning", "content": "Thinking..."})
        for token in self.reply_tokens:
            yield sse({"type": "token", "content": token, **ids})
        for frame in self.extra_frames:
            yield frame
        if self.stream_error is not None:
            yield sse({"type": "error", "message": self.stream_error})
            return
        assistant["content"] = "".join(self.reply_tokens)
        session["updated_at"] = self._tick()
        yield sse({"type": "final", "session": session})

    def _get_session(self, chat_id: str) -> dict[str, Any]:
        if chat_id not in self.sessions:
            raise HTTPException(status_code=404, detail="Chat not found")
        return self.sessions[chat_id]

    def _build_app(self) -> FastAPI:
        app = FastAPI(title="Fake chat backend")

        @app.middleware("http")
        async def record_request(request: Request, call_next):
            self.requests.append(f"{request.method} {request.url.path}")
            if self.malformed_body is not None and not request.url.path.endswith("/stream"):
                return Response(self.malformed_body, media_type="application/json")
            return await call_next(request)

        @app.post("/api/chat/sessions")
        async def create_session(body: CreateSessionBody) -> dict[str, Any]:
            return self.add_session(body.title or "New chat")

        @app.get("/api/chat/sessions")
        async def list_sessions() -> list[dict[str, Any]]:
            # Deliberately unordered: oldest first
            return list(self.sessions.values())

        @app.post("/api/chat/sessions/{chat_id}/archive")
        async def archive_session(chat_id: str) -> Response:
            self._get_session(chat_id)
            del self.sessions[chat_id]
            return Response(status_code=204)

        @app.delete("/api/chat/sessions/{chat_id}")
        async def delete_session(chat_id: str) -> Response:
            self._get_session(chat_id)
            del self.sessions[chat_id]
            return Response(status_code=204)

        @app.post("/api/chat/sessions/{chat_id}/messages/stream")
        async def send_message(chat_id: str, body: SendMessageBody) -> Response:
            self.bodies.append(body.model_dump())
            if self.stream_gate is not None:
                await self.stream_gate.wait()
            if self.stream_status != 200:
                return PlainTextResponse("backend unavailable", status_code=self.stream_status)
            session = self._get_session(chat_id)
            self.add_message(session, "user", body.content, body.attachments)
            assistant = self.add_message(session, "assistant", "")
            return StreamingResponse(
                self._reply(session, assistant), media_type="text/event-stream"
            )

        @app.post("/api/chat/sessions/{chat_id}/regenerate/stream")
        async def regenerate(chat_id: str, body: RegenerateBody) -> Response:
            self.bodies.append(body.model_dump())
            if self.stream_gate is not None:
                await self.stream_gate.wait()
            if self.stream_status != 200:
                return PlainTextResponse("backend unavailable", status_code=self.stream_status)
            session = self._get_session(chat_id)
            assistant = next(
                (m for m in session["messages"] if m["id"] == body.message_id), None
            )
            if assistant is None:
                raise HTTPException(status_code=404, detail="Message not found")
            assistant["content"] = ""
            return StreamingResponse(
                self._reply(session, assistant), media_type="text/event-stream"
            )

        @app.post("/api/uploads", response_model=None)
        async def upload(file: UploadFile) -> Response | dict[str, Any]:
            if self.upload_gate is not None:
                await self.upload_gate.wait()
            if file.filename in self.failing_uploads:
                return PlainTextResponse("storage error", status_code=500)
            content = await file.read()
            key = self._next_id("key")
            return {
                "file_name": file.filename,
                "mime_type": file.content_type or "application/octet-stream",
                "size_bytes": len(content),
                "url": f"https://files.test/{key}",
                "storage_key": key,
            }

        return app
