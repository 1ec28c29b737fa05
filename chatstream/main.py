"""Main application entry point.

Runs a minimal terminal chat on top of the engine against the backend at
CHAT_API_BASE_URL. Environment variables are loaded from .env file.
"""

import asyncio
import logging
import os
import sys
from typing import TYPE_CHECKING

from dotenv import load_dotenv

if TYPE_CHECKING:
    from chatstream.engine.chat_service import ChatService
    from chatstream.models.schemas import ChatError
    from chatstream.store.session_store import SessionStore

# Load environment variables before any other imports that might need them
load_dotenv()

# Configure logging
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "WARNING").upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)
logger = logging.getLogger(__name__)


class TerminalRenderer:
    """Prints streamed tokens as the session store changes."""

    def __init__(self, service: "ChatService") -> None:
        self._service = service
        self._printed = 0
        self._last_error: "ChatError | None" = None

    def __call__(self, store: "SessionStore") -> None:
        marker = self._service.applier.streaming
        if marker is not None:
            session = store.get_session(marker.chat_id)
            message = session.find_message(marker.message_id) if session else None
            if message is not None and len(message.content) > self._printed:
                print(message.content[self._printed :], end="", flush=True)
                self._printed = len(message.content)
        else:
            self._printed = 0

        if store.error is not None and store.error != self._last_error:
            print(f"\n[error] {store.error.message}", flush=True)
        self._last_error = store.error


async def run_terminal() -> None:
    """Chat in the terminal until EOF or /quit."""
    from chatstream.engine.chat_service import ChatService
    from chatstream.engine.pipeline import ChatBusyError

    service = ChatService()
    service.store.subscribe(TerminalRenderer(service))

    try:
        await service.load_sessions()
        if service.store.list_error:
            print(service.store.list_error)
            return

        current = service.store.current_session
        print(f"Chat: {current.title if current else '-'} | model: {service.preferences.model_id}")
        print("Type a message, /new for a new chat, /quit to exit.")

        while True:
            try:
                line = await asyncio.to_thread(input, "\n> ")
            except EOFError:
                break
            if line.strip() == "/quit":
                break
            if line.strip() == "/new":
                await service.create_session()
                continue
            try:
                await service.submit(line)
            except ChatBusyError as e:
                logger.warning(str(e))
            print()
    finally:
        await service.aclose()


def main() -> None:
    """Application entry point."""
    logger.info("Starting chatstream terminal client")
    try:
        asyncio.run(run_terminal())
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down")


if __name__ == "__main__":
    main()
