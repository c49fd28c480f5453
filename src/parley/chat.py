from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncContextManager, AsyncIterator, Callable

import httpx

from common.events import AssistantResponseStartEvent, ErrorEvent, EventEmitter
from parley.config import ConfigError, ParleyConfig
from parley.errors import NoActiveChatError
from parley.sessions.schema import Chat, Message, Settings
from parley.sessions.store import DEFAULT_TITLE_PREFIX, SessionStore
from parley.stream.ingestor import IngestResult, StreamIngestor
from parley.stream.mock import mock_stream
from parley.stream.transport import build_chat_payload, open_chat_stream

logger = logging.getLogger(__name__)

AUTO_TITLE_LENGTH = 20

StreamFactory = Callable[[dict[str, Any], Settings], AsyncContextManager[AsyncIterator[bytes]]]


class ChatService:
    """Drives one user turn: placeholder, stream, ingestion, finalization."""

    def __init__(
        self,
        store: SessionStore,
        config: ParleyConfig | None = None,
        client: httpx.AsyncClient | None = None,
        stream_factory: StreamFactory | None = None,
        emitter: EventEmitter | None = None,
    ):
        self.store = store
        self.config = config or ParleyConfig()
        self.client = client
        self.stream_factory = stream_factory or self._default_stream
        self.emitter = emitter or EventEmitter()
        self.ingestor = StreamIngestor(store.update_message_content, self.emitter)
        self._task: asyncio.Task | None = None

    @asynccontextmanager
    async def _default_stream(
        self, payload: dict[str, Any], settings: Settings
    ) -> AsyncIterator[AsyncIterator[bytes]]:
        if self.config.mock:
            chunks = mock_stream(delay=self.config.mock_delay)
            try:
                yield chunks
            finally:
                await chunks.aclose()
            return
        async with open_chat_stream(
            settings.api_endpoint,
            settings.api_key,
            payload,
            client=self.client,
            timeout=self.config.timeout,
        ) as chunks:
            yield chunks

    def _check_ready(self) -> Chat:
        chat = self.store.active_chat
        if chat is None:
            raise NoActiveChatError("No active chat; create or select one first")
        if not self.config.mock and not self.store.settings.api_endpoint:
            raise ConfigError("No API endpoint configured (set one or use mock mode)")
        return chat

    def _auto_title(self, chat: Chat, text: str) -> None:
        if not chat.title.startswith(DEFAULT_TITLE_PREFIX):
            return
        user_turns = sum(1 for message in chat.messages if message.role == "user")
        if user_turns == 1:
            self.store.rename_chat(chat.id, text[:AUTO_TITLE_LENGTH])

    async def send(self, text: str) -> Message:
        text = (text or "").strip()
        if not text:
            raise ValueError("Message text is empty")
        chat = self._check_ready()

        self.store.begin_sending()
        self._task = asyncio.current_task()
        try:
            self.store.add_user_message(text)
            self._auto_title(chat, text)
            placeholder = self.store.add_assistant_message("")
            self.emitter.emit(
                AssistantResponseStartEvent(chat_id=chat.id, message_id=placeholder.id)
            )

            settings = self.store.settings
            payload = build_chat_payload(
                settings.bot_id, self.config.user_id, self.store.api_message_sequence()
            )
            result = IngestResult()
            try:
                with self.store.deferred_persistence():
                    async with self.stream_factory(payload, settings) as chunks:
                        await self.ingestor.ingest(chunks, placeholder.id, result)
            except asyncio.CancelledError:
                task = asyncio.current_task()
                if task is not None:
                    task.uncancel()
                logger.info(
                    f"Reply abandoned after {result.fragments} fragments; keeping partial content"
                )
            except Exception as e:
                self.emitter.emit(ErrorEvent(message=str(e), source="stream"))
                raise

            return chat.find_message(placeholder.id) or placeholder
        finally:
            self._task = None
            self.store.finish_sending()

    def cancel(self) -> bool:
        """Abandon the in-flight reply, if any. Returns whether one was running."""
        if self._task is None or self._task.done():
            return False
        self._task.cancel()
        return True
