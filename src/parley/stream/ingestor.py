from __future__ import annotations

import json
import logging
from contextlib import aclosing
from dataclasses import dataclass
from typing import Any, AsyncIterable, Callable

from common.events import AssistantDeltaEvent, AssistantMessageEvent, EventEmitter
from parley.stream.sse import DONE_SENTINEL, iter_events

logger = logging.getLogger(__name__)

ContentUpdate = Callable[[str, str], Any]


@dataclass
class IngestResult:
    content: str = ""
    fragments: int = 0
    skipped: int = 0
    completed: bool = False


def answer_fragment(payload: Any) -> str | None:
    """Return the visible text carried by one decoded event, if any."""
    if not isinstance(payload, dict):
        return None
    message = payload.get("message")
    if not isinstance(message, dict):
        return None
    if message.get("role") != "assistant" or message.get("type") != "answer":
        return None
    content = message.get("content")
    if not isinstance(content, str):
        return None
    return content


class StreamIngestor:
    """Feeds the answer fragments of one SSE stream into one assistant message.

    ``update`` receives the cumulative reply after every contributing
    fragment, since the store replaces message content wholesale.
    """

    def __init__(self, update: ContentUpdate, emitter: EventEmitter | None = None):
        self.update = update
        self.emitter = emitter or EventEmitter()

    async def ingest(
        self,
        chunks: AsyncIterable[bytes],
        message_id: str,
        result: IngestResult | None = None,
    ) -> IngestResult:
        result = result if result is not None else IngestResult()
        buffer: list[str] = []

        async with aclosing(iter_events(chunks)) as events:
            async for data in events:
                if data.strip() == DONE_SENTINEL:
                    result.completed = True
                    break
                try:
                    payload = json.loads(data)
                except json.JSONDecodeError as e:
                    result.skipped += 1
                    logger.warning(f"Skipping undecodable stream event: {e}")
                    continue

                fragment = answer_fragment(payload)
                if fragment is None:
                    logger.debug("Ignoring non-answer stream event")
                    continue

                buffer.append(fragment)
                result.fragments += 1
                result.content = "".join(buffer)
                self.update(message_id, result.content)
                self.emitter.emit(AssistantDeltaEvent(text=fragment))

        if not result.completed:
            logger.warning("Stream ended without a [DONE] event")
        self.emitter.emit(
            AssistantMessageEvent(content=result.content, completed=result.completed)
        )
        return result
