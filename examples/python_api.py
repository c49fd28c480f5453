#!/usr/bin/env python3
"""
Parley - Python API Examples

Shows how to drive the session store and the streaming ingestion
programmatically instead of through the CLI.
"""

import asyncio
import tempfile

from common.events import AssistantDeltaEvent, EventEmitter
from parley.chat import ChatService
from parley.config import ParleyConfig
from parley.sessions.storage import FileStorage
from parley.sessions.store import SessionStore


def example_mock_reply(data_dir: str):
    """Example 1: stream a reply from the built-in mock source"""
    print("=== Example 1: Mock reply ===\n")

    config = ParleyConfig(data_dir=data_dir, mock=True, mock_delay=0.05)
    store = SessionStore(FileStorage(config.data_dir), defaults=config.default_settings())
    store.initialize()

    store.set_active_chat(store.create_chat())

    def on_event(event):
        if isinstance(event, AssistantDeltaEvent):
            print(event.text, end="", flush=True)

    service = ChatService(store, config, emitter=EventEmitter(on_event))
    message = asyncio.run(service.send("Show me what you can do"))
    print(f"\n\nStored {len(message.content)} characters in chat {store.active_chat.title!r}")
    store.shutdown()


def example_reload(data_dir: str):
    """Example 2: reload persisted chats"""
    print("\n=== Example 2: Reload ===\n")

    store = SessionStore(FileStorage(data_dir))
    store.initialize()
    for chat in store.chats:
        print(f"{chat.id}: {chat.title} ({len(chat.messages)} messages)")
    store.shutdown()


if __name__ == "__main__":
    with tempfile.TemporaryDirectory() as tmp:
        example_mock_reply(tmp)
        example_reload(tmp)
