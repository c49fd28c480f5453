from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Iterator

from pydantic import ValidationError

from parley.errors import SendInProgressError
from parley.sessions.schema import (
    Chat,
    Message,
    Role,
    Settings,
    dump_chats,
    load_chats,
)
from parley.sessions.storage import CHATS_SLOT, SETTINGS_SLOT, Storage

logger = logging.getLogger(__name__)

DEFAULT_TITLE_PREFIX = "New chat"


def default_title(now: datetime | None = None) -> str:
    now = now or datetime.now()
    return f"{DEFAULT_TITLE_PREFIX} {now.strftime('%H:%M')}"


class SessionStore:
    """Owns the chat collection, the active-chat pointer and the settings.

    Every mutating operation re-serializes the whole collection and the
    settings to storage before returning. Inside ``deferred_persistence`` the
    writes are coalesced into one write when the block exits.
    """

    def __init__(self, storage: Storage, defaults: Settings | None = None):
        self.storage = storage
        self.defaults = defaults or Settings()
        self.chats: list[Chat] = []
        self.active_chat_id: str | None = None
        self.settings: Settings = self.defaults.model_copy()
        self.is_sending = False
        self.closed = False
        self._defer_depth = 0
        self._dirty = False

    # lifecycle

    def initialize(self) -> None:
        self.chats = self._load_chats()
        self.settings = self._load_settings()
        self.closed = False
        logger.debug(f"Loaded {len(self.chats)} chats")

    def shutdown(self) -> None:
        if self.closed:
            return
        if self._dirty:
            self._write()
        self.is_sending = False
        self.closed = True

    def _read_slot(self, slot: str) -> str | None:
        try:
            return self.storage.read(slot)
        except (UnicodeDecodeError, OSError) as e:
            logger.warning(f"Discarding unreadable slot {slot}: {e}")
            return None

    def _load_chats(self) -> list[Chat]:
        raw = self._read_slot(CHATS_SLOT)
        if not raw:
            return []
        try:
            return load_chats(raw)
        except ValidationError as e:
            logger.warning(f"Discarding unreadable chat list: {e.error_count()} errors")
            return []

    def _load_settings(self) -> Settings:
        raw = self._read_slot(SETTINGS_SLOT)
        if not raw:
            return self.defaults.model_copy()
        try:
            loaded = Settings.model_validate_json(raw)
        except ValidationError as e:
            logger.warning(f"Discarding unreadable settings: {e.error_count()} errors")
            return self.defaults.model_copy()
        merged = self.defaults.model_dump()
        merged.update(loaded.model_dump(exclude_unset=True))
        return Settings.model_validate(merged)

    # persistence

    def persist(self) -> None:
        if self._defer_depth:
            self._dirty = True
            return
        self._write()

    def _write(self) -> None:
        self.storage.write(CHATS_SLOT, dump_chats(self.chats))
        self.storage.write(SETTINGS_SLOT, self.settings.model_dump_json(by_alias=True))
        self._dirty = False

    @contextmanager
    def deferred_persistence(self) -> Iterator[None]:
        self._defer_depth += 1
        try:
            yield
        finally:
            self._defer_depth -= 1
            if not self._defer_depth and self._dirty:
                self._write()

    # derived state

    def chat(self, chat_id: str | None) -> Chat | None:
        if not chat_id:
            return None
        for chat in self.chats:
            if chat.id == chat_id:
                return chat
        return None

    @property
    def active_chat(self) -> Chat | None:
        return self.chat(self.active_chat_id)

    def api_message_sequence(self) -> list[dict[str, Any]]:
        chat = self.active_chat
        if chat is None:
            return []
        messages: list[dict[str, Any]] = [
            {
                "role": "system",
                "content": chat.system_prompt or self.settings.system_prompt,
            }
        ]
        for message in chat.messages:
            messages.append({"role": message.role, "content": message.content})
        return messages

    # chats

    def create_chat(self) -> str:
        chat = Chat(
            title=default_title(),
            system_prompt=self.settings.system_prompt,
        )
        self.chats.insert(0, chat)
        self.persist()
        logger.info(f"Created chat {chat.id}")
        return chat.id

    def delete_chat(self, chat_id: str) -> None:
        for index, chat in enumerate(self.chats):
            if chat.id == chat_id:
                del self.chats[index]
                if self.active_chat_id == chat_id:
                    self.active_chat_id = None
                self.persist()
                logger.info(f"Deleted chat {chat_id}")
                return

    def rename_chat(self, chat_id: str, new_title: str) -> None:
        title = (new_title or "").strip()
        chat = self.chat(chat_id)
        if chat is None or not title:
            return
        chat.title = title
        chat.touch()
        self.persist()

    def set_active_chat(self, chat_id: str | None) -> None:
        # Existence is not checked; an unknown id resolves to no active chat.
        self.active_chat_id = chat_id

    # messages

    def append_message(
        self, role: Role, content: str = "", image_url: str | None = None
    ) -> Message | None:
        chat = self.active_chat
        if chat is None:
            return None
        message = Message(role=role, content=content, image_url=image_url)
        chat.messages.append(message)
        chat.touch()
        self.persist()
        return message

    def add_user_message(self, content: str) -> Message | None:
        return self.append_message("user", content)

    def add_assistant_message(self, content: str = "") -> Message | None:
        return self.append_message("assistant", content)

    def update_message_content(self, message_id: str, content: str) -> bool:
        chat = self.active_chat
        if chat is None:
            return False
        message = chat.find_message(message_id)
        if message is None or message.role != "assistant":
            return False
        message.content = content
        chat.touch()
        self.persist()
        return True

    # settings

    def update_settings(self, partial: dict[str, Any] | None = None, **kwargs: Any) -> Settings:
        changes = dict(partial or {})
        changes.update(kwargs)
        names = Settings.field_names()
        unknown = sorted(key for key in changes if key not in names)
        if unknown:
            raise ValueError(f"Unknown settings: {', '.join(unknown)}")
        merged = self.settings.model_dump()
        for key, value in changes.items():
            merged[names[key]] = value
        self.settings = Settings.model_validate(merged)
        self.persist()
        return self.settings

    def update_default_system_prompt(self, prompt: str) -> None:
        if not isinstance(prompt, str):
            return
        self.update_settings(system_prompt=prompt.strip())

    # in-flight request flag

    def begin_sending(self) -> None:
        if self.is_sending:
            raise SendInProgressError("A reply is already being streamed")
        self.is_sending = True

    def finish_sending(self) -> None:
        self.is_sending = False
