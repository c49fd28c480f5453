import logging
from pathlib import Path
from typing import Protocol

from common.jsonio import atomic_write_text, read_text

logger = logging.getLogger(__name__)

CHATS_SLOT = "chat-list"
SETTINGS_SLOT = "app-settings"


class Storage(Protocol):
    def read(self, slot: str) -> str | None: ...

    def write(self, slot: str, text: str) -> None: ...


class FileStorage:
    def __init__(self, data_dir: str | Path):
        self.data_dir = Path(data_dir).expanduser()

    def path_for(self, slot: str) -> Path:
        return self.data_dir / f"{slot}.json"

    def read(self, slot: str) -> str | None:
        return read_text(self.path_for(slot))

    def write(self, slot: str, text: str) -> None:
        path = self.path_for(slot)
        atomic_write_text(path, text)
        logger.debug(f"Wrote {len(text)} chars to {path}")


class MemoryStorage:
    def __init__(self, initial: dict[str, str] | None = None):
        self.slots: dict[str, str] = dict(initial or {})
        self.writes = 0

    def read(self, slot: str) -> str | None:
        return self.slots.get(slot)

    def write(self, slot: str, text: str) -> None:
        self.slots[slot] = text
        self.writes += 1
