from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, TypeAlias


@dataclass(frozen=True, slots=True)
class AssistantResponseStartEvent:
    chat_id: str
    message_id: str


@dataclass(frozen=True, slots=True)
class AssistantDeltaEvent:
    text: str


@dataclass(frozen=True, slots=True)
class AssistantMessageEvent:
    content: str
    completed: bool = True


@dataclass(frozen=True, slots=True)
class ErrorEvent:
    message: str
    source: str | None = None


Event: TypeAlias = (
    AssistantResponseStartEvent
    | AssistantDeltaEvent
    | AssistantMessageEvent
    | ErrorEvent
)
EventCallback: TypeAlias = Callable[[Event], None] | None


class EventEmitter:
    def __init__(self, callback: EventCallback = None):
        self._callback = callback

    def emit(self, event: Event) -> None:
        if self._callback is not None:
            self._callback(event)
