from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic.alias_generators import to_camel

from common.ids import generate_id, now_ms

DEFAULT_SYSTEM_PROMPT = "You are a helpful AI assistant."

Role = Literal["user", "assistant", "system"]


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json_dict(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


class Message(_CamelModel):
    id: str = Field(default_factory=generate_id)
    role: Role
    content: str = ""
    timestamp: int = Field(default_factory=now_ms)
    image_url: str | None = None


class Chat(_CamelModel):
    id: str = Field(default_factory=generate_id)
    title: str
    messages: list[Message] = Field(default_factory=list)
    system_prompt: str = ""
    created_at: int = Field(default_factory=now_ms)
    updated_at: int = Field(default_factory=now_ms)

    def find_message(self, message_id: str) -> Message | None:
        for message in self.messages:
            if message.id == message_id:
                return message
        return None

    def touch(self) -> None:
        self.updated_at = max(now_ms(), self.updated_at)


class Settings(_CamelModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="ignore"
    )

    system_prompt: str = DEFAULT_SYSTEM_PROMPT
    api_endpoint: str = ""
    api_key: str = ""
    bot_id: str = ""

    @classmethod
    def field_names(cls) -> dict[str, str]:
        """Map both attribute names and JSON aliases to attribute names."""
        names: dict[str, str] = {}
        for name, info in cls.model_fields.items():
            names[name] = name
            if info.alias:
                names[info.alias] = name
        return names


class ApiMessage(BaseModel):
    role: Literal["user", "assistant"]
    content: str
    content_type: Literal["text"] = "text"


ChatList = TypeAdapter(list[Chat])


def dump_chats(chats: list[Chat]) -> str:
    return ChatList.dump_json(chats, by_alias=True, exclude_none=True).decode("utf-8")


def load_chats(text: str) -> list[Chat]:
    return ChatList.validate_json(text)
