import asyncio
from dataclasses import dataclass

import httpx

from common.events import AssistantDeltaEvent, AssistantMessageEvent
from parley.chat import ChatService
from parley.config import ConfigError
from parley.errors import ParleyError


@dataclass(frozen=True)
class RouteResult:
    kind: str
    name: str | None
    args: str


def route(user_input: str, builtins: "BuiltinCommands") -> RouteResult:
    if not user_input.startswith("/"):
        return RouteResult(kind="prompt", name=None, args=user_input)

    parts = user_input.split(maxsplit=1)
    cmd = parts[0].lstrip("/")
    args = parts[1] if len(parts) > 1 else ""

    if builtins.has_command(cmd):
        return RouteResult(kind="builtin", name=cmd, args=args)
    return RouteResult(kind="unknown", name=cmd, args=args)


class BuiltinCommands:
    def __init__(self, service: ChatService):
        self.service = service
        self.store = service.store
        self._handlers = {
            "quit": self.cmd_quit,
            "exit": self.cmd_quit,
            "new": self.cmd_new,
            "chats": self.cmd_chats,
            "switch": self.cmd_switch,
            "rename": self.cmd_rename,
            "delete": self.cmd_delete,
            "system": self.cmd_system,
            "help": self.cmd_help,
        }

    def has_command(self, name: str) -> bool:
        return name in self._handlers

    def handle(self, name: str, args: str) -> bool:
        handler = self._handlers.get(name)
        if not handler:
            return True
        return handler(args)

    def cmd_quit(self, args: str) -> bool:
        print("Goodbye!")
        return False

    def cmd_new(self, args: str) -> bool:
        chat_id = self.store.create_chat()
        self.store.set_active_chat(chat_id)
        print(f"Started {self.store.active_chat.title} ({chat_id})")
        return True

    def cmd_chats(self, args: str) -> bool:
        if not self.store.chats:
            print("No chats yet")
            return True
        for chat in self.store.chats:
            marker = "*" if chat.id == self.store.active_chat_id else " "
            print(f" {marker} {chat.id}  {chat.title}  ({len(chat.messages)} messages)")
        return True

    def cmd_switch(self, args: str) -> bool:
        if not args:
            print("Usage: /switch <chat-id>")
            return True
        self.store.set_active_chat(args.strip())
        chat = self.store.active_chat
        if chat is None:
            print(f"No chat with id {args.strip()}")
        else:
            print(f"Switched to {chat.title}")
            for message in chat.messages:
                print(f"[{message.role}] {message.content}")
        return True

    def cmd_rename(self, args: str) -> bool:
        chat = self.store.active_chat
        if chat is None or not args.strip():
            print("Usage: /rename <title> (with an active chat)")
            return True
        self.store.rename_chat(chat.id, args)
        print(f"Renamed to {chat.title}")
        return True

    def cmd_delete(self, args: str) -> bool:
        chat_id = args.strip() or self.store.active_chat_id
        if not chat_id or self.store.chat(chat_id) is None:
            print("Usage: /delete [chat-id]")
            return True
        self.store.delete_chat(chat_id)
        print(f"Deleted {chat_id}")
        return True

    def cmd_system(self, args: str) -> bool:
        if not args.strip():
            print(f"System prompt: {self.store.settings.system_prompt}")
            return True
        self.store.update_default_system_prompt(args)
        print("Default system prompt updated (applies to new chats)")
        return True

    def cmd_help(self, args: str) -> bool:
        print("Commands:")
        print("  /new              Start a new chat")
        print("  /chats            List chats")
        print("  /switch <id>      Switch to a chat")
        print("  /rename <title>   Rename the active chat")
        print("  /delete [id]      Delete a chat (default: active)")
        print("  /system [prompt]  Show or set the default system prompt")
        print("  /quit             Exit")
        return True


def print_stream_event(event) -> None:
    if isinstance(event, AssistantDeltaEvent):
        print(event.text, end="", flush=True)
    elif isinstance(event, AssistantMessageEvent):
        print()
        if not event.completed:
            print("(reply incomplete)")


class ChatREPL:
    def __init__(self, service: ChatService):
        self.service = service
        self.store = service.store
        self.builtins = BuiltinCommands(service)

    def ask(self, text: str) -> None:
        if not (text or "").strip():
            print("Error: message is empty")
            return
        if self.store.active_chat is None:
            self.builtins.cmd_new("")
        try:
            asyncio.run(self.service.send(text))
        except (ParleyError, ConfigError, ValueError, httpx.RequestError) as e:
            print(f"\nError: {e}")

    def run(self, initial_message: str | None = None):
        chat = self.store.active_chat
        print(f"Parley started ({chat.title if chat else 'no active chat'})")
        print("Commands: /help for all commands")
        print()

        if initial_message:
            self.ask(initial_message)

        while True:
            try:
                user_input = input("\n> ").strip()

                if not user_input:
                    continue

                result = route(user_input, self.builtins)
                if result.kind == "builtin":
                    if not self.builtins.handle(result.name, result.args):
                        break
                    continue
                if result.kind == "unknown":
                    print(
                        f"Unknown command: /{result.name}. Type /help for available commands."
                    )
                    continue

                self.ask(result.args)

            except KeyboardInterrupt:
                print("\n\nInterrupted")
                break
            except EOFError:
                break
