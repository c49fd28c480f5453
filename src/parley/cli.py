from __future__ import annotations

import argparse
import logging
import sys
from datetime import datetime

from dotenv import load_dotenv

from common.events import EventEmitter
from parley.chat import ChatService
from parley.config import ConfigError, ParleyConfig
from parley.repl import ChatREPL, print_stream_event
from parley.sessions.storage import FileStorage
from parley.sessions.store import SessionStore


def main() -> int:
    load_dotenv()
    return _main(sys.argv[1:])


def _format_ms(value: int) -> str:
    return datetime.fromtimestamp(value / 1000).strftime("%Y-%m-%d %H:%M")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="parley", description="Parley - streaming chat client")
    parser.add_argument("--data-dir", default=None, help="Where chats and settings are stored")
    parser.add_argument("-v", "--verbose", action="store_true")
    subparsers = parser.add_subparsers(dest="command", required=False)

    chat = subparsers.add_parser("chat", help="Start an interactive chat")
    chat.add_argument("--chat", default=None, help="Chat id to resume")
    chat.add_argument("--mock", action="store_true", help="Use the built-in mock stream")
    chat.add_argument("--message", "-m", help="Single prompt (non-interactive)")

    chats = subparsers.add_parser("chats", help="Manage stored chats")
    chats_sub = chats.add_subparsers(dest="chats_cmd", required=False)
    chats_sub.add_parser("list", help="List chats")
    chats_sub.add_parser("new", help="Create an empty chat")
    chats_delete = chats_sub.add_parser("delete", help="Delete a chat")
    chats_delete.add_argument("chat_id")
    chats_rename = chats_sub.add_parser("rename", help="Rename a chat")
    chats_rename.add_argument("chat_id")
    chats_rename.add_argument("title")
    chats_show = chats_sub.add_parser("show", help="Print a chat transcript")
    chats_show.add_argument("chat_id")

    settings = subparsers.add_parser("settings", help="Show or change settings")
    settings_sub = settings.add_subparsers(dest="settings_cmd", required=False)
    settings_sub.add_parser("show", help="Print current settings")
    settings_set = settings_sub.add_parser("set", help="Change one setting")
    settings_set.add_argument("key", help="systemPrompt, apiEndpoint, apiKey or botId")
    settings_set.add_argument("value")

    return parser


def _open_store(config: ParleyConfig) -> SessionStore:
    store = SessionStore(FileStorage(config.data_dir), defaults=config.default_settings())
    store.initialize()
    return store


def _cmd_chat(args, config: ParleyConfig, store: SessionStore) -> int:
    if args.mock:
        config.mock = True
    if args.chat:
        store.set_active_chat(args.chat)
        if store.active_chat is None:
            print(f"Error: Chat {args.chat} not found", file=sys.stderr)
            return 1
    elif store.chats:
        store.set_active_chat(store.chats[0].id)

    service = ChatService(store, config, emitter=EventEmitter(print_stream_event))
    repl = ChatREPL(service)
    if args.message:
        repl.ask(args.message)
        return 0
    repl.run()
    return 0


def _cmd_chats(args, store: SessionStore) -> int:
    sub = args.chats_cmd or "list"
    if sub == "list":
        if not store.chats:
            print("No chats found")
            return 0
        for chat in store.chats:
            print(
                f"{chat.id}  {_format_ms(chat.updated_at)}  "
                f"{len(chat.messages):>3} msgs  {chat.title}"
            )
        return 0
    if sub == "new":
        print(store.create_chat())
        return 0
    if sub == "delete":
        if store.chat(args.chat_id) is None:
            print(f"Error: Chat {args.chat_id} not found", file=sys.stderr)
            return 1
        store.delete_chat(args.chat_id)
        return 0
    if sub == "rename":
        if store.chat(args.chat_id) is None:
            print(f"Error: Chat {args.chat_id} not found", file=sys.stderr)
            return 1
        if not args.title.strip():
            print("Error: title must not be empty", file=sys.stderr)
            return 2
        store.rename_chat(args.chat_id, args.title)
        return 0
    if sub == "show":
        chat = store.chat(args.chat_id)
        if chat is None:
            print(f"Error: Chat {args.chat_id} not found", file=sys.stderr)
            return 1
        print(f"# {chat.title}")
        for message in chat.messages:
            print(f"\n[{message.role} {_format_ms(message.timestamp)}]\n{message.content}")
        return 0
    return 2


def _cmd_settings(args, store: SessionStore) -> int:
    if args.settings_cmd == "set":
        try:
            store.update_settings({args.key: args.value})
        except ValueError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 2
        return 0
    for key, value in store.settings.model_dump(by_alias=True).items():
        if key == "apiKey" and value:
            value = value[:4] + "..."
        print(f"{key}: {value}")
    return 0


def _main(argv: list[str]) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    logging.getLogger("httpx").setLevel(logging.WARNING)

    try:
        config = ParleyConfig()
        if args.data_dir:
            config.data_dir = args.data_dir
        config.validate()
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    store = _open_store(config)
    try:
        command = args.command or "chat"
        if command == "chat":
            if args.command is None:
                args = parser.parse_args([*argv, "chat"])
            return _cmd_chat(args, config, store)
        if command == "chats":
            return _cmd_chats(args, store)
        if command == "settings":
            return _cmd_settings(args, store)
        parser.print_help()
        return 2
    finally:
        store.shutdown()


if __name__ == "__main__":
    raise SystemExit(main())
