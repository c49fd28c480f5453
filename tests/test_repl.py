from parley.chat import ChatService
from parley.config import ParleyConfig
from parley.repl import BuiltinCommands, ChatREPL, route


def _builtins(store) -> BuiltinCommands:
    return BuiltinCommands(ChatService(store, ParleyConfig(mock=True, mock_delay=0.0)))


def test_route_prompt_builtin_unknown(store):
    builtins = _builtins(store)
    assert route("hello", builtins).kind == "prompt"
    result = route("/rename New name", builtins)
    assert (result.kind, result.name, result.args) == ("builtin", "rename", "New name")
    assert route("/frobnicate", builtins).kind == "unknown"


def test_new_switch_rename_delete(store, capsys):
    builtins = _builtins(store)
    assert builtins.handle("new", "") is True
    chat_id = store.active_chat_id
    assert chat_id is not None

    builtins.handle("rename", "  Notes ")
    assert store.active_chat.title == "Notes"

    builtins.handle("switch", "missing")
    assert store.active_chat is None
    assert "No chat with id missing" in capsys.readouterr().out

    builtins.handle("switch", chat_id)
    builtins.handle("delete", "")
    assert store.chats == []
    assert store.active_chat_id is None


def test_system_prompt_command(store):
    builtins = _builtins(store)
    builtins.handle("system", "  Reply in haiku. ")
    assert store.settings.system_prompt == "Reply in haiku."


def test_quit_stops_loop(store):
    assert _builtins(store).handle("quit", "") is False


def test_run_processes_input_until_eof(store, monkeypatch, capsys):
    inputs = iter(["/new", "hi", "/chats"])

    def fake_input(prompt):
        try:
            return next(inputs)
        except StopIteration:
            raise EOFError

    monkeypatch.setattr("builtins.input", fake_input)
    repl = ChatREPL(ChatService(store, ParleyConfig(mock=True, mock_delay=0.0)))
    repl.run()

    chat = store.active_chat
    assert [m.role for m in chat.messages] == ["user", "assistant"]
    assert "(2 messages)" in capsys.readouterr().out


def test_ask_reports_value_errors(store, capsys):
    def reject(text):
        raise ValueError("bad input")

    service = ChatService(store, ParleyConfig(mock=True, mock_delay=0.0))
    service.send = reject
    ChatREPL(service).ask("hello")

    assert "Error: bad input" in capsys.readouterr().out
