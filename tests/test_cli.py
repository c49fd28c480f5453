import json
from pathlib import Path

import pytest

from parley.cli import _main


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("PARLEY_DATA_DIR", "PARLEY_API_ENDPOINT", "PARLEY_MOCK", "PARLEY_TIMEOUT"):
        monkeypatch.delenv(name, raising=False)


def _run(tmp_path: Path, *argv: str) -> int:
    return _main(["--data-dir", str(tmp_path), *argv])


def test_chats_new_list_rename_delete(tmp_path: Path, capsys):
    assert _run(tmp_path, "chats", "new") == 0
    chat_id = capsys.readouterr().out.strip()

    assert _run(tmp_path, "chats", "rename", chat_id, "Groceries") == 0
    assert _run(tmp_path, "chats", "list") == 0
    out = capsys.readouterr().out
    assert chat_id in out
    assert "Groceries" in out

    assert _run(tmp_path, "chats", "delete", chat_id) == 0
    assert _run(tmp_path, "chats") == 0
    assert "No chats found" in capsys.readouterr().out


def test_unknown_chat_errors(tmp_path: Path, capsys):
    assert _run(tmp_path, "chats", "delete", "nope") == 1
    assert _run(tmp_path, "chats", "show", "nope") == 1
    assert "not found" in capsys.readouterr().err


def test_settings_set_and_show(tmp_path: Path, capsys):
    assert _run(tmp_path, "settings", "set", "apiKey", "secret-key") == 0
    assert _run(tmp_path, "settings", "set", "botId", "b1") == 0
    assert _run(tmp_path, "settings", "show") == 0
    out = capsys.readouterr().out
    assert "botId: b1" in out
    assert "secr..." in out
    assert "secret-key" not in out

    stored = json.loads((tmp_path / "app-settings.json").read_text(encoding="utf-8"))
    assert stored["apiKey"] == "secret-key"


def test_settings_unknown_key(tmp_path: Path, capsys):
    assert _run(tmp_path, "settings", "set", "colour", "blue") == 2
    assert "Unknown settings" in capsys.readouterr().err


def test_single_message_with_mock_stream(tmp_path: Path, capsys):
    assert _run(tmp_path, "chat", "--mock", "-m", "hello there") == 0
    out = capsys.readouterr().out
    assert "mock mode" in out

    chats = json.loads((tmp_path / "chat-list.json").read_text(encoding="utf-8"))
    assert len(chats) == 1
    assert chats[0]["title"] == "hello there"
    assert [m["role"] for m in chats[0]["messages"]] == ["user", "assistant"]
    assert "mock mode" in chats[0]["messages"][1]["content"]


def test_chat_without_endpoint_reports_error(tmp_path: Path, capsys):
    assert _run(tmp_path, "chat", "-m", "hi") == 0
    assert "No API endpoint configured" in capsys.readouterr().out


def test_resume_unknown_chat(tmp_path: Path, capsys):
    assert _run(tmp_path, "chat", "--chat", "ghost", "-m", "hi") == 1


def test_blank_message_is_rejected(tmp_path: Path, capsys):
    assert _run(tmp_path, "chat", "--mock", "-m", "   ") == 0
    assert "message is empty" in capsys.readouterr().out
    assert not (tmp_path / "chat-list.json").exists()
