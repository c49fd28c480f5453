import pytest

from parley.config import ConfigError, ParleyConfig
from parley.sessions.schema import DEFAULT_SYSTEM_PROMPT

ENV_VARS = [
    "PARLEY_DATA_DIR",
    "PARLEY_API_ENDPOINT",
    "PARLEY_API_KEY",
    "PARLEY_BOT_ID",
    "PARLEY_USER_ID",
    "PARLEY_TIMEOUT",
    "PARLEY_MOCK",
]


@pytest.fixture
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_defaults(clean_env):
    config = ParleyConfig()
    assert config.data_dir.endswith(".parley")
    assert config.api_endpoint == ""
    assert config.user_id == "parley-user"
    assert config.timeout == 60.0
    assert config.mock is False


def test_from_environment(clean_env):
    clean_env.setenv("PARLEY_DATA_DIR", "/tmp/chats")
    clean_env.setenv("PARLEY_API_ENDPOINT", "https://api.example/chat")
    clean_env.setenv("PARLEY_API_KEY", "pat_123")
    clean_env.setenv("PARLEY_BOT_ID", "bot-7")
    clean_env.setenv("PARLEY_TIMEOUT", "12.5")
    clean_env.setenv("PARLEY_MOCK", "yes")

    config = ParleyConfig()
    assert config.data_dir == "/tmp/chats"
    assert config.timeout == 12.5
    assert config.mock is True

    settings = config.default_settings()
    assert settings.api_endpoint == "https://api.example/chat"
    assert settings.api_key == "pat_123"
    assert settings.bot_id == "bot-7"
    assert settings.system_prompt == DEFAULT_SYSTEM_PROMPT


def test_bad_timeout_env(clean_env):
    clean_env.setenv("PARLEY_TIMEOUT", "soon")
    with pytest.raises(ConfigError):
        ParleyConfig()


@pytest.mark.parametrize("overrides", [{"timeout": 0}, {"mock_delay": -1}])
def test_validate_rejects(clean_env, overrides):
    config = ParleyConfig(**overrides)
    with pytest.raises(ConfigError):
        config.validate()


def test_validate_accepts_defaults(clean_env):
    ParleyConfig().validate()
