import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

from parley.sessions.schema import DEFAULT_SYSTEM_PROMPT, Settings

logger = logging.getLogger(__name__)

TRUTHY = {"1", "true", "yes", "on"}


class ConfigError(Exception):
    pass


def get_optional_env(name: str, default: str) -> str:
    return os.environ.get(name, default)


def _default_data_dir() -> str:
    return get_optional_env("PARLEY_DATA_DIR", str(Path.home() / ".parley"))


def _default_timeout() -> float:
    raw = get_optional_env("PARLEY_TIMEOUT", "60")
    try:
        return float(raw)
    except ValueError:
        raise ConfigError(f"PARLEY_TIMEOUT must be a number, got {raw!r}")


@dataclass
class ParleyConfig:
    data_dir: str = field(default_factory=_default_data_dir)
    api_endpoint: str = field(
        default_factory=lambda: get_optional_env("PARLEY_API_ENDPOINT", "")
    )
    api_key: str = field(default_factory=lambda: get_optional_env("PARLEY_API_KEY", ""))
    bot_id: str = field(default_factory=lambda: get_optional_env("PARLEY_BOT_ID", ""))
    user_id: str = field(
        default_factory=lambda: get_optional_env("PARLEY_USER_ID", "parley-user")
    )
    system_prompt: str = DEFAULT_SYSTEM_PROMPT
    timeout: float = field(default_factory=_default_timeout)
    mock: bool = field(
        default_factory=lambda: get_optional_env("PARLEY_MOCK", "").lower() in TRUTHY
    )
    mock_delay: float = 0.1

    def default_settings(self) -> Settings:
        return Settings(
            system_prompt=self.system_prompt,
            api_endpoint=self.api_endpoint,
            api_key=self.api_key,
            bot_id=self.bot_id,
        )

    def validate(self) -> None:
        if self.timeout <= 0:
            raise ConfigError("timeout must be > 0")
        if self.mock_delay < 0:
            raise ConfigError("mock_delay must be >= 0")
        logger.debug("Configuration validated successfully")
