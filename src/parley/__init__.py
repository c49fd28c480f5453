from parley.chat import ChatService
from parley.config import ConfigError, ParleyConfig
from parley.sessions.store import SessionStore

__all__ = ["ChatService", "ConfigError", "ParleyConfig", "SessionStore"]
