import pytest

from parley.sessions.storage import MemoryStorage
from parley.sessions.store import SessionStore


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def store(storage):
    store = SessionStore(storage)
    store.initialize()
    return store


@pytest.fixture
def active_store(store):
    chat_id = store.create_chat()
    store.set_active_chat(chat_id)
    return store
