"""Shared fixtures for the chatroom tests."""

import pytest

from chatroom.core.config import Settings
from chatroom.core.storage.log_store import LogStore
from chatroom.main import create_app
from chatroom.services.broadcaster import Broadcaster
from chatroom.services.message_service import MessageService


@pytest.fixture
def data_file(tmp_path):
    return tmp_path / "data" / "messages.json"


@pytest.fixture
def test_settings(data_file):
    """Settings pointing at a throwaway log file, ignoring any local .env."""
    return Settings(
        _env_file=None,
        data_file=str(data_file),
        max_messages=200,
        client_origin="http://localhost:3000",
        allowed_usernames="lexsa,naqieya,novita,salsabila",
    )


@pytest.fixture
def store(data_file):
    log_store = LogStore(data_file, max_messages=200)
    log_store.ensure_exists()
    return log_store


@pytest.fixture
def broadcaster():
    return Broadcaster(queue_size=256)


@pytest.fixture
def service(store, broadcaster):
    return MessageService(store, broadcaster)


@pytest.fixture
def app(test_settings):
    """Create the full FastAPI app against a temporary log."""
    return create_app(test_settings)
