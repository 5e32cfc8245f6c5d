import pytest

from dal.kv_dal import KeyValueDAL
from services.session_store import SessionStore
from utils.database_init import AsyncDatabaseInitializer
from utils.settings import Settings


@pytest.fixture
def settings(tmp_path):
    return Settings(gateway_api_key="test-key", database_dir=tmp_path / "db")


@pytest.fixture
def dal(tmp_path):
    return KeyValueDAL(AsyncDatabaseInitializer(tmp_path / "db"))


@pytest.fixture
def store(dal):
    return SessionStore(dal)
