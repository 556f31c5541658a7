import pytest
from clinic.config import Settings
from clinic.exceptions import StorageError
from clinic.storage import MemoryStorage
from clinic.store import ClinicStore


class FlakyStorage(MemoryStorage):
    """MemoryStorage whose writes can be switched to fail, like a full quota."""

    def __init__(self, initial=None):
        super().__init__(initial)
        self.fail_writes = False

    def set_items(self, items):
        if self.fail_writes:
            raise StorageError(", ".join(items), "quota exceeded")
        super().set_items(items)


@pytest.fixture
def settings():
    return Settings(storage_backend="memory", seed_on_init=True, drop_stale_sessions=True)


@pytest.fixture
def storage():
    return FlakyStorage()


@pytest.fixture
def store(storage, settings):
    s = ClinicStore(storage, settings)
    s.init()
    yield s
    s.shutdown()


@pytest.fixture
def admin_store(store):
    assert store.login("admin@entnt.in", "admin123")
    return store


@pytest.fixture
def john_store(store):
    assert store.login("john@entnt.in", "patient123")
    return store
