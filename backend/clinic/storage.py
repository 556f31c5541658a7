"""
Key-value persistence backends for the clinic store.

Every backend speaks the same small contract as browser localStorage: string
keys mapped to string (JSON) values. The store never touches files or tables
directly, so tests swap in MemoryStorage and deployments pick a JSON file or a
SQL table through settings.
"""

import json
import os
import tempfile
from abc import ABC, abstractmethod
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from clinic.config import Settings
from clinic.database import Base, make_engine, make_session_factory
from clinic.exceptions import CorruptDataError, StorageError
from clinic.models.storage_entry import StorageEntry


class KeyValueStorage(ABC):
    @abstractmethod
    def get_item(self, key: str) -> Optional[str]:
        ...

    @abstractmethod
    def set_items(self, items: dict[str, str]) -> None:
        """Write every pair or none of them."""

    @abstractmethod
    def remove_item(self, key: str) -> None:
        ...

    @abstractmethod
    def keys(self) -> list[str]:
        ...

    def set_item(self, key: str, value: str) -> None:
        self.set_items({key: value})

    def close(self) -> None:
        pass


class MemoryStorage(KeyValueStorage):
    def __init__(self, initial: Optional[dict[str, str]] = None):
        self._data: dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set_items(self, items: dict[str, str]) -> None:
        for key, value in items.items():
            if not isinstance(value, str):
                raise StorageError(key, "value must be a string")
        self._data.update(items)

    def remove_item(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._data)


class JsonFileStorage(KeyValueStorage):
    """All keys live in one JSON object; writes replace the file atomically."""

    def __init__(self, path: str):
        self.path = path

    def _read_all(self) -> dict[str, str]:
        if not os.path.exists(self.path):
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise CorruptDataError(self.path, f"invalid JSON: {e}")
        except OSError as e:
            raise StorageError(self.path, str(e))
        if not isinstance(data, dict):
            raise CorruptDataError(self.path, "top-level value is not an object")
        return data

    def _write_all(self, data: dict[str, str]) -> None:
        directory = os.path.dirname(os.path.abspath(self.path))
        try:
            os.makedirs(directory, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(prefix=".clinic-", suffix=".json", dir=directory)
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(data, f, ensure_ascii=False)
                os.replace(tmp_path, self.path)
            except BaseException:
                if os.path.exists(tmp_path):
                    os.unlink(tmp_path)
                raise
        except OSError as e:
            print(f"[storage] write failed for {self.path}: {e}")
            raise StorageError(self.path, str(e))

    def get_item(self, key: str) -> Optional[str]:
        return self._read_all().get(key)

    def set_items(self, items: dict[str, str]) -> None:
        data = self._read_all()
        data.update(items)
        self._write_all(data)

    def remove_item(self, key: str) -> None:
        data = self._read_all()
        if key in data:
            del data[key]
            self._write_all(data)

    def keys(self) -> list[str]:
        return list(self._read_all())


class SqlStorage(KeyValueStorage):
    """Keys stored as rows of the storage_entries table."""

    def __init__(self, database_url: str):
        self.engine = make_engine(database_url)
        self.session_factory = make_session_factory(self.engine)
        try:
            Base.metadata.create_all(self.engine)
        except SQLAlchemyError as e:
            raise StorageError("storage_entries", str(e))

    def get_item(self, key: str) -> Optional[str]:
        try:
            with self.session_factory() as session:
                entry = session.get(StorageEntry, key)
                return entry.value if entry else None
        except SQLAlchemyError as e:
            raise StorageError(key, str(e))

    def set_items(self, items: dict[str, str]) -> None:
        try:
            with self.session_factory() as session, session.begin():
                for key, value in items.items():
                    entry = session.get(StorageEntry, key)
                    if entry:
                        entry.value = value
                    else:
                        session.add(StorageEntry(key=key, value=value))
        except SQLAlchemyError as e:
            keys = ", ".join(items)
            print(f"[storage] transaction failed for {keys}: {e}")
            raise StorageError(keys, str(e))

    def remove_item(self, key: str) -> None:
        try:
            with self.session_factory() as session, session.begin():
                entry = session.get(StorageEntry, key)
                if entry:
                    session.delete(entry)
        except SQLAlchemyError as e:
            raise StorageError(key, str(e))

    def keys(self) -> list[str]:
        try:
            with self.session_factory() as session:
                return list(session.scalars(select(StorageEntry.key).order_by(StorageEntry.key)))
        except SQLAlchemyError as e:
            raise StorageError("storage_entries", str(e))

    def close(self) -> None:
        self.engine.dispose()


def get_storage(settings: Settings) -> KeyValueStorage:
    backend = settings.storage_backend.lower()
    if backend == "memory":
        return MemoryStorage()
    if backend == "json":
        return JsonFileStorage(settings.storage_path)
    if backend == "sql":
        return SqlStorage(settings.database_url)
    raise ValueError(f"Unknown storage backend: {settings.storage_backend}")
