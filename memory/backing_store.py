"""Key-value backing stores that hold serialised collections."""
from __future__ import annotations

import json
import sqlite3
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from wardrobe_app.config import WardrobeConfig
from wardrobe_app.errors import StorageError, StorageQuotaExceededError


class KeyValueBackend:
    """Interface for string key-value persistence.

    ``quota`` limits the total stored characters (keys plus values) the way a
    browser's local storage does. ``set`` raises
    :class:`StorageQuotaExceededError` when a write would exceed it and leaves
    the previous value in place.
    """

    def __init__(self, quota: Optional[int] = None) -> None:
        self.quota = quota

    def get(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def set(self, key: str, value: str) -> None:
        raise NotImplementedError

    def remove(self, key: str) -> None:
        raise NotImplementedError

    def keys(self) -> List[str]:
        raise NotImplementedError

    def _usage_without(self, key: str) -> int:
        raise NotImplementedError

    def _check_quota(self, key: str, value: str) -> None:
        if self.quota is None:
            return
        required = self._usage_without(key) + len(key) + len(value)
        if required > self.quota:
            raise StorageQuotaExceededError(
                f"Writing {key!r} needs {required} characters; quota is {self.quota}"
            )


def _usage(items: Iterable[tuple[str, str]], skip: str) -> int:
    return sum(len(k) + len(v) for k, v in items if k != skip)


class InMemoryBackend(KeyValueBackend):
    """Volatile backend, mostly for tests and guest sessions."""

    def __init__(self, quota: Optional[int] = None, initial: Dict[str, str] | None = None) -> None:
        super().__init__(quota)
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._check_quota(key, value)
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> List[str]:
        return sorted(self._data)

    def _usage_without(self, key: str) -> int:
        return _usage(self._data.items(), key)


class JSONFileBackend(KeyValueBackend):
    """JSON-file-backed store suitable for local runs."""

    def __init__(self, path: str | Path = "data/wardrobe_storage.json", quota: Optional[int] = None) -> None:
        super().__init__(quota)
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)

    def _load(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text())
        except json.JSONDecodeError as exc:
            raise StorageError(f"Storage file {self.path} is corrupt: {exc}") from exc
        if not isinstance(data, dict):
            raise StorageError(f"Storage file {self.path} does not hold a JSON object")
        return {str(k): str(v) for k, v in data.items()}

    def _save(self, payload: Dict[str, str]) -> None:
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp_path.write_text(json.dumps(payload, indent=2))
        tmp_path.replace(self.path)

    def get(self, key: str) -> Optional[str]:
        return self._load().get(key)

    def set(self, key: str, value: str) -> None:
        data = self._load()
        self._check_quota(key, value)
        data[key] = value
        self._save(data)

    def remove(self, key: str) -> None:
        data = self._load()
        if data.pop(key, None) is not None:
            self._save(data)

    def keys(self) -> List[str]:
        return sorted(self._load())

    def _usage_without(self, key: str) -> int:
        return _usage(self._load().items(), key)


class SQLiteBackend(KeyValueBackend):
    """SQLite-backed store for lightweight durability."""

    def __init__(self, db_path: str | Path = "data/wardrobe_storage.db", quota: Optional[int] = None) -> None:
        super().__init__(quota)
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_schema()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _init_schema(self) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS kv_store (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                );
                """
            )

    def get(self, key: str) -> Optional[str]:
        with self._connect() as conn:
            row = conn.execute("SELECT value FROM kv_store WHERE key = ?", (key,)).fetchone()
        return row["value"] if row else None

    def set(self, key: str, value: str) -> None:
        self._check_quota(key, value)
        with self._connect() as conn:
            conn.execute(
                "INSERT INTO kv_store(key, value) VALUES (?, ?)\n"
                "ON CONFLICT(key) DO UPDATE SET value=excluded.value",
                (key, value),
            )

    def remove(self, key: str) -> None:
        with self._connect() as conn:
            conn.execute("DELETE FROM kv_store WHERE key = ?", (key,))

    def keys(self) -> List[str]:
        with self._connect() as conn:
            rows = conn.execute("SELECT key FROM kv_store ORDER BY key").fetchall()
        return [row["key"] for row in rows]

    def _usage_without(self, key: str) -> int:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT COALESCE(SUM(LENGTH(key) + LENGTH(value)), 0) AS used FROM kv_store WHERE key != ?",
                (key,),
            ).fetchone()
        return int(row["used"]) if row else 0


def build_backend(config: WardrobeConfig) -> KeyValueBackend:
    """Select the backend named by ``config.storage_backend``."""

    backend = config.storage_backend.lower()
    if backend == "memory":
        return InMemoryBackend(quota=config.storage_quota_bytes)
    if backend == "sqlite":
        return SQLiteBackend(config.storage_path or "data/wardrobe_storage.db", quota=config.storage_quota_bytes)
    return JSONFileBackend(config.storage_path or "data/wardrobe_storage.json", quota=config.storage_quota_bytes)


__all__ = [
    "InMemoryBackend",
    "JSONFileBackend",
    "KeyValueBackend",
    "SQLiteBackend",
    "build_backend",
]
