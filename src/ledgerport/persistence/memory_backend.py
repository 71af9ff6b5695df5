"""In-memory backends for unit tests and local runs: dict-backed fakes."""

from __future__ import annotations

import json
import threading
from pathlib import Path
from typing import Any, Mapping, Sequence

from ledgerport.core.exceptions import DuplicateHashError, FileStoreError
from ledgerport.core.types import EntityId, ImportHash
from ledgerport.models.records import NormalizedRow
from ledgerport.persistence.keys import entity_key


class MemoryDirectory:
    """Dict-backed IDirectoryLookup with exact case-insensitive matching."""

    def __init__(self) -> None:
        self._companies: dict[str, EntityId] = {}
        self._products: dict[str, EntityId] = {}

    def add_company(self, name: str, entity_id: EntityId) -> None:
        self._companies[entity_key(name)] = entity_id

    def add_product(self, name_or_code: str, entity_id: EntityId) -> None:
        self._products[entity_key(name_or_code)] = entity_id

    def load_seed(self, data: Mapping[str, Any]) -> int:
        """Add every name and alias from a directory seed document. Returns keys added."""
        added = 0
        for section, add in (("companies", self.add_company), ("products", self.add_product)):
            for entry in data.get(section, []):
                for spelling in [entry["name"], *entry.get("aliases", [])]:
                    add(spelling, entry["entityId"])
                    added += 1
        return added

    @classmethod
    def from_seed_file(cls, path: str | Path) -> MemoryDirectory:
        directory = cls()
        directory.load_seed(json.loads(Path(path).read_text(encoding="utf-8")))
        return directory

    def resolve_company(self, name: str) -> EntityId | None:
        return self._companies.get(entity_key(name))

    def resolve_product(self, name_or_code: str) -> EntityId | None:
        return self._products.get(entity_key(name_or_code))


class MemoryOrderSink:
    """Dict-backed IOrderSink; check-and-insert is atomic under a lock."""

    def __init__(self) -> None:
        self._orders: dict[ImportHash, tuple[NormalizedRow, ...]] = {}
        self._lock = threading.Lock()

    def hash_exists(self, import_hash: ImportHash) -> bool:
        with self._lock:
            return import_hash in self._orders

    def insert(self, import_hash: ImportHash, rows: Sequence[NormalizedRow]) -> None:
        with self._lock:
            if import_hash in self._orders:
                raise DuplicateHashError(import_hash)
            self._orders[import_hash] = tuple(rows)

    @property
    def orders(self) -> dict[ImportHash, tuple[NormalizedRow, ...]]:
        with self._lock:
            return dict(self._orders)

    @property
    def rows(self) -> list[NormalizedRow]:
        """Every stored line, in insertion order."""
        with self._lock:
            return [row for lines in self._orders.values() for row in lines]


class MemoryCacheBackend:
    """Dict-backed ICacheBackend for unit tests."""

    def __init__(self) -> None:
        self._store: dict[str, str] = {}

    def get(self, key: str) -> str | None:
        return self._store.get(key)

    def setex(self, key: str, ttl: int, value: str) -> None:
        self._store[key] = value

    def delete(self, key: str) -> None:
        self._store.pop(key, None)


class MemoryFileStore:
    """Dict-backed IFileStore for unit tests."""

    def __init__(self) -> None:
        self._files: dict[str, bytes] = {}

    def read(self, path: str) -> bytes:
        try:
            return self._files[path]
        except KeyError as exc:
            raise FileStoreError(f"No such file: {path!r}") from exc

    def write(self, path: str, data: bytes, content_type: str = "application/octet-stream") -> str:
        self._files[path] = data
        return path
