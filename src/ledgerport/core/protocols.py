"""Protocol interfaces for the engine's collaborators.

The engine only talks to directories, sinks, caches and file stores through these
Protocols: structural typing, no inheritance required, easy to fake in tests.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, Sequence, runtime_checkable

from ledgerport.core.types import EntityId, ImportHash

if TYPE_CHECKING:
    from ledgerport.models.records import NormalizedRow


# ---------------------------------------------------------------------------
# Directory lookup
# ---------------------------------------------------------------------------

@runtime_checkable
class IDirectoryLookup(Protocol):
    """Company/product directory returning canonical entity ids."""

    def resolve_company(self, name: str) -> EntityId | None: ...

    def resolve_product(self, name_or_code: str) -> EntityId | None: ...


# ---------------------------------------------------------------------------
# Persistence sink
# ---------------------------------------------------------------------------

@runtime_checkable
class IOrderSink(Protocol):
    """Accepts validated orders keyed by their import hash.

    ``insert`` stores every line of one order under the order's hash. It must be
    atomic with respect to the hash: if another writer stored the same hash first it
    raises ``DuplicateHashError`` instead of writing.
    """

    def hash_exists(self, import_hash: ImportHash) -> bool: ...

    def insert(self, import_hash: ImportHash, rows: Sequence[NormalizedRow]) -> None: ...


# ---------------------------------------------------------------------------
# Cache backend
# ---------------------------------------------------------------------------

@runtime_checkable
class ICacheBackend(Protocol):
    """Redis-compatible cache interface."""

    def get(self, key: str) -> str | None: ...

    def setex(self, key: str, ttl: int, value: str) -> None: ...

    def delete(self, key: str) -> None: ...


# ---------------------------------------------------------------------------
# File store
# ---------------------------------------------------------------------------

@runtime_checkable
class IFileStore(Protocol):
    """S3-compatible storage for uploaded spreadsheets and audit logs."""

    def read(self, path: str) -> bytes: ...

    def write(self, path: str, data: bytes, content_type: str = "application/octet-stream") -> str: ...
