"""LedgerPort exception hierarchy.

Row-level data problems never raise; they become ``ImportIssue`` records. These
exceptions cover undecodable input and failures of the injected collaborators.
"""

from __future__ import annotations


class LedgerPortError(Exception):
    """Base exception for all LedgerPort errors."""


class FileDecodeError(LedgerPortError):
    """The uploaded spreadsheet could not be decoded."""

    def __init__(self, file_name: str, reason: str) -> None:
        self.file_name = file_name
        self.reason = reason
        super().__init__(f"Cannot decode {file_name!r}: {reason}")


class DuplicateHashError(LedgerPortError):
    """An insert lost the race: the import hash was stored by someone else first."""

    def __init__(self, import_hash: str) -> None:
        self.import_hash = import_hash
        super().__init__(f"Import hash {import_hash} already exists")


class SinkError(LedgerPortError):
    """The persistence sink failed for a reason other than a duplicate hash."""


class EntityNotFoundError(LedgerPortError):
    """Directory backend has no table or index for the requested entity type."""


class CacheError(LedgerPortError):
    """Redis cache operation failed."""


class FileStoreError(LedgerPortError):
    """Reading or writing the source/audit file store failed."""
