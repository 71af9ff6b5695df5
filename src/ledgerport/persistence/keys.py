"""Key layout shared by the directory and order-sink backends."""

from __future__ import annotations

from ledgerport.core.types import ImportHash

DIRECTORY_TABLE = "ledgerport-directory"
HASH_TABLE = "ledgerport-import-hashes"

ENTITY_SK = "ENTITY"
ORDER_SK = "ORDER"


def entity_key(name: str) -> str:
    """Case- and whitespace-insensitive lookup key for a directory entry."""
    return " ".join(name.split()).casefold()


def company_pk(name: str) -> str:
    return f"COMPANY#{entity_key(name)}"


def product_pk(name_or_code: str) -> str:
    return f"PRODUCT#{entity_key(name_or_code)}"


def hash_pk(import_hash: ImportHash) -> str:
    return f"HASH#{import_hash}"
