"""Shared test doubles: re-export memory backends plus a pre-seeded directory."""

from __future__ import annotations

from ledgerport.persistence.memory_backend import (
    MemoryCacheBackend,
    MemoryDirectory,
    MemoryFileStore,
    MemoryOrderSink,
)

__all__ = [
    "MemoryCacheBackend",
    "MemoryDirectory",
    "MemoryFileStore",
    "MemoryOrderSink",
    "seeded_directory",
]


def seeded_directory() -> MemoryDirectory:
    """Directory knowing the companies and products used across the test suite."""
    directory = MemoryDirectory()
    directory.add_company("Acme", "cmp_acme")
    directory.add_company("Gulf Foods", "cmp_gulf")
    directory.add_product("Widget", "prd_widget")
    directory.add_product("WID-001", "prd_widget")
    directory.add_product("Gadget", "prd_gadget")
    return directory
