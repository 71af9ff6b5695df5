"""Tests for the in-memory backends and the persistence factory."""

from __future__ import annotations

import threading
from decimal import Decimal
from pathlib import Path

import pytest

from ledgerport.core.config import AppSettings
from ledgerport.core.exceptions import DuplicateHashError, FileStoreError
from ledgerport.core.protocols import IDirectoryLookup, IFileStore, IOrderSink
from ledgerport.models.records import NormalizedRow
from ledgerport.persistence import create_persistence
from ledgerport.persistence.memory_backend import MemoryDirectory, MemoryFileStore, MemoryOrderSink

SEED_FILE = Path(__file__).resolve().parents[3] / "config" / "directory_seed.json"


def _row(import_hash: str) -> NormalizedRow:
    return NormalizedRow(
        row_index=2, customer_name="Acme", item_name="Widget",
        quantity=Decimal("1"), price=Decimal("1"),
        company_id="cmp_acme", product_id="prd_widget", import_hash=import_hash,
    )


class TestMemoryDirectory:
    def test_case_and_spacing_insensitive(self):
        directory = MemoryDirectory()
        directory.add_company("Gulf  Foods", "cmp_gulf")
        assert directory.resolve_company(" gulf foods ") == "cmp_gulf"
        assert directory.resolve_product("anything") is None

    def test_load_seed_with_aliases(self):
        directory = MemoryDirectory()
        added = directory.load_seed({
            "companies": [{"name": "Acme Trading LLC", "entityId": "cmp_1", "aliases": ["Acme"]}],
            "products": [{"name": "Widget", "entityId": "prd_1"}],
        })
        assert added == 3
        assert directory.resolve_company("acme") == "cmp_1"
        assert directory.resolve_company("ACME TRADING LLC") == "cmp_1"
        assert directory.resolve_product("widget") == "prd_1"


class TestMemoryOrderSink:
    def test_duplicate_insert_raises(self):
        sink = MemoryOrderSink()
        sink.insert("a" * 16, [_row("a" * 16)])
        with pytest.raises(DuplicateHashError):
            sink.insert("a" * 16, [_row("a" * 16)])
        assert len(sink.rows) == 1

    def test_order_lines_stored_together(self):
        sink = MemoryOrderSink()
        sink.insert("c" * 16, [_row("c" * 16), _row("c" * 16)])
        sink.insert("d" * 16, [_row("d" * 16)])
        assert [len(lines) for lines in sink.orders.values()] == [2, 1]
        assert len(sink.rows) == 3
        assert sink.hash_exists("c" * 16)

    def test_concurrent_inserts_single_winner(self):
        sink = MemoryOrderSink()
        wins: list[bool] = []
        barrier = threading.Barrier(8)

        def worker():
            barrier.wait()
            try:
                sink.insert("b" * 16, [_row("b" * 16)])
                wins.append(True)
            except DuplicateHashError:
                wins.append(False)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert wins.count(True) == 1


class TestMemoryFileStore:
    def test_missing_file(self):
        with pytest.raises(FileStoreError):
            MemoryFileStore().read("nope.csv")


class TestCreatePersistence:
    def test_memory_backend(self):
        persistence = create_persistence(AppSettings(backend="memory"))
        assert isinstance(persistence.directory, IDirectoryLookup)
        assert isinstance(persistence.sink, IOrderSink)
        assert isinstance(persistence.file_store, IFileStore)
        assert persistence.cache is None

    def test_memory_backend_seeded_from_file(self):
        persistence = create_persistence(AppSettings(backend="memory", directory_seed=SEED_FILE))
        assert persistence.directory.resolve_company("Acme") == "cmp_0001"
        assert persistence.directory.resolve_product("RICE-5") == "prd_0002"

    def test_aws_backend_without_redis(self):
        persistence = create_persistence(AppSettings(backend="aws"))
        assert type(persistence.directory).__name__ == "DynamoDBDirectory"
        assert type(persistence.sink).__name__ == "DynamoDBOrderSink"
        assert persistence.cache is None
