"""Unit tests for the DynamoDB directory and order sink using moto."""

from __future__ import annotations

from decimal import Decimal

import boto3
import pytest
from moto import mock_aws

from ledgerport.core.exceptions import DuplicateHashError, EntityNotFoundError, SinkError
from ledgerport.models.records import NormalizedRow
from ledgerport.persistence.dynamodb_backend import DynamoDBDirectory, DynamoDBOrderSink
from ledgerport.persistence.memory_backend import MemoryCacheBackend

TABLE_SUFFIX = "-test"
REGION = "us-east-1"

# ---------- helpers ----------

def _create_table(client, name: str):
    client.create_table(
        TableName=name,
        KeySchema=[
            {"AttributeName": "PK", "KeyType": "HASH"},
            {"AttributeName": "SK", "KeyType": "RANGE"},
        ],
        AttributeDefinitions=[
            {"AttributeName": "PK", "AttributeType": "S"},
            {"AttributeName": "SK", "AttributeType": "S"},
        ],
        BillingMode="PAY_PER_REQUEST",
    )


HASH = "0123456789abcdef"


def _row(import_hash: str = HASH, row_index: int = 2, item_name: str = "Widget") -> NormalizedRow:
    return NormalizedRow(
        row_index=row_index, customer_name="Acme", item_name=item_name,
        invoice_number="INV-1", invoice_date="2024-01-15",
        quantity=Decimal("2"), price=Decimal("10.50"),
        company_id="cmp_acme", product_id="prd_widget", import_hash=import_hash,
        line_subtotal=Decimal("21.00"), net_total=Decimal("21.00"),
    )


# ---------- fixtures ----------

@pytest.fixture
def aws():
    with mock_aws():
        client = boto3.client("dynamodb", region_name=REGION)
        for name in ("ledgerport-directory", "ledgerport-import-hashes"):
            _create_table(client, f"{name}{TABLE_SUFFIX}")
        yield boto3.resource("dynamodb", region_name=REGION)


@pytest.fixture
def directory(aws):
    return DynamoDBDirectory(table_suffix=TABLE_SUFFIX, region=REGION)


@pytest.fixture
def sink(aws):
    return DynamoDBOrderSink(table_suffix=TABLE_SUFFIX, region=REGION)


# ---------- directory ----------

class TestDirectoryLookup:
    def test_resolves_company_case_insensitively(self, directory):
        directory.put_company("Acme Trading", "cmp_1")
        assert directory.resolve_company("ACME  trading") == "cmp_1"

    def test_resolves_product(self, directory):
        directory.put_product("WID-001", "prd_1")
        assert directory.resolve_product("wid-001") == "prd_1"

    def test_unknown_returns_none(self, directory):
        assert directory.resolve_company("Nobody") is None
        assert directory.resolve_product("Nothing") is None

    def test_blank_name_returns_none(self, directory):
        assert directory.resolve_company("   ") is None

    def test_item_layout(self, directory, aws):
        directory.put_company("Acme", "cmp_1")
        item = aws.Table(f"ledgerport-directory{TABLE_SUFFIX}").get_item(
            Key={"PK": "COMPANY#acme", "SK": "ENTITY"})["Item"]
        assert item["entityId"] == "cmp_1"


class TestDirectoryCache:
    def test_hit_is_cached(self, aws):
        cache = MemoryCacheBackend()
        directory = DynamoDBDirectory(table_suffix=TABLE_SUFFIX, region=REGION, cache=cache)
        directory.put_company("Acme", "cmp_1")
        assert directory.resolve_company("Acme") == "cmp_1"
        assert cache.get("directory:COMPANY#acme") == "cmp_1"

    def test_served_from_cache(self, aws):
        cache = MemoryCacheBackend()
        cache.setex("directory:PRODUCT#widget", 300, "prd_cached")
        directory = DynamoDBDirectory(table_suffix=TABLE_SUFFIX, region=REGION, cache=cache)
        assert directory.resolve_product("Widget") == "prd_cached"

    def test_miss_not_cached(self, aws):
        cache = MemoryCacheBackend()
        directory = DynamoDBDirectory(table_suffix=TABLE_SUFFIX, region=REGION, cache=cache)
        assert directory.resolve_company("Later Co") is None
        directory.put_company("Later Co", "cmp_2")
        assert directory.resolve_company("Later Co") == "cmp_2"


class TestDirectoryErrors:
    def test_missing_table(self, aws):
        directory = DynamoDBDirectory(table_suffix="-nope", region=REGION)
        with pytest.raises(EntityNotFoundError):
            directory.resolve_company("Acme")


# ---------- order sink ----------

class TestOrderSink:
    def test_insert_then_exists(self, sink):
        assert not sink.hash_exists(HASH)
        sink.insert(HASH, [_row()])
        assert sink.hash_exists(HASH)

    def test_stores_order_with_lines(self, sink, aws):
        sink.insert(HASH, [_row(), _row(row_index=3, item_name="Gadget")])
        item = aws.Table(f"ledgerport-import-hashes{TABLE_SUFFIX}").get_item(
            Key={"PK": "HASH#0123456789abcdef", "SK": "ORDER"})["Item"]
        assert item["invoiceNumber"] == "INV-1"
        assert item["companyId"] == "cmp_acme"
        assert item["lineCount"] == 2
        assert [line["itemName"] for line in item["lines"]] == ["Widget", "Gadget"]
        assert item["lines"][0]["price"] == "10.50"
        assert "importedAt" in item

    def test_second_insert_loses(self, sink):
        sink.insert(HASH, [_row()])
        with pytest.raises(DuplicateHashError) as excinfo:
            sink.insert(HASH, [_row()])
        assert excinfo.value.import_hash == HASH

    def test_empty_order_rejected(self, sink):
        with pytest.raises(ValueError):
            sink.insert(HASH, [])

    def test_missing_table_is_sink_error(self, aws):
        sink = DynamoDBOrderSink(table_suffix="-nope", region=REGION)
        with pytest.raises(SinkError):
            sink.hash_exists(HASH)
