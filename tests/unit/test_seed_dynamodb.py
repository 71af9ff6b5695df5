"""Tests for the DynamoDB seed script."""

from __future__ import annotations

import json
import sys
from pathlib import Path

import boto3
import pytest
from moto import mock_aws

from ledgerport.persistence.dynamodb_backend import DynamoDBDirectory

# Make scripts/ importable
sys.path.insert(0, str(Path(__file__).resolve().parent.parent.parent / "scripts"))

from seed_dynamodb import create_tables, seed_directory  # noqa: E402


@pytest.fixture
def ddb():
    with mock_aws():
        yield boto3.resource("dynamodb", region_name="us-east-1")


class TestCreateTables:
    def test_creates_both_tables(self, ddb):
        create_tables(ddb, suffix="-test")
        tables = boto3.client("dynamodb", region_name="us-east-1").list_tables()["TableNames"]
        assert sorted(tables) == ["ledgerport-directory-test", "ledgerport-import-hashes-test"]

    def test_idempotent_skips_existing(self, ddb):
        create_tables(ddb, suffix="-test")
        create_tables(ddb, suffix="-test")
        assert len(boto3.client("dynamodb", region_name="us-east-1").list_tables()["TableNames"]) == 2


class TestSeedDirectory:
    def test_default_seed_file(self, ddb):
        create_tables(ddb, suffix="-test")
        written = seed_directory(ddb, suffix="-test")
        assert written == ddb.Table("ledgerport-directory-test").scan()["Count"]
        directory = DynamoDBDirectory(table_suffix="-test", region="us-east-1")
        assert directory.resolve_company("acme") == "cmp_0001"
        assert directory.resolve_product("wid-001") == "prd_0001"

    def test_custom_seed_file(self, ddb, tmp_path):
        seed = tmp_path / "seed.json"
        seed.write_text(json.dumps({
            "companies": [{"name": "Solo Co", "entityId": "cmp_x"}],
            "products": [],
        }))
        create_tables(ddb, suffix="-test")
        assert seed_directory(ddb, suffix="-test", seed_path=seed) == 1
        directory = DynamoDBDirectory(table_suffix="-test", region="us-east-1")
        assert directory.resolve_company("SOLO CO") == "cmp_x"
