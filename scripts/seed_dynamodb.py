"""Create the LedgerPort DynamoDB tables and seed the company/product directory.

Usage:
    python scripts/seed_dynamodb.py --endpoint-url http://localhost:4566
    python scripts/seed_dynamodb.py --seed-file my_directory.json --table-suffix -dev
"""

from __future__ import annotations

import argparse
import json
from pathlib import Path
from typing import Any

import boto3

from ledgerport.persistence.keys import (
    DIRECTORY_TABLE,
    ENTITY_SK,
    HASH_TABLE,
    company_pk,
    product_pk,
)

TABLE_NAMES: list[str] = [DIRECTORY_TABLE, HASH_TABLE]

DEFAULT_SEED = Path(__file__).resolve().parent.parent / "config" / "directory_seed.json"


def create_tables(ddb: Any, suffix: str = "") -> None:
    """Create the directory and import-hash tables. Skips tables that already exist."""
    client = ddb.meta.client
    existing = client.list_tables().get("TableNames", [])

    for name in TABLE_NAMES:
        table_name = f"{name}{suffix}"
        if table_name in existing:
            print(f"  Table {table_name} already exists, skipping")
            continue
        client.create_table(
            TableName=table_name,
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
        print(f"  Created table {table_name}")


def _directory_items(data: dict[str, Any]) -> list[dict[str, Any]]:
    """One item per name and per alias, all pointing at the same entity id."""
    items: list[dict[str, Any]] = []
    for section, pk in (("companies", company_pk), ("products", product_pk)):
        for entry in data.get(section, []):
            for spelling in [entry["name"], *entry.get("aliases", [])]:
                items.append({
                    "PK": pk(spelling), "SK": ENTITY_SK,
                    "entityId": entry["entityId"], "name": entry["name"],
                })
    return items


def seed_directory(ddb: Any, suffix: str = "", seed_path: Path = DEFAULT_SEED) -> int:
    """Load the directory seed file into the directory table. Returns items written."""
    data = json.loads(Path(seed_path).read_text(encoding="utf-8"))
    items = _directory_items(data)

    tbl = ddb.Table(f"{DIRECTORY_TABLE}{suffix}")
    with tbl.batch_writer(overwrite_by_pkeys=["PK", "SK"]) as batch:
        for item in items:
            batch.put_item(Item=item)
    print(f"  Seeded {len(data.get('companies', []))} companies and "
          f"{len(data.get('products', []))} products ({len(items)} lookup keys)")
    return len(items)


def main() -> None:
    parser = argparse.ArgumentParser(description="Seed DynamoDB tables for LedgerPort")
    parser.add_argument("--endpoint-url", default=None, help="DynamoDB endpoint (e.g. http://localhost:4566)")
    parser.add_argument("--table-suffix", default="", help="Table name suffix (e.g. -dev)")
    parser.add_argument("--region", default="us-east-1", help="AWS region")
    parser.add_argument("--seed-file", type=Path, default=DEFAULT_SEED, help="Directory seed JSON")
    args = parser.parse_args()

    kwargs: dict[str, Any] = {"region_name": args.region}
    if args.endpoint_url:
        kwargs["endpoint_url"] = args.endpoint_url

    ddb = boto3.resource("dynamodb", **kwargs)

    print("Creating tables...")
    create_tables(ddb, suffix=args.table_suffix)

    print("Seeding directory...")
    seed_directory(ddb, suffix=args.table_suffix, seed_path=args.seed_file)

    print("Done!")


if __name__ == "__main__":
    main()
