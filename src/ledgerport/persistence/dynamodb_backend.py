"""DynamoDB backends: company/product directory and the import-hash order sink."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Sequence

import boto3
from botocore.exceptions import ClientError

from ledgerport.core.exceptions import DuplicateHashError, EntityNotFoundError, SinkError
from ledgerport.core.protocols import ICacheBackend
from ledgerport.core.types import EntityId, ImportHash
from ledgerport.models.records import NormalizedRow
from ledgerport.persistence.keys import (
    DIRECTORY_TABLE,
    ENTITY_SK,
    HASH_TABLE,
    ORDER_SK,
    company_pk,
    entity_key,
    hash_pk,
    product_pk,
)

logger = logging.getLogger(__name__)


def _resource(region: str, endpoint_url: str | None):
    kwargs: dict = {"region_name": region}
    if endpoint_url:
        kwargs["endpoint_url"] = endpoint_url
    return boto3.resource("dynamodb", **kwargs)


def _error_code(exc: ClientError) -> str:
    return exc.response.get("Error", {}).get("Code", "")


class DynamoDBDirectory:
    """Production IDirectoryLookup backed by DynamoDB + optional Redis cache.

    Items: ``PK=COMPANY#<key> | PRODUCT#<key>``, ``SK=ENTITY``, ``entityId=<id>``.
    Only hits are cached, so newly created entities resolve on the next lookup.
    """

    def __init__(self, table_suffix: str = "", region: str = "us-east-1",
                 endpoint_url: str | None = None, cache: ICacheBackend | None = None,
                 cache_ttl: int = 300) -> None:
        self._table_suffix = table_suffix
        self._cache = cache
        self._cache_ttl = cache_ttl
        self._ddb = _resource(region, endpoint_url)

    def _table(self):
        return self._ddb.Table(f"{DIRECTORY_TABLE}{self._table_suffix}")

    def _lookup(self, pk: str) -> EntityId | None:
        cache_key = f"directory:{pk}"
        if self._cache is not None:
            cached = self._cache.get(cache_key)
            if cached is not None:
                return cached

        try:
            resp = self._table().get_item(Key={"PK": pk, "SK": ENTITY_SK})
        except ClientError as exc:
            if _error_code(exc) == "ResourceNotFoundException":
                raise EntityNotFoundError(f"Directory table missing for {pk!r}") from exc
            raise SinkError(f"Directory lookup failed for {pk!r}: {exc}") from exc

        item = resp.get("Item")
        if item is None:
            return None
        entity_id = str(item["entityId"])
        if self._cache is not None:
            self._cache.setex(cache_key, self._cache_ttl, entity_id)
        return entity_id

    # ---- IDirectoryLookup methods ----

    def resolve_company(self, name: str) -> EntityId | None:
        if not entity_key(name):
            return None
        return self._lookup(company_pk(name))

    def resolve_product(self, name_or_code: str) -> EntityId | None:
        if not entity_key(name_or_code):
            return None
        return self._lookup(product_pk(name_or_code))

    # ---- maintenance ----

    def put_company(self, name: str, entity_id: EntityId) -> None:
        self._table().put_item(Item={"PK": company_pk(name), "SK": ENTITY_SK,
                                     "entityId": entity_id, "name": name})

    def put_product(self, name_or_code: str, entity_id: EntityId) -> None:
        self._table().put_item(Item={"PK": product_pk(name_or_code), "SK": ENTITY_SK,
                                     "entityId": entity_id, "name": name_or_code})


class DynamoDBOrderSink:
    """Production IOrderSink: one item per import hash, written conditionally.

    The item carries the order header (invoice, company, date) and a ``lines`` list
    with the canonical values of every line. The conditional put makes
    check-and-insert atomic across concurrent imports.
    """

    def __init__(self, table_suffix: str = "", region: str = "us-east-1",
                 endpoint_url: str | None = None) -> None:
        self._table_suffix = table_suffix
        self._ddb = _resource(region, endpoint_url)

    def _table(self):
        return self._ddb.Table(f"{HASH_TABLE}{self._table_suffix}")

    def hash_exists(self, import_hash: ImportHash) -> bool:
        try:
            resp = self._table().get_item(
                Key={"PK": hash_pk(import_hash), "SK": ORDER_SK},
                ProjectionExpression="PK",
            )
        except ClientError as exc:
            raise SinkError(f"Hash lookup failed for {import_hash}: {exc}") from exc
        return "Item" in resp

    def insert(self, import_hash: ImportHash, rows: Sequence[NormalizedRow]) -> None:
        if not rows:
            raise ValueError(f"Order {import_hash} has no lines")
        first = rows[0]
        item: dict[str, Any] = {
            "PK": hash_pk(import_hash),
            "SK": ORDER_SK,
            "importHash": import_hash,
            "importedAt": datetime.now(timezone.utc).isoformat(),
            "invoiceNumber": first.invoice_number,
            "invoiceDate": first.invoice_date,
            "customerName": first.customer_name,
            "companyId": first.company_id,
            "lineCount": len(rows),
            "lines": [row.order_values() for row in rows],
        }
        try:
            self._table().put_item(Item=item, ConditionExpression="attribute_not_exists(PK)")
        except ClientError as exc:
            if _error_code(exc) == "ConditionalCheckFailedException":
                logger.info("Insert race lost for hash %s", import_hash)
                raise DuplicateHashError(import_hash) from exc
            raise SinkError(f"Insert failed for hash {import_hash}: {exc}") from exc
