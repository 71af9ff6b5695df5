"""S3 storage for uploaded spreadsheets and import audit logs."""

from __future__ import annotations

import boto3
from botocore.exceptions import ClientError

from ledgerport.core.exceptions import FileStoreError


class S3FileStore:
    """Production IFileStore backed by S3."""

    def __init__(self, bucket: str, region: str = "us-east-1",
                 endpoint_url: str | None = None) -> None:
        self._bucket = bucket
        kwargs: dict = {"region_name": region}
        if endpoint_url:
            kwargs["endpoint_url"] = endpoint_url
        self._client = boto3.client("s3", **kwargs)

    def read(self, path: str) -> bytes:
        try:
            resp = self._client.get_object(Bucket=self._bucket, Key=path)
            return resp["Body"].read()
        except ClientError as exc:
            raise FileStoreError(f"S3 read failed for s3://{self._bucket}/{path}: {exc}") from exc

    def write(self, path: str, data: bytes, content_type: str = "application/octet-stream") -> str:
        try:
            self._client.put_object(Bucket=self._bucket, Key=path, Body=data, ContentType=content_type)
        except ClientError as exc:
            raise FileStoreError(f"S3 write failed for s3://{self._bucket}/{path}: {exc}") from exc
        return path
