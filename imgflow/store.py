from __future__ import annotations

from typing import Any

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from imgflow.auth import resolve_store_credentials
from imgflow.config import ImgFlowConfig, normalize_prefix
from imgflow.errors import InventoryError, UploadError


class ObjectStore:
    """Thin adapter over an S3-compatible client, scoped to one bucket and key prefix."""

    def __init__(self, client: Any, bucket: str, prefix: str = "") -> None:
        self._client = client
        self.bucket = bucket
        self.prefix = normalize_prefix(prefix)

    def object_key(self, key: str) -> str:
        return f"{self.prefix}{key.lstrip('/')}"

    def list_keys(self, prefix: str | None = None) -> set[str]:
        """Snapshot every key under the prefix, relative to that prefix."""
        prefix = self.prefix if prefix is None else normalize_prefix(prefix)
        keys: set[str] = set()
        try:
            paginator = self._client.get_paginator("list_objects_v2")
            for page in paginator.paginate(Bucket=self.bucket, Prefix=prefix):
                for entry in page.get("Contents") or []:
                    key = str(entry.get("Key") or "")
                    if not key or key.endswith("/"):
                        continue
                    keys.add(key[len(prefix):] if key.startswith(prefix) else key)
        except (BotoCoreError, ClientError) as exc:
            raise InventoryError(f"Cannot list s3://{self.bucket}/{prefix}: {exc}") from exc
        return keys

    def put_object(self, key: str, body: bytes, content_type: str) -> None:
        object_key = self.object_key(key)
        try:
            self._client.put_object(
                Bucket=self.bucket,
                Key=object_key,
                Body=body,
                ContentType=content_type,
            )
        except (BotoCoreError, ClientError) as exc:
            raise UploadError(f"Cannot upload s3://{self.bucket}/{object_key}: {exc}") from exc


def build_object_store(config: ImgFlowConfig) -> ObjectStore:
    bucket = config.require_bucket()
    credentials = resolve_store_credentials()

    client_kwargs: dict[str, Any] = {"config": Config(signature_version="s3v4")}
    if config.endpoint:
        client_kwargs["endpoint_url"] = config.endpoint
    if config.region:
        client_kwargs["region_name"] = config.region
    if credentials.explicit:
        client_kwargs["aws_access_key_id"] = credentials.access_key_id
        client_kwargs["aws_secret_access_key"] = credentials.secret_access_key

    client = boto3.client("s3", **client_kwargs)
    return ObjectStore(client, bucket, config.prefix)
