"""S3 storage for exported payout workbooks, implementing IFileStore."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator

import boto3
from botocore.exceptions import ClientError

from caseledger.core.exceptions import StorageError

logger = logging.getLogger(__name__)

XLSX_CONTENT_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


class S3FileStore:
    """IFileStore over one bucket; keys are used as given (callers add ``exports/``)."""

    def __init__(self, bucket: str, region: str = "us-east-1",
                 endpoint_url: str | None = None) -> None:
        self._bucket = bucket
        kwargs: dict = {"region_name": region}
        if endpoint_url:
            kwargs["endpoint_url"] = endpoint_url
        self._client = boto3.client("s3", **kwargs)

    @contextmanager
    def _errors(self, action: str, key: str) -> Iterator[None]:
        try:
            yield
        except ClientError as exc:
            raise StorageError(f"S3 {action} of s3://{self._bucket}/{key} failed: {exc}") from exc

    def read(self, path: str) -> bytes:
        with self._errors("read", path):
            return self._client.get_object(Bucket=self._bucket, Key=path)["Body"].read()

    def write(self, path: str, data: bytes, content_type: str = "application/octet-stream") -> str:
        with self._errors("write", path):
            self._client.put_object(Bucket=self._bucket, Key=path, Body=data, ContentType=content_type)
        logger.info("Stored %d bytes at s3://%s/%s", len(data), self._bucket, path)
        return path

    def list_files(self, prefix: str) -> list[str]:
        with self._errors("listing", prefix):
            pages = self._client.get_paginator("list_objects_v2").paginate(Bucket=self._bucket, Prefix=prefix)
            return [obj["Key"] for page in pages for obj in page.get("Contents", [])]
