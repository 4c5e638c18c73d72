from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

import boto3
from botocore.exceptions import ClientError

from annotate_api.settings import get_settings


class StorageDriver(Protocol):
    def put_bytes(self, key: str, data: bytes, content_type: str | None = None) -> str:
        ...

    def get_bytes(self, key: str) -> bytes:
        ...

    def exists(self, key: str) -> bool:
        ...


def document_key(doc_id: str) -> str:
    return f"documents/{doc_id}/original.pdf"


def meta_key(doc_id: str) -> str:
    return f"documents/{doc_id}/meta.json"


@dataclass
class LocalStorageDriver:
    root: Path

    def ensure_root(self) -> None:
        self.root = self.root.resolve()
        self.root.mkdir(parents=True, exist_ok=True)

    def _safe_join(self, key: str) -> Path:
        candidate = (self.root / key).resolve()
        if self.root not in candidate.parents and candidate != self.root:
            raise ValueError("Invalid storage key")
        return candidate

    def put_bytes(self, key: str, data: bytes, content_type: str | None = None) -> str:
        path = self._safe_join(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        return key

    def get_bytes(self, key: str) -> bytes:
        return self._safe_join(key).read_bytes()

    def exists(self, key: str) -> bool:
        return self._safe_join(key).exists()


def _is_missing(exc: ClientError) -> bool:
    error_code = exc.response.get("Error", {}).get("Code")
    status = exc.response.get("ResponseMetadata", {}).get("HTTPStatusCode")
    return error_code in {"NoSuchKey", "404"} or status == 404


@dataclass
class S3StorageDriver:
    bucket: str
    prefix: str | None
    client: object

    def _resolve_key(self, key: str) -> str:
        if self.prefix:
            return f"{self.prefix.strip('/')}/{key}"
        return key

    def put_bytes(self, key: str, data: bytes, content_type: str | None = None) -> str:
        params = {"Bucket": self.bucket, "Key": self._resolve_key(key), "Body": data}
        if content_type:
            params["ContentType"] = content_type
        self.client.put_object(**params)
        return key

    def get_bytes(self, key: str) -> bytes:
        try:
            response = self.client.get_object(Bucket=self.bucket, Key=self._resolve_key(key))
        except ClientError as exc:
            if _is_missing(exc):
                raise FileNotFoundError("Object not found") from exc
            raise
        return response["Body"].read()

    def exists(self, key: str) -> bool:
        try:
            self.client.head_object(Bucket=self.bucket, Key=self._resolve_key(key))
        except ClientError as exc:
            if _is_missing(exc):
                return False
            raise
        return True


def get_storage() -> StorageDriver:
    settings = get_settings()
    if settings.ANNOTATE_STORAGE_DRIVER.lower() == "s3":
        client = boto3.client(
            "s3",
            region_name=settings.ANNOTATE_S3_REGION,
            endpoint_url=settings.ANNOTATE_S3_ENDPOINT,
            aws_access_key_id=settings.ANNOTATE_S3_ACCESS_KEY,
            aws_secret_access_key=settings.ANNOTATE_S3_SECRET_KEY,
        )
        return S3StorageDriver(
            bucket=settings.ANNOTATE_S3_BUCKET,
            prefix=settings.ANNOTATE_S3_PREFIX,
            client=client,
        )
    driver = LocalStorageDriver(Path(settings.ANNOTATE_STORAGE_LOCAL_DIR))
    driver.ensure_root()
    return driver
