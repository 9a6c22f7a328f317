from __future__ import annotations

import shutil
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Optional

import boto3
from boto3.exceptions import S3UploadFailedError
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from tubely.ingest.errors import UploadFailure

from .config import Settings
from .logging import get_logger


def public_address(bucket: str, region: str, storage_key: str) -> str:
    return f"https://{bucket}.s3.{region}.amazonaws.com/{storage_key}"


class ObjectStore(ABC):
    @abstractmethod
    def upload(self, local_path: Path, storage_key: str, *, content_type: str) -> str:
        """Store ``local_path`` under ``storage_key`` and return its public address."""


class LocalObjectStore(ObjectStore):
    """Filesystem-backed object store suitable for development."""

    def __init__(self, base_path: Path):
        self.base_path = base_path
        self.base_path.mkdir(parents=True, exist_ok=True)
        self.logger = get_logger(component="local_object_store")

    def _resolve(self, storage_key: str) -> Path:
        root = self.base_path.resolve()
        target = (root / storage_key).resolve()
        if root not in target.parents:
            raise ValueError(f"Storage key escapes the store root: {storage_key}")
        return target

    def upload(self, local_path: Path, storage_key: str, *, content_type: str) -> str:
        try:
            target = self._resolve(storage_key)
            target.parent.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(local_path, target)
        except (OSError, ValueError) as exc:
            raise UploadFailure(storage_key, str(exc)) from exc
        self.logger.info("object_stored", storage_key=storage_key, path=str(target))
        return target.as_uri()


class S3ObjectStore(ObjectStore):
    """Upload objects to a single S3 bucket.

    Existing keys are overwritten. Keys are random, so collisions are not
    guarded against.
    """

    def __init__(
        self,
        bucket: str,
        region: str,
        *,
        endpoint_url: Optional[str] = None,
        access_key_id: Optional[str] = None,
        secret_access_key: Optional[str] = None,
        timeout_s: float = 60.0,
        client: Any = None,
    ):
        self.bucket = bucket
        self.region = region
        if client is None:
            session = boto3.session.Session(
                aws_access_key_id=access_key_id,
                aws_secret_access_key=secret_access_key,
                region_name=region,
            )
            client = session.client(
                "s3",
                endpoint_url=endpoint_url,
                config=Config(
                    signature_version="s3v4",
                    connect_timeout=timeout_s,
                    read_timeout=timeout_s,
                    retries={"max_attempts": 3, "mode": "standard"},
                ),
            )
        self.client = client
        self.logger = get_logger(component="s3_object_store", bucket=bucket, region=region)

    def upload(self, local_path: Path, storage_key: str, *, content_type: str) -> str:
        try:
            self.client.upload_file(
                str(local_path),
                self.bucket,
                storage_key,
                ExtraArgs={"ContentType": content_type},
            )
        except (ClientError, BotoCoreError, S3UploadFailedError, OSError) as exc:
            self.logger.error("object_upload_failed", storage_key=storage_key, error=str(exc))
            raise UploadFailure(storage_key, str(exc)) from exc
        address = public_address(self.bucket, self.region, storage_key)
        self.logger.info("object_uploaded", storage_key=storage_key, address=address)
        return address


def get_storage(settings: Settings) -> ObjectStore:
    if settings.storage_backend == "local":
        return LocalObjectStore(base_path=Path(settings.local_storage_base_path))
    if settings.storage_backend == "s3":
        if not settings.s3_bucket:
            raise ValueError("s3 storage backend requires a bucket")
        return S3ObjectStore(
            settings.s3_bucket,
            settings.s3_region,
            endpoint_url=settings.s3_endpoint_url,
            access_key_id=settings.secrets.aws_access_key_id,
            secret_access_key=settings.secrets.aws_secret_access_key,
            timeout_s=settings.upload_timeout_s,
        )
    raise ValueError(f"Unsupported storage backend: {settings.storage_backend}")


__all__ = [
    "ObjectStore",
    "LocalObjectStore",
    "S3ObjectStore",
    "public_address",
    "get_storage",
]
