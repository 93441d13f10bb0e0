"""S3-compatible object storage for uploaded media."""

from __future__ import annotations

import logging
import secrets
from typing import Protocol

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from downtown.core.errors import StorageError
from downtown.core.settings import StorageSettings, settings

logger = logging.getLogger(__name__)

POST_IMAGE_PREFIX = "post_image"
PROFILE_IMAGE_PREFIX = "profile_image"
VERIFICATION_IMAGE_PREFIX = "verification_image"


def random_key(prefix: str) -> str:
    """Return a fresh object key under ``prefix``."""
    return f"{prefix}/{secrets.token_hex(16)}"


class Storage(Protocol):
    def push_file(self, path: str, key: str) -> str: ...

    def delete_file(self, key: str) -> bool: ...


class S3Storage:
    """Upload and delete objects in a single bucket.

    Calls are made once; failures surface as :class:`StorageError` and are
    never retried.
    """

    def __init__(self, config: StorageSettings, client=None) -> None:
        self._config = config
        self._client = client or boto3.client(
            "s3",
            region_name=config.region,
            endpoint_url=config.endpoint_url,
        )

    def url_for(self, key: str) -> str:
        if self._config.public_base_url:
            return f"{self._config.public_base_url.rstrip('/')}/{key}"
        return f"https://{self._config.bucket}.s3.{self._config.region}.amazonaws.com/{key}"

    def push_file(self, path: str, key: str) -> str:
        """Upload the local file at ``path`` as ``key`` and return its public URL."""
        try:
            self._client.upload_file(path, self._config.bucket, key)
        except (BotoCoreError, ClientError, OSError) as err:
            raise StorageError(key, str(err)) from err
        logger.info("Uploaded object %s", key)
        return self.url_for(key)

    def delete_file(self, key: str) -> bool:
        try:
            self._client.delete_object(Bucket=self._config.bucket, Key=key)
        except (BotoCoreError, ClientError) as err:
            raise StorageError(key, str(err)) from err
        logger.info("Deleted object %s", key)
        return True


def discard(storage: Storage, keys: list[str]) -> None:
    """Delete ``keys`` on a best-effort basis, logging each failure."""
    for key in keys:
        try:
            storage.delete_file(key)
        except StorageError as err:
            logger.warning("Could not remove object %s: %s", key, err.reason)


_storage: S3Storage | None = None


def get_storage() -> S3Storage:
    """Return the process-wide storage client."""
    global _storage
    if _storage is None:
        _storage = S3Storage(settings.storage)
    return _storage
