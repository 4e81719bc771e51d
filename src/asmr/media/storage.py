"""S3-compatible object storage client used to presign media downloads."""

from __future__ import annotations

from typing import Any

import structlog

from asmr.config import Settings, get_settings

logger = structlog.get_logger()


class StorageNotConfiguredError(RuntimeError):
    """Endpoint, credentials or bucket are missing from the settings."""


class StorageError(RuntimeError):
    """The storage client failed to produce a URL."""


class StorageClient:
    """Presigns GET URLs against one bucket of an S3-compatible store (R2, MinIO, S3)."""

    def __init__(
        self,
        endpoint: str,
        access_key_id: str,
        secret_access_key: str,
        bucket: str,
        region: str = "auto",
    ) -> None:
        self.endpoint = endpoint
        self.access_key_id = access_key_id
        self.secret_access_key = secret_access_key
        self.bucket = bucket
        self.region = region
        self._client: Any = None

    @classmethod
    def from_settings(cls, settings: Settings) -> StorageClient:
        """
        Build a client for the audio bucket.

        Raises:
            StorageNotConfiguredError: A required setting is empty.
        """
        required = {
            "storage_endpoint": settings.storage_endpoint,
            "storage_access_key_id": settings.storage_access_key_id,
            "storage_secret_access_key": settings.storage_secret_access_key,
            "storage_bucket": settings.audio_bucket,
        }
        missing = [name for name, value in required.items() if not value]
        if missing:
            msg = f"Object storage is not configured (missing: {', '.join(missing)})"
            raise StorageNotConfiguredError(msg)
        return cls(
            endpoint=settings.storage_endpoint,
            access_key_id=settings.storage_access_key_id,
            secret_access_key=settings.storage_secret_access_key,
            bucket=settings.audio_bucket,
            region=settings.storage_region,
        )

    @property
    def client(self) -> Any:  # noqa: ANN401
        """The boto3 S3 client, created on first use."""
        if self._client is None:
            import boto3
            from botocore.config import Config

            self._client = boto3.client(
                "s3",
                endpoint_url=self.endpoint,
                aws_access_key_id=self.access_key_id,
                aws_secret_access_key=self.secret_access_key,
                region_name=self.region,
                config=Config(signature_version="s3v4"),
            )
        return self._client

    def presign_get(self, key: str, expires_in: int) -> str:
        """
        Pre-signed GET URL for ``key``, valid for ``expires_in`` seconds.

        Signing is local; no request is made to the store.

        Raises:
            StorageError: botocore rejected the request parameters.
        """
        from botocore.exceptions import BotoCoreError, ClientError

        try:
            return self.client.generate_presigned_url(
                "get_object",
                Params={"Bucket": self.bucket, "Key": key},
                ExpiresIn=expires_in,
            )
        except (BotoCoreError, ClientError) as e:
            raise StorageError(str(e)) from e


# Singleton
_storage_client: StorageClient | None = None


def get_storage_client() -> StorageClient:
    """
    Get or create the storage client singleton.

    Raises:
        StorageNotConfiguredError: Settings are incomplete; nothing is cached.
    """
    global _storage_client  # noqa: PLW0603
    if _storage_client is None:
        _storage_client = StorageClient.from_settings(get_settings())
    return _storage_client


def reset_storage_client() -> None:
    """Reset the storage client singleton (for testing)."""
    global _storage_client  # noqa: PLW0603
    _storage_client = None
