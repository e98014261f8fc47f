"""
S3-compatible storage service for Clipstream.

This module wraps the two boto3 operations the video pipeline depends on:
writing a published object and presigning time-limited GET URLs for it.
Compatible with both MinIO (development) and AWS S3 (production).

Key Features:
- Single put-object per upload, tagged with the declared content type
- Presigned GET URLs with a configurable lifetime (15 minutes by default)
- Async-wrapped operations for non-blocking I/O
"""

import asyncio
import logging

from collections.abc import Callable, Coroutine
from functools import wraps
from typing import Any, BinaryIO, TypeVar

import boto3

from botocore.client import Config
from botocore.exceptions import BotoCoreError, ClientError, NoCredentialsError

from app.config import Settings


logger = logging.getLogger(__name__)

T = TypeVar("T")

# Default presigned URL expiration time (15 minutes = 900 seconds)
DEFAULT_PRESIGNED_URL_EXPIRATION = 900


def async_wrap(func: Callable[..., T]) -> Callable[..., Coroutine[Any, Any, T]]:
    """
    Decorator to wrap synchronous boto3 operations for async execution.

    Uses asyncio.to_thread to run blocking boto3 operations in a separate
    thread pool, preventing event loop blocking during S3 operations.

    Args:
        func: The synchronous function to wrap

    Returns:
        An async function that executes the original in a thread pool
    """

    @wraps(func)
    async def wrapper(*args: Any, **kwargs: Any) -> T:
        return await asyncio.to_thread(func, *args, **kwargs)

    return wrapper


class StorageServiceError(Exception):
    """Base exception for storage service errors."""


class StorageConnectionError(StorageServiceError):
    """Raised when the S3 client cannot be constructed."""


class StorageCredentialsError(StorageServiceError):
    """Raised when storage credentials are missing or invalid."""


class StorageOperationError(StorageServiceError):
    """Raised when a storage operation fails."""


class StorageService:
    """
    S3-compatible storage service for the video pipeline.

    Attributes:
        bucket_name: Bucket that receives new uploads
        endpoint_url: The S3-compatible endpoint URL (MinIO or AWS S3)
        region_name: AWS region name

    Example:
        >>> service = StorageService(
        ...     bucket_name="clipstream-videos",
        ...     endpoint_url="http://localhost:9000",  # MinIO
        ...     access_key="minioadmin",
        ...     secret_key="minioadmin",
        ... )
        >>> await service.put_object("landscape/abc.mp4", fh, "video/mp4")
    """

    def __init__(
        self,
        bucket_name: str,
        endpoint_url: str | None = None,
        access_key: str | None = None,
        secret_key: str | None = None,
        region_name: str = "us-east-1",
    ) -> None:
        """
        Initialize the S3-compatible storage service.

        Args:
            bucket_name: Bucket that receives new uploads
            endpoint_url: S3-compatible endpoint URL (None for AWS S3 default)
            access_key: AWS access key ID or MinIO access key
            secret_key: AWS secret access key or MinIO secret key
            region_name: AWS region (default: us-east-1)

        Raises:
            StorageCredentialsError: If credentials are missing or invalid
            StorageConnectionError: If the client cannot be created
        """
        self.bucket_name = bucket_name
        self.endpoint_url = endpoint_url
        self.region_name = region_name

        logger.info(
            "Initializing StorageService with bucket=%s, endpoint=%s",
            bucket_name,
            endpoint_url or "AWS S3 default",
        )

        client_kwargs: dict[str, Any] = {
            "service_name": "s3",
            "region_name": region_name,
            # SigV4 is required for presigned URLs on MinIO and newer AWS regions
            "config": Config(signature_version="s3v4", s3={"addressing_style": "path"}),
        }
        if endpoint_url:
            client_kwargs["endpoint_url"] = endpoint_url
        if access_key and secret_key:
            client_kwargs["aws_access_key_id"] = access_key
            client_kwargs["aws_secret_access_key"] = secret_key

        try:
            self._client = boto3.client(**client_kwargs)
        except NoCredentialsError as e:
            raise StorageCredentialsError("S3 credentials not found") from e
        except BotoCoreError as e:
            raise StorageConnectionError(f"Failed to initialize S3 client: {e}") from e

    @classmethod
    def from_settings(cls, settings: Settings) -> "StorageService":
        """Build a service from application settings."""
        return cls(
            bucket_name=settings.s3_bucket_name,
            endpoint_url=settings.s3_endpoint_url,
            access_key=settings.s3_access_key_id,
            secret_key=settings.s3_secret_access_key,
            region_name=settings.s3_region,
        )

    async def put_object(
        self,
        key: str,
        body: BinaryIO | bytes,
        content_type: str,
        bucket_name: str | None = None,
    ) -> str:
        """
        Write one object to storage.

        Args:
            key: Object key to write
            body: Open binary file or raw bytes
            content_type: Value for the object's Content-Type metadata
            bucket_name: Optional bucket override (defaults to service bucket)

        Returns:
            str: The bucket the object was written to.

        Raises:
            StorageOperationError: If the storage client rejects the write
        """
        target_bucket = bucket_name or self.bucket_name

        logger.info("Putting object key=%s, bucket=%s", key, target_bucket)

        @async_wrap
        def _put() -> dict[str, Any]:
            return self._client.put_object(
                Bucket=target_bucket,
                Key=key,
                Body=body,
                ContentType=content_type,
            )

        try:
            await _put()
        except ClientError as e:
            error_msg = f"Failed to put object: {e.response['Error']['Message']}"
            logger.error(error_msg)
            raise StorageOperationError(error_msg) from e
        except BotoCoreError as e:
            error_msg = f"Storage operation error during put_object: {e}"
            logger.error(error_msg)
            raise StorageOperationError(error_msg) from e

        logger.info("Successfully stored %s in %s", key, target_bucket)
        return target_bucket

    async def generate_presigned_download_url(
        self,
        bucket_name: str,
        key: str,
        expires_in: int = DEFAULT_PRESIGNED_URL_EXPIRATION,
    ) -> str:
        """
        Generate a presigned GET URL for one object.

        Signing is local to the client (no network call), so every call yields
        a fresh URL whose window starts now; earlier URLs are unaffected.

        Args:
            bucket_name: Bucket holding the object
            key: Object key
            expires_in: URL lifetime in seconds (default: 900 = 15 minutes)

        Returns:
            str: The presigned URL

        Raises:
            StorageOperationError: If URL generation fails
        """

        @async_wrap
        def _generate() -> str:
            return self._client.generate_presigned_url(
                ClientMethod="get_object",
                Params={"Bucket": bucket_name, "Key": key},
                ExpiresIn=expires_in,
                HttpMethod="GET",
            )

        try:
            return await _generate()
        except ClientError as e:
            error_msg = (
                f"Failed to generate presigned download URL: {e.response['Error']['Message']}"
            )
            logger.error(error_msg)
            raise StorageOperationError(error_msg) from e
        except BotoCoreError as e:
            error_msg = f"Storage operation error during presigned URL generation: {e}"
            logger.error(error_msg)
            raise StorageOperationError(error_msg) from e
