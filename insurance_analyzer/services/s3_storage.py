"""
S3 storage service for uploading and fetching policy files.
"""
import logging
from typing import Dict, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from insurance_analyzer.config import settings

logger = logging.getLogger(__name__)

_client = None


class StorageError(Exception):
    """Raised when an object storage call fails."""
    pass


def _get_client():
    """Lazy-initialize the S3 client."""
    global _client
    if _client is None:
        if not settings.AWS_ACCESS_KEY_ID or not settings.AWS_SECRET_ACCESS_KEY:
            raise RuntimeError(
                "AWS_ACCESS_KEY_ID and AWS_SECRET_ACCESS_KEY must be set in .env"
            )
        _client = boto3.client(
            "s3",
            region_name=settings.AWS_REGION,
            aws_access_key_id=settings.AWS_ACCESS_KEY_ID,
            aws_secret_access_key=settings.AWS_SECRET_ACCESS_KEY,
        )
        logger.info(f"S3 client initialized for region {settings.AWS_REGION}")
    return _client


def default_bucket() -> str:
    if not settings.S3_BUCKET_NAME:
        raise RuntimeError("S3_BUCKET_NAME must be set in .env")
    return settings.S3_BUCKET_NAME


def upload_file(
    file_bytes: bytes,
    key: str,
    content_type: str = "application/octet-stream",
    metadata: Optional[Dict[str, str]] = None,
    bucket: Optional[str] = None,
) -> str:
    """
    Upload a file to S3 (PutObject).

    Args:
        file_bytes: Raw file content.
        key: Object key inside the bucket, e.g. "policies/<user>/<id>/file.pdf".
        content_type: MIME type of the file.
        metadata: User metadata stored alongside the object.
        bucket: Override bucket name (defaults to settings.S3_BUCKET_NAME).

    Returns:
        The object key of the uploaded file.
    """
    bucket_name = bucket or default_bucket()
    try:
        _get_client().put_object(
            Bucket=bucket_name,
            Key=key,
            Body=file_bytes,
            ContentType=content_type,
            Metadata=metadata or {},
        )
    except (BotoCoreError, ClientError) as e:
        raise StorageError(f"PutObject failed for {key}: {e}") from e

    logger.info(f"Uploaded {key} to bucket '{bucket_name}' ({len(file_bytes)} bytes)")
    return key


def download_file(key: str, bucket: Optional[str] = None) -> bytes:
    """Fetch an object's bytes from S3 (GetObject)."""
    bucket_name = bucket or default_bucket()
    try:
        response = _get_client().get_object(Bucket=bucket_name, Key=key)
        body = response.get("Body")
        if body is None:
            raise StorageError(f"Empty body returned for {key}")
        data = body.read()
    except (BotoCoreError, ClientError) as e:
        raise StorageError(f"GetObject failed for {key}: {e}") from e

    logger.info(f"Downloaded {key} from bucket '{bucket_name}' ({len(data)} bytes)")
    return data


def get_signed_url(key: str, expires_in: Optional[int] = None, bucket: Optional[str] = None) -> str:
    """Get a presigned (temporary) GET URL for an object."""
    bucket_name = bucket or default_bucket()
    try:
        return _get_client().generate_presigned_url(
            "get_object",
            Params={"Bucket": bucket_name, "Key": key},
            ExpiresIn=expires_in or settings.S3_PRESIGNED_URL_EXPIRES,
        )
    except (BotoCoreError, ClientError) as e:
        raise StorageError(f"Could not presign {key}: {e}") from e
