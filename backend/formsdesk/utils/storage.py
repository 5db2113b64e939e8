"""
Object storage for uploaded resumes (AWS S3, Cloudflare R2, MinIO).

Only two operations are needed: put an object under a key and get it back.
"""
from typing import Dict, NamedTuple, Optional

import boto3
from botocore.client import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

from formsdesk.config import settings
from formsdesk.exceptions import ConfigurationError, StorageError
from formsdesk.utils.logger import logger


class StoredObject(NamedTuple):
    body: bytes
    content_type: str
    metadata: Dict[str, str]

    @property
    def size(self) -> int:
        return len(self.body)


class ResumeStorage:
    """
    S3-compatible blob store.

    Usage:
        storage = ResumeStorage()
        storage.put("default/resumes/1700000000000-jane.pdf", data, "application/pdf")
        obj = storage.get("default/resumes/1700000000000-jane.pdf")
    """

    def __init__(self, bucket: Optional[str] = None, client=None):
        self.bucket = bucket or settings.S3_BUCKET
        self._client = client

    @property
    def client(self):
        if not self.bucket:
            raise ConfigurationError("Storage not configured")
        if self._client is None:
            self._client = boto3.client(
                "s3",
                endpoint_url=settings.S3_ENDPOINT_URL,
                aws_access_key_id=settings.AWS_ACCESS_KEY_ID,
                aws_secret_access_key=settings.AWS_SECRET_ACCESS_KEY,
                region_name=settings.AWS_REGION,
                config=BotoConfig(signature_version="s3v4"),
            )
        return self._client

    def put(self, key: str, body: bytes, content_type: str, metadata: Optional[Dict[str, str]] = None) -> None:
        """Store ``body`` under ``key``. Raises StorageError on failure."""
        client = self.client
        try:
            client.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=body,
                ContentType=content_type,
                Metadata=metadata or {},
            )
        except (BotoCoreError, ClientError) as exc:
            logger.error(f"[STORAGE] Upload failed for '{key}': {exc}")
            raise StorageError("Failed to upload file") from exc
        logger.info(f"[STORAGE] Uploaded '{key}' ({len(body)} bytes)")

    def get(self, key: str) -> Optional[StoredObject]:
        """Fetch the object stored under ``key``, or None if there is none"""
        client = self.client
        try:
            response = client.get_object(Bucket=self.bucket, Key=key)
        except ClientError as exc:
            code = exc.response.get("Error", {}).get("Code")
            if code in ("NoSuchKey", "404", "NotFound"):
                return None
            logger.error(f"[STORAGE] Download failed for '{key}': {exc}")
            raise StorageError("Failed to read file") from exc
        except BotoCoreError as exc:
            logger.error(f"[STORAGE] Download failed for '{key}': {exc}")
            raise StorageError("Failed to read file") from exc

        return StoredObject(
            body=response["Body"].read(),
            content_type=response.get("ContentType") or "application/octet-stream",
            metadata=response.get("Metadata") or {},
        )
