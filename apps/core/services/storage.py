# apps/core/services/storage.py
"""
Image Storage

S3 compatible object storage for room and service images.
"""

import uuid
import logging
import mimetypes
import os
from typing import Dict

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from django.conf import settings

logger = logging.getLogger(__name__)

ALLOWED_IMAGE_TYPES = ('image/jpeg', 'image/png', 'image/gif', 'image/webp')


class ImageStorage:
    """
    S3 image store.

    Provides:
    - Upload under a folder with a generated key
    - Delete by public id (the object key)
    """

    def __init__(self, client=None, bucket_name: str = None, public_base_url: str = None):
        self.client = client or boto3.client(
            's3',
            endpoint_url=settings.AWS_S3_ENDPOINT_URL,
            aws_access_key_id=settings.AWS_ACCESS_KEY_ID,
            aws_secret_access_key=settings.AWS_SECRET_ACCESS_KEY,
            region_name=settings.AWS_S3_REGION_NAME,
        )
        self.bucket_name = bucket_name or settings.AWS_STORAGE_BUCKET_NAME
        self.public_base_url = (public_base_url or settings.IMAGE_PUBLIC_BASE_URL).rstrip('/')

    def upload(self, content: bytes, folder: str, filename: str) -> Dict[str, str]:
        """
        Upload image bytes.

        Args:
            content: Raw image bytes
            folder: Key prefix, e.g. ``rooms/12``
            filename: Original file name (only its extension is kept)

        Returns:
            Dict with ``url`` and ``public_id``
        """
        from .exceptions import StorageError

        extension = os.path.splitext(filename or '')[1].lower()
        content_type = mimetypes.guess_type(f"file{extension}")[0] or 'application/octet-stream'
        if content_type not in ALLOWED_IMAGE_TYPES:
            raise StorageError(f"Unsupported image type: {extension or 'unknown'}")

        public_id = f"{folder.strip('/')}/{uuid.uuid4().hex}{extension}"
        try:
            self.client.put_object(
                Bucket=self.bucket_name,
                Key=public_id,
                Body=content,
                ContentType=content_type,
            )
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Upload failed for {public_id}: {e}")
            raise StorageError("Failed to upload image")

        logger.info(f"Uploaded image to {public_id}, size: {len(content)} bytes")
        return {
            'url': f"{self.public_base_url}/{public_id}",
            'public_id': public_id,
        }

    def delete(self, public_id: str) -> None:
        from .exceptions import StorageError

        try:
            self.client.delete_object(Bucket=self.bucket_name, Key=public_id)
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Delete failed for {public_id}: {e}")
            raise StorageError("Failed to delete image")

        logger.info(f"Deleted image {public_id}")
