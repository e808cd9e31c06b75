"""Listing image storage on S3/MinIO."""

import asyncio
import logging
import uuid
from io import BytesIO
from typing import BinaryIO

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError
from PIL import Image, UnidentifiedImageError

from storeaway.config import settings
from storeaway.core.exceptions import ExternalServiceError, ValidationError

logger = logging.getLogger(__name__)


class StorageService:
    """S3/MinIO storage for listing photos."""

    ALLOWED_IMAGE_FORMATS = {"JPEG", "PNG", "WEBP"}
    MAX_IMAGE_SIZE = 10 * 1024 * 1024  # 10MB
    MAX_DIMENSIONS = (1600, 1200)

    def __init__(self) -> None:
        self._client = None
        self._bucket = settings.s3_bucket_name

    @property
    def client(self):
        """Lazy-load S3 client."""
        if self._client is None:
            config = Config(
                signature_version="s3v4",
                retries={"max_attempts": 3, "mode": "adaptive"},
            )
            self._client = boto3.client(
                "s3",
                aws_access_key_id=settings.aws_access_key_id,
                aws_secret_access_key=settings.aws_secret_access_key,
                region_name=settings.aws_region,
                endpoint_url=settings.s3_endpoint_url,  # For MinIO in dev
                config=config,
            )
        return self._client

    def public_url(self, key: str) -> str:
        if settings.s3_endpoint_url:
            # MinIO in development
            return f"{settings.s3_endpoint_url}/{self._bucket}/{key}"
        return f"https://{self._bucket}.s3.{settings.aws_region}.amazonaws.com/{key}"

    def key_from_url(self, url: str) -> str | None:
        marker = f"{self._bucket}/"
        if settings.s3_endpoint_url and marker in url:
            return url.split(marker, 1)[1]
        host = f"{self._bucket}.s3.{settings.aws_region}.amazonaws.com/"
        if host in url:
            return url.split(host, 1)[1]
        return None

    def prepare_image(self, data: bytes) -> BytesIO:
        """Validate an uploaded image and re-encode it as a bounded JPEG.

        Raises:
            ValidationError: If the file is too large or not a supported image.
        """
        if len(data) > self.MAX_IMAGE_SIZE:
            raise ValidationError(
                f"Image exceeds maximum size of {self.MAX_IMAGE_SIZE // 1024 // 1024}MB"
            )
        try:
            image = Image.open(BytesIO(data))
            image.load()
        except (UnidentifiedImageError, OSError) as e:
            raise ValidationError("File is not a valid image") from e
        if image.format not in self.ALLOWED_IMAGE_FORMATS:
            raise ValidationError(f"Unsupported image format: {image.format}")

        # JPEG has no alpha channel
        if image.mode in ("RGBA", "LA", "P"):
            image = image.convert("RGBA")
            background = Image.new("RGB", image.size, (255, 255, 255))
            background.paste(image, mask=image.split()[3])
            image = background
        elif image.mode != "RGB":
            image = image.convert("RGB")

        image.thumbnail(self.MAX_DIMENSIONS, Image.Resampling.LANCZOS)
        buffer = BytesIO()
        image.save(buffer, format="JPEG", quality=85, optimize=True)
        buffer.seek(0)
        return buffer

    async def upload_listing_image(self, file: BinaryIO, listing_id: str) -> str:
        """Upload one listing photo and return its public URL."""
        buffer = self.prepare_image(file.read())
        key = f"listings/{listing_id}/photos/{uuid.uuid4().hex[:12]}.jpg"
        try:
            await asyncio.to_thread(
                self.client.upload_fileobj,
                buffer,
                self._bucket,
                key,
                ExtraArgs={"ContentType": "image/jpeg", "ACL": "public-read"},
            )
        except (BotoCoreError, ClientError) as e:
            logger.error(f"Upload of {key} failed: {e}")
            raise ExternalServiceError("object storage") from e
        return self.public_url(key)

    async def delete_listing_images(self, listing_id: str) -> int:
        """Delete every stored photo of a listing; returns the count removed."""
        prefix = f"listings/{listing_id}/photos/"
        try:
            response = await asyncio.to_thread(
                self.client.list_objects_v2, Bucket=self._bucket, Prefix=prefix
            )
            objects = response.get("Contents", [])
            if not objects:
                return 0

            delete_keys = [{"Key": obj["Key"]} for obj in objects]
            await asyncio.to_thread(
                self.client.delete_objects,
                Bucket=self._bucket,
                Delete={"Objects": delete_keys},
            )
            return len(delete_keys)
        except (BotoCoreError, ClientError) as e:
            # The listing row is already gone; orphaned objects are harmless
            logger.warning(f"Could not delete photos under {prefix}: {e}")
            return 0


# Singleton instance
storage_service = StorageService()
