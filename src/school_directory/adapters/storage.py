"""
Image storage adapters.

Both implementations expose the same capability: store image bytes under a
collision-resistant name and hand back a reference the database can keep.
The local store returns a bare filename; the S3 store returns a public URL.
"""

import logging
import os
import re
import time
from pathlib import Path
from typing import Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from school_directory.config.settings import Settings
from school_directory.errors import StorageError
from school_directory.s3.write_objects import build_public_url, upload_s3_object

logger = logging.getLogger(__name__)

CONTENT_TYPE_EXTENSIONS = {
    "image/jpeg": ".jpg",
    "image/jpg": ".jpg",
    "image/png": ".png",
}

_UNSAFE_CHARACTERS = re.compile(r"[^a-zA-Z0-9]")


def sanitize_name(name: str) -> str:
    """Replace every non-alphanumeric character with an underscore."""
    return _UNSAFE_CHARACTERS.sub("_", name)


def build_image_filename(name: str, extension: str, now: Optional[float] = None) -> str:
    """Collision-resistant filename: ``{epoch_millis}_{sanitized_name}{extension}``."""
    timestamp = int((time.time() if now is None else now) * 1000)
    if extension and not extension.startswith("."):
        extension = f".{extension}"
    return f"{timestamp}_{sanitize_name(name)}{extension.lower()}"


def image_extension(filename: str, content_type: Optional[str] = None) -> str:
    """Extension of the uploaded file, falling back to one implied by its content type."""
    extension = os.path.splitext(filename or "")[1]
    if extension:
        return extension.lower()
    return CONTENT_TYPE_EXTENSIONS.get((content_type or "").lower(), "")


class BaseImageStore:
    """Base class for image storage (to be extended by specific implementations)"""
    backend = "base"

    def store(self, content: bytes, name: str, extension: str, content_type: Optional[str] = None) -> str:
        """Persist ``content`` and return its reference.

        Raises:
            StorageError: if the bytes could not be written.
        """
        raise NotImplementedError

    def discard(self, reference: str) -> bool:
        """Remove a stored image after a failed insert.

        Returns False when this store cannot undo an upload.
        """
        return False


class LocalImageStore(BaseImageStore):
    """Writes images under a fixed upload directory, created on demand."""
    backend = "local"

    def __init__(self, upload_dir: str):
        self.upload_dir = Path(upload_dir)
        logger.info("LocalImageStore initialized at: %s", self.upload_dir)

    def path_for(self, reference: str) -> Path:
        return self.upload_dir / reference

    def store(self, content: bytes, name: str, extension: str, content_type: Optional[str] = None) -> str:
        filename = build_image_filename(name, extension)
        try:
            self.upload_dir.mkdir(parents=True, exist_ok=True)
            self.path_for(filename).write_bytes(content)
        except OSError as e:
            logger.error("Error writing image %s: %s", filename, str(e))
            raise StorageError(f"Failed to store image: {e}") from e

        logger.info("Stored image at %s", self.path_for(filename))
        return filename

    def discard(self, reference: str) -> bool:
        path = self.path_for(reference)
        try:
            path.unlink()
        except FileNotFoundError:
            logger.warning("Image %s already gone during cleanup", path)
        except OSError as e:
            logger.error("Could not remove image %s during cleanup: %s", path, str(e))
            return False
        else:
            logger.info("Removed image %s after failed insert", path)
        return True


class S3ImageStore(BaseImageStore):
    """Uploads images to an S3 bucket under a folder prefix and returns their public URL."""
    backend = "s3"

    def __init__(
        self,
        bucket_name: str,
        folder: str = "schoolImages",
        s3_client=None,
        region: str = "us-east-1",
        endpoint_url: Optional[str] = None,
    ):
        self.bucket_name = bucket_name
        self.folder = folder.strip("/")
        self.s3_client = s3_client or boto3.client("s3", region_name=region, endpoint_url=endpoint_url)
        self.region = region
        self.endpoint_url = endpoint_url

        logger.info(f"S3ImageStore initialized")
        logger.info(f"  Bucket: {self.bucket_name}")
        logger.info(f"  Folder: {self.folder}")
        logger.info(f"  Endpoint: {self.endpoint_url}")

    def object_key(self, filename: str) -> str:
        return f"{self.folder}/{filename}" if self.folder else filename

    def store(self, content: bytes, name: str, extension: str, content_type: Optional[str] = None) -> str:
        key = self.object_key(build_image_filename(name, extension))
        try:
            upload_s3_object(
                bucket_name=self.bucket_name,
                object_key=key,
                file_content=content,
                content_type=content_type,
                s3_client=self.s3_client,
            )
        except (BotoCoreError, ClientError) as e:
            logger.error(f"Error uploading {key} to S3: {str(e)}")
            raise StorageError(f"Failed to upload image: {e}") from e

        url = build_public_url(self.bucket_name, key, region=self.region, endpoint_url=self.endpoint_url)
        logger.info(f"Uploaded image to S3 as {key}")
        return url


class ImageStoreFactory:
    """Factory to initialize the correct image store based on configuration"""

    @staticmethod
    def get_image_store(settings: Settings) -> BaseImageStore:
        logger.info(f"Creating image store for backend: {settings.storage_backend}")
        if settings.storage_backend == "s3":
            s3_client = boto3.client(
                "s3",
                endpoint_url=settings.aws_endpoint_url,
                aws_access_key_id=settings.aws_access_key_id,
                aws_secret_access_key=settings.aws_secret_access_key,
                region_name=settings.aws_region,
            )
            return S3ImageStore(
                bucket_name=settings.s3_bucket_name,
                folder=settings.s3_folder,
                s3_client=s3_client,
                region=settings.aws_region,
                endpoint_url=settings.aws_endpoint_url,
            )

        return LocalImageStore(settings.upload_dir)
