"""Functions for writing objects to an S3 bucket--the "C" in CRUD."""

from typing import Optional

import boto3

try:
    from mypy_boto3_s3 import S3Client
except ImportError:
    ...


def build_public_url(
    bucket_name: str,
    object_key: str,
    region: str = "us-east-1",
    endpoint_url: Optional[str] = None,
) -> str:
    """
    Public URL of an object.

    :param bucket_name: The name of the S3 bucket.
    :param object_key: path to the object in the S3 bucket.
    :param region: The bucket's AWS region.
    :param endpoint_url: An S3-compatible endpoint (e.g. a local mock); path-style URLs are used for it.
    """
    if endpoint_url:
        return f"{endpoint_url.rstrip('/')}/{bucket_name}/{object_key}"
    return f"https://{bucket_name}.s3.{region}.amazonaws.com/{object_key}"


def upload_s3_object(
    bucket_name: str,
    object_key: str,
    file_content: bytes,
    content_type: Optional[str] = None,
    s3_client: Optional["S3Client"] = None,
) -> None:
    """
    Upload a file to an S3 bucket.

    :param bucket_name: The name of the S3 bucket.
    :param object_key: path to the object in the S3 bucket.
    :param file_content: The content of the file to upload.
    :param content_type: The MIME type of the file, e.g. "image/png".
    :param s3_client: An optional boto3 S3 client. If not provided, one will be created.
    """
    content_type = content_type or "application/octet-stream"
    s3_client = s3_client or boto3.client("s3")
    s3_client.put_object(
        Bucket=bucket_name,
        Key=object_key,
        Body=file_content,
        ContentType=content_type,
    )
