"""Functions for writing objects to an S3 bucket--the "C" in CRUD."""

import time
from typing import TYPE_CHECKING, Dict, Optional

if TYPE_CHECKING:
    from mypy_boto3_s3 import S3Client

PUBLIC_READ = "public-read"


def build_upload_metadata(original_filename: str, uploaded_at_ms: Optional[int] = None) -> Dict[str, str]:
    """
    Metadata stored alongside every attachment.

    :param original_filename: The filename the client uploaded.
    :param uploaded_at_ms: Upload time as epoch milliseconds; now if not given.
    """
    if uploaded_at_ms is None:
        uploaded_at_ms = int(time.time() * 1000)
    return {
        "originalName": original_filename,
        "update": str(uploaded_at_ms),
    }


def upload_s3_object(
    bucket_name: str,
    object_key: str,
    file_content: bytes,
    s3_client: "S3Client",
    content_type: Optional[str] = None,
    content_length: Optional[int] = None,
    metadata: Optional[Dict[str, str]] = None,
    acl: str = PUBLIC_READ,
) -> None:
    """
    Upload a file to an S3 bucket.

    :param bucket_name: The name of the S3 bucket.
    :param object_key: path to the object in the S3 bucket.
    :param file_content: The content of the file to upload.
    :param s3_client: The boto3 S3 client to upload with.
    :param content_type: The MIME type of the file, e.g. "image/png".
    :param content_length: Size of the body in bytes; defaults to ``len(file_content)``.
    :param metadata: User metadata stored with the object.
    :param acl: Canned ACL, public-read unless told otherwise.
    """
    content_type = content_type or "application/octet-stream"
    if content_length is None:
        content_length = len(file_content)
    s3_client.put_object(
        Bucket=bucket_name,
        Key=object_key,
        Body=file_content,
        ACL=acl,
        ContentType=content_type,
        ContentLength=content_length,
        Metadata=metadata or {},
    )
