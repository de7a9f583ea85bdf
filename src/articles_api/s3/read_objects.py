"""Functions for reading objects from an S3 bucket--the "R" in CRUD."""

from typing import TYPE_CHECKING, Any, Dict

from botocore.exceptions import ClientError

if TYPE_CHECKING:
    from mypy_boto3_s3 import S3Client

DEFAULT_MAX_KEYS = 99


def list_s3_objects(
    bucket_name: str,
    s3_client: "S3Client",
    max_keys: int = DEFAULT_MAX_KEYS,
) -> Dict[str, Any]:
    """
    List objects in a bucket with a single call; no pagination.

    :param bucket_name: The name of the S3 bucket.
    :param s3_client: The boto3 S3 client.
    :param max_keys: Upper bound on the number of keys returned.

    :return: ``{"name": <bucket name>, "entries": [{"key", "size", "last_modified"}, ...]}``
    """
    response = s3_client.list_objects(Bucket=bucket_name, MaxKeys=max_keys)
    entries = [
        {
            "key": obj["Key"],
            "size": obj.get("Size"),
            "last_modified": obj.get("LastModified"),
        }
        for obj in response.get("Contents", [])
    ]
    return {"name": response.get("Name", bucket_name), "entries": entries}


def object_exists_in_s3(bucket_name: str, object_key: str, s3_client: "S3Client") -> bool:
    """
    Check if an object exists in the S3 bucket using head_object.

    :param bucket_name: Name of the S3 bucket.
    :param object_key: Key of the object to check.
    :param s3_client: The boto3 S3 client.

    :return: True if the object exists, False otherwise.
    """
    try:
        s3_client.head_object(Bucket=bucket_name, Key=object_key)
        return True
    except ClientError as err:
        error_code = err.response.get("Error", {}).get("Code")
        if error_code in ("404", "NoSuchKey", "NotFound"):
            return False
        raise


def public_object_url(bucket_name: str, public_domain: str, object_key: str) -> str:
    """Public URL of a public-read object, e.g. https://abc1234.sgp1.digitaloceanspaces.com/articles/x."""
    return f"https://{bucket_name}.{public_domain}/{object_key}"
