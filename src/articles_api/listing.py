"""Public URLs of the images stored under one folder of the bucket."""

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, List

from articles_api.s3.read_objects import DEFAULT_MAX_KEYS, list_s3_objects, public_object_url

if TYPE_CHECKING:
    from mypy_boto3_s3 import S3Client

logger = logging.getLogger(__name__)


@dataclass
class AttachmentListing:
    urls: List[str]
    bucket_name: str


def list_attachments(
    s3_client: "S3Client",
    bucket_name: str,
    public_domain: str,
    prefix: str = "articles/",
    max_keys: int = DEFAULT_MAX_KEYS,
) -> AttachmentListing:
    """
    List public URLs of objects under ``prefix``.

    A single list call bounded by ``max_keys`` is made against the whole
    bucket and the keys are filtered afterwards, so objects in other folders
    count towards the bound. Keys past the bound are not returned.
    """
    listing = list_s3_objects(bucket_name, s3_client=s3_client, max_keys=max_keys)
    urls = [
        public_object_url(bucket_name, public_domain, entry["key"])
        for entry in listing["entries"]
        if entry["key"].startswith(prefix)
    ]
    logger.debug(f"{len(urls)} of {len(listing['entries'])} listed key(s) are under {prefix}")
    return AttachmentListing(urls=urls, bucket_name=listing["name"])
