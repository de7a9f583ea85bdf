"""
Object store client factory.

DigitalOcean Spaces speaks the S3 API, so a plain boto3 S3 client pointed at
the Spaces endpoint is all the service needs. The client is created once at
startup and shared by every request.
"""

import logging
from typing import TYPE_CHECKING, Optional

import boto3

from articles_api.settings import Settings

if TYPE_CHECKING:
    from mypy_boto3_s3 import S3Client

logger = logging.getLogger(__name__)


def create_s3_client(settings: Settings, endpoint_url: Optional[str] = None) -> "S3Client":
    """Build the process-wide S3 client from settings."""
    client_kwargs = {
        'region_name': settings.aws_region,
        'endpoint_url': endpoint_url or settings.aws_endpoint_url,
    }

    # Fall back to the default credential chain when no keys are configured
    if settings.aws_access_key_id:
        client_kwargs['aws_access_key_id'] = settings.aws_access_key_id
    if settings.aws_secret_access_key:
        client_kwargs['aws_secret_access_key'] = settings.aws_secret_access_key

    client = boto3.client('s3', **client_kwargs)
    logger.info(f"Created S3 client for endpoint {client_kwargs['endpoint_url']}")
    return client
