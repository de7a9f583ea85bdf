"""
Best-effort upload of many images to the ``miscimages/`` folder.

There is no database row behind these uploads and therefore nothing to
commit or roll back. Every item is read, uploaded and deleted from staging on
its own; a failing item is logged and recorded, and never stops the others.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import TYPE_CHECKING, List, Optional, Sequence

from botocore.exceptions import BotoCoreError, ClientError

from articles_api.errors import PublicationError, UploadError
from articles_api.s3.write_objects import build_upload_metadata, upload_s3_object
from articles_api.staging import StagedFile

if TYPE_CHECKING:
    from mypy_boto3_s3 import S3Client

logger = logging.getLogger(__name__)

MISC_IMAGES_FOLDER = "miscimages/"


@dataclass
class UploadOutcome:
    filename: str
    original_filename: str
    key: str
    ok: bool
    error: Optional[str] = None
    reason: Optional[str] = None


class BulkUploader:
    """Uploads independent attachments without any relational counterpart."""

    def __init__(self, s3_client: "S3Client", bucket_name: str, max_workers: int = 4):
        self.s3_client = s3_client
        self.bucket_name = bucket_name
        self.max_workers = max_workers

    def upload_all(self, staged_files: Sequence[StagedFile]) -> List[UploadOutcome]:
        """Upload every staged file; outcomes come back in input order."""
        if not staged_files:
            return []
        logger.info(f"Uploading {len(staged_files)} file(s) to {self.bucket_name}/{MISC_IMAGES_FOLDER}")
        with ThreadPoolExecutor(max_workers=min(self.max_workers, len(staged_files))) as executor:
            outcomes = list(executor.map(self.upload_one, staged_files))
        failed = sum(1 for outcome in outcomes if not outcome.ok)
        if failed:
            logger.warning(f"{failed}/{len(outcomes)} bulk upload item(s) failed")
        return outcomes

    def upload_one(self, staged: StagedFile) -> UploadOutcome:
        key = f"{MISC_IMAGES_FOLDER}{staged.filename}"
        try:
            body = staged.read_bytes()
            try:
                upload_s3_object(
                    bucket_name=self.bucket_name,
                    object_key=key,
                    file_content=body,
                    s3_client=self.s3_client,
                    content_type=staged.content_type,
                    content_length=staged.size,
                    metadata=build_upload_metadata(staged.original_filename),
                )
            except (BotoCoreError, ClientError) as e:
                raise UploadError(f"Cannot upload {key}: {e}") from e
        except Exception as e:
            # Unexpected errors are recorded per item as well; nothing escapes to the batch
            reason = e.reason if isinstance(e, PublicationError) else UploadError.reason
            logger.error(f"Bulk upload of {staged.original_filename} failed: {e}")
            outcome = UploadOutcome(
                filename=staged.filename,
                original_filename=staged.original_filename,
                key=key,
                ok=False,
                error=str(e),
                reason=reason,
            )
        else:
            logger.debug(f"Uploaded {key}")
            outcome = UploadOutcome(
                filename=staged.filename,
                original_filename=staged.original_filename,
                key=key,
                ok=True,
            )
        finally:
            try:
                staged.release()
            except OSError as e:
                logger.warning(f"Could not delete staged file {staged.path}: {e}")
        return outcome
