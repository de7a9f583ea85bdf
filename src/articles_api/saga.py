"""
Publication saga: one article row in SQLite, one attachment in the object store.

The two backends share no transaction coordinator, so the saga keeps them in
agreement itself. The row is inserted inside an open transaction, the
attachment is uploaded, and only an acknowledged upload lets the transaction
commit. Any failure before the commit rolls the row back.

    STARTED ──insert──▶ INSERTED ──upload──▶ UPLOADED ──commit──▶ COMMITTED ──▶ CLEANED
       │                   │                    │
       └───────────────────┴────────────────────┴──▶ ROLLED_BACK

A commit that fails after a successful upload leaves an orphaned object in
the bucket with no row pointing at it. That is the one window in which the
two stores disagree.

SQLite allows one writer at a time, and the insert holds the write lock until
commit or rollback, upload included. Concurrent publishes therefore run one
after another at the insert. A publish that waits longer than the pool's
busy timeout fails with ``ResourceExhausted`` and leaves no row behind.
"""

import logging
import sqlite3
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING, Callable, Dict, List, Optional

from botocore.exceptions import BotoCoreError, ClientError

from articles_api.database.local import INSERT_NEW_ARTICLE
from articles_api.database.pool import ConnectionPool
from articles_api.database.transaction import Transaction
from articles_api.errors import (
    InsertError,
    PublicationError,
    ResourceExhausted,
    TransactionError,
    UploadError,
)
from articles_api.s3.read_objects import public_object_url
from articles_api.s3.write_objects import build_upload_metadata, upload_s3_object
from articles_api.staging import StagedFile
from articles_api.utils.decorators import log_execution_time

if TYPE_CHECKING:
    from mypy_boto3_s3 import S3Client

logger = logging.getLogger(__name__)

ARTICLES_FOLDER = "articles/"
ART_ID_LENGTH = 8


class SagaState(str, Enum):
    STARTED = "started"
    INSERTED = "inserted"
    UPLOADED = "uploaded"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"
    CLEANED = "cleaned"


# Failure state -> compensating action. States not listed need no compensation.
COMPENSATIONS: Dict[SagaState, Callable[[Transaction], None]] = {
    SagaState.STARTED: Transaction.rollback,   # insert failed
    SagaState.INSERTED: Transaction.rollback,  # staged read or upload failed
    SagaState.UPLOADED: Transaction.rollback,  # commit failed
}


def generate_art_id() -> str:
    # uuid4 strings look like e0c0dc15-6194-...; the first block is 8 hex chars
    return str(uuid.uuid4())[:ART_ID_LENGTH]


def is_lock_contention(err: sqlite3.OperationalError) -> bool:
    # SQLITE_BUSY and SQLITE_LOCKED surface with these messages
    message = str(err).lower()
    return "database is locked" in message or "database table is locked" in message or "busy" in message


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class ArticleDraft:
    """What the client submits alongside the attachment."""
    title: str
    email: str
    article: str


@dataclass
class SagaRun:
    """Progress of one publish call."""
    correlation_id: str
    state: Optional[SagaState] = None
    history: List[SagaState] = field(default_factory=list)

    def advance(self, state: SagaState) -> None:
        logger.debug(f"[{self.correlation_id}] {self.state.value if self.state else 'new'} -> {state.value}")
        self.state = state
        self.history.append(state)


@dataclass
class PublishedArticle:
    art_id: str
    title: str
    image_url: str
    key: str
    locator: str
    posted: datetime
    history: List[SagaState] = field(default_factory=list)

    @property
    def message(self) -> str:
        return f"Posted article {self.title}"


def describe_publish(saga: "PublicationSaga", draft: ArticleDraft, staged: StagedFile) -> str:
    return f"publish of '{draft.title}' with image {staged.filename}"


class PublicationSaga:
    """Publishes an article row and its image as a single unit."""

    def __init__(
        self,
        pool: ConnectionPool,
        s3_client: "S3Client",
        bucket_name: str,
        public_domain: str,
        cleanup_on_failure: bool = False,
        id_factory: Callable[[], str] = generate_art_id,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.pool = pool
        self.s3_client = s3_client
        self.bucket_name = bucket_name
        self.public_domain = public_domain
        # Off by default: a failed publish leaves its staged file behind
        self.cleanup_on_failure = cleanup_on_failure
        self.id_factory = id_factory
        self.clock = clock

    @log_execution_time(describe=describe_publish)
    def publish(self, draft: ArticleDraft, staged: StagedFile) -> PublishedArticle:
        """
        Insert the article and upload its image, committing only if both succeed.

        Raises a ``PublicationError`` subclass once the row has been rolled
        back. The pooled connection is released exactly once on every path.
        """
        try:
            conn = self.pool.get_connection()
        except ResourceExhausted:
            # Nothing was started, so there is no connection to give back
            if self.cleanup_on_failure:
                self._release_staged(SagaRun(correlation_id="no-connection"), staged)
            raise
        try:
            return self._run(conn, draft, staged)
        finally:
            self.pool.release(conn)

    def _run(self, conn: sqlite3.Connection, draft: ArticleDraft, staged: StagedFile) -> PublishedArticle:
        txn = Transaction(conn)
        run = SagaRun(correlation_id=txn.correlation_id)
        art_id = self.id_factory()
        key = f"{ARTICLES_FOLDER}{staged.filename}"

        try:
            txn.begin()
            run.advance(SagaState.STARTED)

            posted = self.clock()
            self._insert(txn, art_id, draft, posted, staged)
            run.advance(SagaState.INSERTED)

            self._upload(key, staged)
            run.advance(SagaState.UPLOADED)

            txn.commit()
            run.advance(SagaState.COMMITTED)
        except Exception as err:
            failure = self._compensate(run, txn, err)
            if self.cleanup_on_failure:
                self._release_staged(run, staged)
            failure.art_id = art_id
            failure.history = list(run.history)
            logger.error(f"[{run.correlation_id}] publish of '{draft.title}' failed: {failure.reason}")
            if failure is err:
                raise
            raise failure from err

        self._release_staged(run, staged)
        logger.info(f"[{run.correlation_id}] published article {art_id} with image {key}")
        return PublishedArticle(
            art_id=art_id,
            title=draft.title,
            image_url=staged.filename,
            key=key,
            locator=public_object_url(self.bucket_name, self.public_domain, key),
            posted=posted,
            history=list(run.history),
        )

    def _insert(
        self,
        txn: Transaction,
        art_id: str,
        draft: ArticleDraft,
        posted: datetime,
        staged: StagedFile,
    ) -> None:
        params = (art_id, draft.title, draft.email, draft.article, posted.isoformat(), staged.filename)
        try:
            txn.execute(INSERT_NEW_ARTICLE, params)
        except sqlite3.OperationalError as e:
            if is_lock_contention(e):
                raise ResourceExhausted(f"Database is busy with another publish: {e}") from e
            raise InsertError(f"Cannot insert article: {e}") from e
        except sqlite3.Error as e:
            raise InsertError(f"Cannot insert article: {e}") from e

    def _upload(self, key: str, staged: StagedFile) -> None:
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

    def _compensate(self, run: SagaRun, txn: Transaction, err: Exception) -> PublicationError:
        """Run the compensating action for the state the saga failed in."""
        failure = err if isinstance(err, PublicationError) else TransactionError(f"Unexpected failure: {err}")
        action = COMPENSATIONS.get(run.state)
        if action is None:
            return failure
        try:
            action(txn)
        except TransactionError as rollback_err:
            logger.error(f"[{run.correlation_id}] rollback failed after {failure.reason}: {rollback_err}")
            return rollback_err
        run.advance(SagaState.ROLLED_BACK)
        logger.warning(f"[{run.correlation_id}] rolled back after {failure.reason}")
        return failure

    def _release_staged(self, run: SagaRun, staged: StagedFile) -> None:
        try:
            staged.release()
        except OSError as e:
            logger.warning(f"[{run.correlation_id}] could not delete staged file {staged.path}: {e}")
            return
        run.advance(SagaState.CLEANED)
