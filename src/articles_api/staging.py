"""
Local staging of uploaded payloads.

Uploaded files are copied into the staging directory under a random name
before the publication core runs. The core owns a staged file for the
duration of one operation and is responsible for deleting it.
"""

import logging
import shutil
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import BinaryIO, Optional

from articles_api.errors import StageReadError

logger = logging.getLogger(__name__)


@dataclass
class StagedFile:
    """An uploaded payload sitting in the staging directory."""

    path: Path
    filename: str
    original_filename: str
    content_type: str
    size: int
    released: bool = field(default=False, compare=False)

    def read_bytes(self) -> bytes:
        try:
            return self.path.read_bytes()
        except OSError as e:
            raise StageReadError(f"Cannot read staged file {self.filename}: {e}") from e

    def release(self) -> None:
        """Delete the staged file. Only the first call touches the filesystem."""
        if self.released:
            logger.debug(f"Staged file {self.filename} already released")
            return
        self.released = True
        self.path.unlink(missing_ok=True)
        logger.debug(f"Released staged file {self.path}")

    @property
    def exists(self) -> bool:
        return self.path.exists()


def generate_staged_name() -> str:
    """Random 32-hex-char name, the same shape multipart middlewares use."""
    return uuid.uuid4().hex


def stage_stream(
    stream: BinaryIO,
    staging_dir: str | Path,
    original_filename: Optional[str],
    content_type: Optional[str],
) -> StagedFile:
    """Copy an upload stream into the staging directory."""
    staging_dir = Path(staging_dir)
    staging_dir.mkdir(parents=True, exist_ok=True)

    filename = generate_staged_name()
    path = staging_dir / filename
    with open(path, "wb") as out:
        shutil.copyfileobj(stream, out)

    staged = StagedFile(
        path=path,
        filename=filename,
        original_filename=original_filename or filename,
        content_type=content_type or "application/octet-stream",
        size=path.stat().st_size,
    )
    logger.debug(f"Staged {staged.original_filename} as {path} ({staged.size} bytes)")
    return staged


def stage_bytes(
    content: bytes,
    staging_dir: str | Path,
    original_filename: str,
    content_type: str = "application/octet-stream",
) -> StagedFile:
    """Stage an in-memory payload; used by the CLI and tests."""
    staging_dir = Path(staging_dir)
    staging_dir.mkdir(parents=True, exist_ok=True)

    filename = generate_staged_name()
    path = staging_dir / filename
    path.write_bytes(content)
    return StagedFile(
        path=path,
        filename=filename,
        original_filename=original_filename,
        content_type=content_type,
        size=len(content),
    )
