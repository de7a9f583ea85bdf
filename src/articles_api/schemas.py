####################################
# --- Request/response schemas --- #
####################################

from datetime import datetime
from typing import List, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
)


class PublishArticleResponse(BaseModel):
    """Response model for `POST /api/upload/article`."""
    status: str = Field(
        description="A message about the operation.",
        json_schema_extra={"example": "Posted article Hello world"},
    )
    art_id: str = Field(description="Generated 8 character article id.")
    image_url: str = Field(description="Public URL of the uploaded image.")


class ErrorResponse(BaseModel):
    """Body returned when publishing fails."""
    status: str
    reason: str

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "status": "Error! Cannot upload articles/3f1c...: AccessDenied",
                "reason": "upload_failed",
            }
        }
    )


class UploadOutcomeItem(BaseModel):
    """Outcome of one file in a bulk upload."""
    filename: str
    original_filename: str
    key: str
    ok: bool
    error: Optional[str] = None
    reason: Optional[str] = None


class BulkUploadResponse(BaseModel):
    """Response model for `POST /api/upload/images`.

    ``results`` is only filled in when the caller asked for a report.
    """
    status: str
    results: Optional[List[UploadOutcomeItem]] = None


class ListImagesResponse(BaseModel):
    """Response model for `GET /api/get/images/all`."""
    urls: List[str]
    bucket_name: str = Field(alias="bucketName")

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "urls": ["https://abc1234.sgp1.digitaloceanspaces.com/articles/0b5e1c2d"],
                "bucketName": "abc1234",
            }
        },
    )


class ArticleMetadata(BaseModel):
    """One row of the articles table."""
    art_id: str
    title: str
    email: str
    article: str
    posted: datetime
    image_url: str = Field(description="Staged file name; the object key is articles/<image_url>.")
    public_url: Optional[str] = None


class ListArticlesResponse(BaseModel):
    """Response model for `GET /api/get/articles/all`."""
    articles: List[ArticleMetadata]
    total_count: int = Field(description="Total number of articles")
