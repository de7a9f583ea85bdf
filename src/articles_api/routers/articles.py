from typing import List, Optional

from botocore.exceptions import BotoCoreError, ClientError
from fastapi import (
    APIRouter,
    BackgroundTasks,
    File,
    Form,
    HTTPException,
    Path,
    Query,
    Request,
    Response,
    UploadFile,
    status
)
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool
from starlette.datastructures import UploadFile as StarletteUploadFile

from articles_api.bulk import BulkUploader
from articles_api.database.local import count_articles, get_article, list_articles
from articles_api.listing import list_attachments
from articles_api.saga import ARTICLES_FOLDER, ArticleDraft, PublicationSaga
from articles_api.s3.read_objects import public_object_url
from articles_api.schemas import (
    ArticleMetadata,
    BulkUploadResponse,
    ErrorResponse,
    ListArticlesResponse,
    ListImagesResponse,
    PublishArticleResponse,
    UploadOutcomeItem,
)
from articles_api.settings import Settings
from articles_api.staging import StagedFile, stage_stream

router = APIRouter()


async def _stage(upload: StarletteUploadFile, staging_dir: str) -> StagedFile:
    return await run_in_threadpool(
        stage_stream, upload.file, staging_dir, upload.filename, upload.content_type
    )


@router.post(
    "/upload/article",
    status_code=status.HTTP_201_CREATED,
    response_model=PublishArticleResponse,
    responses={
        status.HTTP_400_BAD_REQUEST: {"model": ErrorResponse},
        status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": ErrorResponse},
        status.HTTP_502_BAD_GATEWAY: {"model": ErrorResponse},
        status.HTTP_503_SERVICE_UNAVAILABLE: {"model": ErrorResponse},
    },
)
async def upload_article(
    request: Request,
    title: str = Form(..., description="Article title"),
    email: str = Form(..., description="Author contact"),
    article: str = Form(..., description="Article body"),
    image: UploadFile = File(..., alias="myImage", description="Image published with the article"),
) -> PublishArticleResponse:
    """
    Publish an article together with its image.

    The article row is committed only if the image reached the bucket; any
    failure rolls the row back and is reported with a reason tag.
    """
    settings: Settings = request.app.state.settings
    saga: PublicationSaga = request.app.state.saga

    staged = await _stage(image, settings.staging_dir)
    draft = ArticleDraft(title=title, email=email, article=article)
    published = await run_in_threadpool(saga.publish, draft, staged)

    return PublishArticleResponse(
        status=published.message,
        art_id=published.art_id,
        image_url=published.locator,
    )


@router.post("/upload/images", response_model=BulkUploadResponse)
async def upload_images(
    request: Request,
    response: Response,
    background_tasks: BackgroundTasks,
    report: Optional[bool] = Query(None, description="Wait for the uploads and report per-file outcomes"),
) -> BulkUploadResponse:
    """
    Upload any number of images to the misc images folder.

    By default the uploads run after the response is sent and the caller only
    gets an acknowledgment; individual failures are logged, not reported.
    """
    settings: Settings = request.app.state.settings
    uploader: BulkUploader = request.app.state.bulk_uploader

    form = await request.form()
    staged_files: List[StagedFile] = []
    for _, value in form.multi_items():
        if isinstance(value, StarletteUploadFile):
            staged_files.append(await _stage(value, settings.staging_dir))

    if report is None:
        report = settings.bulk_report_results

    if not report:
        background_tasks.add_task(uploader.upload_all, staged_files)
        return BulkUploadResponse(status="Files uploaded!")

    outcomes = await run_in_threadpool(uploader.upload_all, staged_files)
    if any(not outcome.ok for outcome in outcomes):
        response.status_code = status.HTTP_207_MULTI_STATUS
    return BulkUploadResponse(
        status="Files uploaded!",
        results=[UploadOutcomeItem(**vars(outcome)) for outcome in outcomes],
    )


@router.get("/get/images/all", response_model=ListImagesResponse)
async def get_all_images(request: Request):
    """Public URLs of every image in the articles folder, plus the bucket name."""
    settings: Settings = request.app.state.settings
    try:
        listing = await run_in_threadpool(
            list_attachments,
            request.app.state.s3_client,
            settings.s3_bucket_name,
            settings.spaces_domain,
            ARTICLES_FOLDER,
            settings.list_max_keys,
        )
    except (BotoCoreError, ClientError) as e:
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": str(e)},
        )
    return ListImagesResponse(urls=listing.urls, bucket_name=listing.bucket_name)


@router.get("/get/articles/all", response_model=ListArticlesResponse)
async def get_all_articles(
    request: Request,
    limit: int = Query(100, ge=1, le=1000, description="Maximum number of articles returned"),
):
    """Articles newest first."""
    pool = request.app.state.pool

    def query():
        conn = pool.get_connection()
        try:
            return list_articles(conn, limit), count_articles(conn)
        finally:
            pool.release(conn)

    rows, total = await run_in_threadpool(query)
    return ListArticlesResponse(
        articles=[_to_metadata(request, row) for row in rows],
        total_count=total,
    )


@router.get("/get/articles/{art_id}", response_model=ArticleMetadata)
async def get_one_article(
    request: Request,
    art_id: str = Path(..., min_length=1, max_length=8, description="Article id"),
):
    pool = request.app.state.pool

    def query():
        conn = pool.get_connection()
        try:
            return get_article(conn, art_id)
        finally:
            pool.release(conn)

    row = await run_in_threadpool(query)
    if row is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Article '{art_id}' not found"
        )
    return _to_metadata(request, row)


def _to_metadata(request: Request, row: dict) -> ArticleMetadata:
    settings: Settings = request.app.state.settings
    return ArticleMetadata(
        **row,
        public_url=public_object_url(
            settings.s3_bucket_name,
            settings.spaces_domain,
            f"{ARTICLES_FOLDER}{row['image_url']}",
        ),
    )
