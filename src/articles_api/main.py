from contextlib import asynccontextmanager
from pathlib import Path
from textwrap import dedent
import logging
import pydantic
from fastapi import FastAPI
from fastapi.routing import APIRoute
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from articles_api.adapters.storage import create_s3_client
from articles_api.bulk import BulkUploader
from articles_api.database.local import init_db
from articles_api.database.pool import ConnectionPool
from articles_api.errors import (
    PublicationError,
    handle_broad_exceptions,
    handle_publication_errors,
    handle_pydantic_validation_errors,
)
from articles_api.routers.articles import router as articles_router
from articles_api.routers.health import router as health_router
from articles_api.saga import PublicationSaga
from articles_api.settings import Settings
from articles_api.utils.logging_utils import configure_logging, log_requests

# Set up logging
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Refuse to start without a reachable database; drain the pool on shutdown."""
    settings: Settings = app.state.settings
    pool: ConnectionPool = app.state.pool
    try:
        pool.ping()
    except Exception as e:
        logger.error(f"Cannot ping database {settings.database_path}: {e}")
        raise
    logger.info(
        f"Application started: bucket={settings.s3_bucket_name} "
        f"db={settings.database_path} pool_size={settings.db_pool_size}"
    )
    yield
    pool.close()


def create_app(settings: Settings | None = None, s3_client=None) -> FastAPI:
    """Create a FastAPI application.

    ``s3_client`` replaces the client built from settings, e.g. in tests.
    """
    settings = settings or Settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="Articles API",
        summary="Publish articles with images stored in object storage",
        version="v1",
        description=dedent(
            """\
        Articles are written to SQLite and their images to a Spaces/S3 bucket.
        An article is only committed once its image upload has been acknowledged.

        | Endpoint | Notes |
        | --- | --- |
        | `POST /api/upload/article` | article + image, all or nothing |
        | `POST /api/upload/images` | many images, best effort |
        | `GET /api/get/images/all` | public URLs of article images |
        """
        ),
        docs_url="/docs",
        generate_unique_id_function=custom_generate_unique_id,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    logger.info("creating db")
    init_db(settings.database_path)
    Path(settings.staging_dir).mkdir(parents=True, exist_ok=True)

    pool = ConnectionPool(
        settings.database_path,
        max_connections=settings.db_pool_size,
        busy_timeout=settings.db_busy_timeout,
    )
    if s3_client is None:
        s3_client = create_s3_client(settings)

    app.state.settings = settings
    app.state.pool = pool
    app.state.s3_client = s3_client
    app.state.saga = PublicationSaga(
        pool=pool,
        s3_client=s3_client,
        bucket_name=settings.s3_bucket_name,
        public_domain=settings.spaces_domain,
        cleanup_on_failure=settings.cleanup_staged_on_failure,
    )
    app.state.bulk_uploader = BulkUploader(
        s3_client=s3_client,
        bucket_name=settings.s3_bucket_name,
        max_workers=settings.bulk_max_workers,
    )

    app.include_router(articles_router, prefix="/api", tags=["articles"])
    app.include_router(health_router, tags=["health"])

    app.add_exception_handler(
        exc_class_or_status_code=PublicationError,
        handler=handle_publication_errors,
    )
    app.add_exception_handler(
        exc_class_or_status_code=pydantic.ValidationError,
        handler=handle_pydantic_validation_errors,
    )
    app.middleware("http")(handle_broad_exceptions)
    app.middleware("http")(log_requests)

    # Mounted last so the API routes take precedence
    if Path(settings.static_dir).is_dir():
        app.mount("/", StaticFiles(directory=settings.static_dir, html=True), name="static")

    return app


def custom_generate_unique_id(route: APIRoute):
    """
    Generate prettier `operationId`s in the OpenAPI schema.

    These become the function names in generated client SDKs.
    """
    return f"{route.tags[0]}-{route.name}"


if __name__ == "__main__":
    import uvicorn

    app = create_app()
    uvicorn.run(app, host="0.0.0.0", port=app.state.settings.app_port)
