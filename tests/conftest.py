import os

import boto3
import pytest
from fastapi.testclient import TestClient
from moto import mock_aws

from articles_api.database.local import init_db
from articles_api.database.pool import ConnectionPool
from articles_api.main import create_app
from articles_api.settings import Settings
from tests.consts import TEST_BUCKET_NAME, TEST_REGION, TEST_SPACES_DOMAIN


@pytest.fixture
def aws_credentials(monkeypatch):
    """Fake credentials so nothing can reach a real account."""
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_SECURITY_TOKEN", "testing")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", TEST_REGION)
    monkeypatch.delenv("AWS_ENDPOINT_URL", raising=False)


@pytest.fixture
def mocked_aws(aws_credentials):
    """Moto-backed S3 client with the test bucket already created."""
    with mock_aws():
        s3_client = boto3.client("s3", region_name=TEST_REGION)
        s3_client.create_bucket(Bucket=TEST_BUCKET_NAME)
        yield s3_client


@pytest.fixture
def db_path(tmp_path) -> str:
    path = str(tmp_path / "articles.db")
    init_db(path)
    return path


@pytest.fixture
def staging_dir(tmp_path):
    path = tmp_path / "tmp"
    path.mkdir()
    return path


@pytest.fixture
def pool(db_path):
    pool = ConnectionPool(db_path, max_connections=4)
    yield pool
    pool.close()


@pytest.fixture
def settings(tmp_path, db_path, staging_dir) -> Settings:
    return Settings(
        _env_file=None,
        database_path=db_path,
        staging_dir=str(staging_dir),
        static_dir=str(tmp_path / "public"),
        s3_bucket_name=TEST_BUCKET_NAME,
        spaces_domain=TEST_SPACES_DOMAIN,
        aws_region=TEST_REGION,
    )


@pytest.fixture
def client(settings, mocked_aws):
    app = create_app(settings, s3_client=mocked_aws)
    with TestClient(app) as client:
        yield client
