from articles_api.settings import Settings


def test_settings__defaults(monkeypatch):
    monkeypatch.delenv("AWS_ENDPOINT_URL", raising=False)
    settings = Settings(_env_file=None)

    assert settings.s3_bucket_name == "abc1234"
    assert settings.db_pool_size == 4
    assert settings.db_busy_timeout == 5.0
    assert settings.list_max_keys == 99
    assert settings.cleanup_staged_on_failure is False
    assert settings.aws_endpoint_url == "https://sgp1.digitaloceanspaces.com"
    assert settings.public_base_url == "https://abc1234.sgp1.digitaloceanspaces.com"


def test_settings__env_aliases(monkeypatch):
    monkeypatch.setenv("S3_ACCESS_KEY", "key")
    monkeypatch.setenv("S3_SECRET_KEY", "secret")
    monkeypatch.setenv("APP_PORT", "8080")
    monkeypatch.setenv("LOG_LEVEL", "debug")
    monkeypatch.setenv("CLEANUP_STAGED_ON_FAILURE", "true")
    monkeypatch.setenv("DB_BUSY_TIMEOUT", "0.5")

    settings = Settings(_env_file=None)

    assert settings.aws_access_key_id == "key"
    assert settings.aws_secret_access_key == "secret"
    assert settings.app_port == 8080
    assert settings.log_level == "DEBUG"
    assert settings.cleanup_staged_on_failure is True
    assert settings.db_busy_timeout == 0.5
