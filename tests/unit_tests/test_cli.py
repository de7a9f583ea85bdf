import sqlite3

from click.testing import CliRunner

from articles_api.cli import cli
from articles_api.settings import get_settings


def test_init_db_command(tmp_path):
    db_path = tmp_path / "cli.db"

    result = CliRunner().invoke(cli, ["init-db", "--db-path", str(db_path)])

    assert result.exit_code == 0
    conn = sqlite3.connect(db_path)
    assert conn.execute("SELECT name FROM sqlite_master WHERE name='articles'").fetchone()
    conn.close()


def test_show_config_command(monkeypatch):
    monkeypatch.setenv("S3_BUCKET_NAME", "cli-bucket")
    get_settings.cache_clear()

    result = CliRunner().invoke(cli, ["show-config"])

    get_settings.cache_clear()
    assert result.exit_code == 0
    assert "Bucket: cli-bucket" in result.output
