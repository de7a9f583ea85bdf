# cli.py
import click
import logging
from articles_api.database.local import init_db
from articles_api.settings import get_settings

# Configure logging
logger = logging.getLogger(__name__)

@click.group()
def cli():
    """CLI commands for the Articles API"""
    pass

@cli.command()
def show_config():
    """Show current configuration"""
    settings = get_settings()

    print("Current Configuration:")
    print(f"  Database: {settings.database_path} (pool size {settings.db_pool_size})")
    print(f"  Bucket: {settings.s3_bucket_name}")
    print(f"  Endpoint: {settings.aws_endpoint_url}")
    print(f"  Public URL base: {settings.public_base_url}")
    print(f"  Staging Dir: {settings.staging_dir}")
    print(f"  Static Dir: {settings.static_dir}")
    print(f"  List Max Keys: {settings.list_max_keys}")
    print(f"  Cleanup Staged On Failure: {settings.cleanup_staged_on_failure}")
    print(f"  Bulk Report Results: {settings.bulk_report_results}")

@cli.command("init-db")
@click.option("--db-path", default=None, help="SQLite file (defaults to DATABASE_PATH)")
def init_database(db_path):
    """Create the articles table"""
    db_path = db_path or get_settings().database_path
    init_db(db_path)
    print(f"✅ Articles table ready in {db_path}")

@cli.command()
@click.option("--host", default="0.0.0.0", help="Interface to bind")
@click.option("--port", type=int, default=None, help="Port (defaults to APP_PORT / PORT, then 3000)")
def serve(host, port):
    """Run the API with uvicorn"""
    import uvicorn
    from articles_api.main import create_app

    settings = get_settings()
    port = port or settings.app_port
    app = create_app(settings)
    print(f"Starting Articles API on {host}:{port}")
    uvicorn.run(app, host=host, port=port)

if __name__ == "__main__":
    cli()
