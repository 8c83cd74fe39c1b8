# cli.py
import click
import logging
from school_directory.config.settings import configure_logging, get_settings
from school_directory.database import ConnectionPool, QueryExecutor, init_db

# Configure logging
logger = logging.getLogger(__name__)

@click.group()
def cli():
    """CLI commands for the school directory"""
    configure_logging(get_settings().log_level)

@cli.command()
def show_config():
    """Show current configuration"""
    settings = get_settings()

    print("Current Configuration:")
    print(f"  Database URL: {settings.database_url}")
    print(f"  Pool Size: {settings.db_pool_size}")
    print(f"  Query Attempts: {settings.query_max_attempts}")
    print(f"  Storage Backend: {settings.storage_backend}")
    if settings.storage_backend == "s3":
        print(f"  S3 Bucket: {settings.s3_bucket_name}")
        print(f"  S3 Folder: {settings.s3_folder}")
        print(f"  AWS Region: {settings.aws_region}")
        print(f"  AWS Endpoint: {settings.aws_endpoint_url}")
    else:
        print(f"  Upload Dir: {settings.upload_dir}")
    print(f"  Public Image Path: {settings.public_image_path}")

@cli.command("init-db")
def init_database():
    """Create the schools table if it does not exist"""
    settings = get_settings()
    pool = ConnectionPool(settings.database_url, size=1, timeout=settings.db_pool_timeout)
    try:
        init_db(QueryExecutor(pool, settings.query_max_attempts, settings.query_retry_delay))
        print(f"✅ Database ready at {settings.database_url}")
    finally:
        pool.close()

@cli.command()
@click.option("--host", default="0.0.0.0", help="Interface to bind")
@click.option("--port", default=8000, type=int, help="Port to listen on")
@click.option("--reload", is_flag=True, help="Reload on code changes")
def serve(host, port, reload):
    """Run the API with uvicorn"""
    import uvicorn

    uvicorn.run(
        "school_directory.main:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
    )

if __name__ == "__main__":
    cli()
