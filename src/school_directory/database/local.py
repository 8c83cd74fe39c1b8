import logging

from school_directory.database.executor import QueryExecutor

logger = logging.getLogger(__name__)

SCHOOLS_TABLE = "schools"


def init_db(executor: QueryExecutor) -> None:
    """Initialize database with the schools table."""
    executor.execute(f'''
        CREATE TABLE IF NOT EXISTS {SCHOOLS_TABLE} (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name VARCHAR(255) NOT NULL,
            address TEXT NOT NULL,
            city VARCHAR(100) NOT NULL,
            state VARCHAR(100) NOT NULL,
            contact VARCHAR(10) NOT NULL,
            image TEXT NOT NULL,             -- filename (local) or public URL (S3)
            email_id VARCHAR(255) NOT NULL,
            UNIQUE(name, city)
        )
    ''')
    logger.info(f"Ensured table '{SCHOOLS_TABLE}' exists")
