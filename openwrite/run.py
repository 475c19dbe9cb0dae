"""Start the OpenWrite API with uvicorn."""

import os
import sys
import logging

from openwrite.core.logging_config import configure_logging
configure_logging()

import uvicorn

from openwrite.config.settings import db_settings
from openwrite.database import Database

logger = logging.getLogger(__name__)

# Handle empty string case (common in Docker environment variables)
port_value = os.getenv('PORT', '3000').strip()
PORT = int(port_value) if port_value else 3000
HOST = os.getenv('HOST', '0.0.0.0')
ENVIRONMENT = os.getenv('ENVIRONMENT', 'development')


def check_database_connection() -> bool:
    """Check database connection and provide helpful diagnostics."""
    if db_settings.DB_TYPE == 'postgresql':
        required_vars = ['DB_HOST', 'DB_PORT', 'DB_NAME', 'DB_USER', 'DB_PASSWORD']
        missing_vars = [var for var in required_vars if not os.getenv(var)]
        if missing_vars and not os.getenv('DATABASE_URL'):
            logger.error(f"Missing required PostgreSQL environment variables: {', '.join(missing_vars)}")
            return False

    db = Database()
    try:
        if not db.ping():
            logger.error("Database is not reachable; run 'python scripts/setup_openwrite.py' first")
            return False
        logger.info(f"{db.db_type} database reachable")
        return True
    finally:
        db.dispose()


def main():
    logger.info("=" * 60)
    logger.info("OpenWrite API startup")
    logger.info("=" * 60)

    if not check_database_connection():
        sys.exit(1)

    uvicorn.run(
        "openwrite.main:app",
        host=HOST,
        port=PORT,
        reload=ENVIRONMENT == 'development',
        log_level="warning"
    )


if __name__ == "__main__":
    main()
