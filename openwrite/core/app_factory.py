"""Application factory for creating and configuring the FastAPI app."""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from openwrite.config.settings import APP_VERSION, AUTO_CREATE_TABLES, ENCRYPTION_KEY
from openwrite.core.error_handlers import register_exception_handlers
from openwrite.core.logging_config import configure_logging
from openwrite.core.routers import register_routers
from openwrite.database import Database, get_database_instance, set_database_instance
from openwrite.middleware.setup import setup_middleware

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan management."""
    logger.info(f"OpenWrite API {APP_VERSION} starting ({app.state.db.db_type})")
    if not ENCRYPTION_KEY:
        logger.warning("ENCRYPTION_KEY is not set; AI provider keys cannot be stored")

    yield  # Application is running

    logger.info("Application shutting down...")
    app.state.db.dispose()
    logger.info("Application shutdown complete")


def create_app(db: Optional[Database] = None, create_tables: Optional[bool] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        db: Database to serve from; defaults to one built from the environment
        create_tables: Run ``metadata.create_all`` on startup. Defaults to
            AUTO_CREATE_TABLES; production deployments use Alembic instead.
    """
    configure_logging()

    app = FastAPI(title="OpenWrite API", version=APP_VERSION, lifespan=lifespan)

    setup_middleware(app)
    register_exception_handlers(app)

    if db is None:
        db = Database()
    set_database_instance(db)
    app.state.db = db
    # Bind route dependencies to this app's database, not whichever was created last
    app.dependency_overrides[get_database_instance] = lambda: db

    if create_tables is None:
        create_tables = AUTO_CREATE_TABLES
    if create_tables:
        db.create_tables()

    register_routers(app)

    logger.info("FastAPI application created and configured")
    return app
