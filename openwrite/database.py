import logging
from contextlib import contextmanager
from typing import Optional

from sqlalchemy import create_engine, event, inspect, text
from sqlalchemy.pool import StaticPool

from openwrite.config.settings import db_settings
from openwrite.database_models import metadata

logger = logging.getLogger(__name__)

# Database instance for dependency injection
_db_instance = None


def get_database_instance():
    global _db_instance
    if _db_instance is None:
        _db_instance = Database()
    return _db_instance


def set_database_instance(db):
    """Replace the process-wide instance (used by the app factory and tests)."""
    global _db_instance
    _db_instance = db
    return db


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    # SQLite ignores ON DELETE CASCADE unless this is set per connection
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys = ON")
    cursor.close()


class Database:
    """Owns the SQLAlchemy engine and hands out connections to the facade."""

    def __init__(self, database_url: Optional[str] = None, echo: bool = False):
        self.database_url = database_url or db_settings.get_sync_database_url()
        self.db_type = 'sqlite' if self.database_url.startswith('sqlite') else 'postgresql'
        self._facade = None  # Lazy initialization to avoid circular imports

        try:
            self.engine = self._create_engine(echo)
        except Exception as e:
            logger.error(f"Failed to initialize database engine: {e}")
            raise RuntimeError(f"Database initialization failed: {e}") from e

        logger.info(f"Database initialized: {self.engine.url.render_as_string(hide_password=True)}")

    def _create_engine(self, echo: bool):
        if self.db_type == 'sqlite':
            kwargs = {"connect_args": {"check_same_thread": False}}
            if self.database_url in ('sqlite://', 'sqlite:///:memory:'):
                # One shared connection, otherwise every checkout sees an empty database
                kwargs["poolclass"] = StaticPool
            engine = create_engine(self.database_url, echo=echo, **kwargs)
            event.listen(engine, "connect", _enable_sqlite_foreign_keys)
            return engine

        return create_engine(
            self.database_url,
            echo=echo,
            pool_pre_ping=True,
            pool_size=db_settings.DB_POOL_SIZE,
            max_overflow=db_settings.DB_MAX_OVERFLOW,
            pool_recycle=db_settings.DB_POOL_RECYCLE,
        )

    @property
    def facade(self):
        """Lazy initialization of database query facade to avoid circular imports."""
        if self._facade is None:
            from openwrite.database_query_facade import DatabaseQueryFacade
            self._facade = DatabaseQueryFacade(self, logging.getLogger('openwrite.database_query_facade'))
        return self._facade

    def get_connection(self):
        """Check out a pooled connection; the caller commits/rolls back and closes it."""
        return self.engine.connect()

    @contextmanager
    def transaction(self):
        """Connection with a transaction that commits on success and rolls back on error."""
        with self.engine.begin() as connection:
            yield connection

    def create_tables(self):
        metadata.create_all(self.engine, checkfirst=True)
        logger.info("Database tables ensured")

    def has_tables(self) -> bool:
        return inspect(self.engine).has_table('project')

    def ping(self) -> bool:
        try:
            with self.engine.connect() as connection:
                connection.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.error(f"Database ping failed: {e}")
            return False

    def dispose(self):
        self.engine.dispose()
