import os
import logging
from urllib.parse import quote_plus
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

load_dotenv()


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name, '').strip()
    if not value:
        return default
    try:
        return int(value)
    except ValueError:
        logger.warning(f"Invalid integer for {name}: {value!r}, using {default}")
        return default


APP_VERSION = os.getenv('APP_VERSION', '1.0.0')

# SQLite databases live here unless DB_TYPE=postgresql
DATABASE_DIR = os.getenv(
    'OPENWRITE_DATA_DIR',
    os.path.join(os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))), 'data')
)

SESSION_SECRET_KEY = os.getenv('SESSION_SECRET_KEY', 'openwrite-development-secret')
SESSION_MAX_AGE = _env_int('SESSION_MAX_AGE', 14 * 24 * 60 * 60)
SESSION_HTTPS_ONLY = _env_bool('SESSION_HTTPS_ONLY', False)

CORS_ORIGIN = os.getenv('CORS_ORIGIN', '*')

# Fernet key used for AI provider API keys at rest
ENCRYPTION_KEY = os.getenv('ENCRYPTION_KEY')

AUTO_CREATE_TABLES = _env_bool('AUTO_CREATE_TABLES', True)


class DatabaseSettings:
    """Database configuration settings"""

    def __init__(self):
        """Initialize database settings from environment"""
        self.DB_TYPE = os.getenv('DB_TYPE', 'sqlite').lower()
        self.DB_HOST = os.getenv('DB_HOST', 'localhost')
        self.DB_PORT = os.getenv('DB_PORT', '5432')
        self.DB_USER = os.getenv('DB_USER', 'openwrite')
        self.DB_PASSWORD = os.getenv('DB_PASSWORD', '')
        self.DB_NAME = os.getenv('DB_NAME', 'openwrite')
        self.SQLITE_FILENAME = os.getenv('DB_SQLITE_FILENAME', 'openwrite.db')

        # Connection pool settings
        self.DB_POOL_SIZE = _env_int('DB_POOL_SIZE', 10)
        self.DB_MAX_OVERFLOW = _env_int('DB_MAX_OVERFLOW', 5)
        self.DB_POOL_RECYCLE = _env_int('DB_POOL_RECYCLE', 3600)

    @property
    def is_sqlite(self) -> bool:
        return self.DB_TYPE != 'postgresql'

    def get_sync_database_url(self) -> str:
        """Get the SQLAlchemy database URL (also used by Alembic)"""
        explicit = os.getenv('DATABASE_URL')
        if explicit:
            return explicit

        if self.DB_TYPE == 'postgresql':
            # PostgreSQL connection with URL-encoded credentials
            user = quote_plus(self.DB_USER)
            password = quote_plus(self.DB_PASSWORD)
            return f"postgresql+psycopg2://{user}:{password}@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"

        os.makedirs(DATABASE_DIR, exist_ok=True)
        db_path = os.path.join(DATABASE_DIR, self.SQLITE_FILENAME)
        return f"sqlite:///{db_path}"


# Create instance for easy access
db_settings = DatabaseSettings()
