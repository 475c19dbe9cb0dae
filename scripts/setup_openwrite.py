#!/usr/bin/env python
"""
Setup script for OpenWrite.
This script:
1. Creates the data directory
2. Writes a .env with fresh SESSION_SECRET_KEY and ENCRYPTION_KEY values
3. Applies database migrations (alembic upgrade head)
"""

import argparse
import os
import secrets
import sys
import logging
from pathlib import Path

from alembic import command
from alembic.config import Config
from cryptography.fernet import Fernet

# Set up logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).resolve().parent.parent
ENV_PATH = PROJECT_ROOT / ".env"

DEFAULT_ENV = {
    "DB_TYPE": "sqlite",
    "CORS_ORIGIN": "http://localhost:3001",
    "PORT": "3000",
}


def read_env_file(path: Path) -> dict:
    values = {}
    if not path.exists():
        return values
    with open(path, 'r') as f:
        for line in f:
            line = line.strip()
            if not line or line.startswith('#') or '=' not in line:
                continue
            key, value = line.split('=', 1)
            values[key.strip()] = value.strip()
    return values


def write_env_file(path: Path, updates: dict):
    """Update or append keys, leaving every other line untouched."""
    lines = []
    if path.exists():
        with open(path, 'r') as f:
            lines = f.readlines()

    remaining = dict(updates)
    for i, line in enumerate(lines):
        key = line.split('=', 1)[0].strip()
        if key in remaining:
            lines[i] = f"{key}={remaining.pop(key)}\n"

    if lines and not lines[-1].endswith('\n'):
        lines[-1] += '\n'
    for key, value in remaining.items():
        lines.append(f"{key}={value}\n")

    with open(path, 'w') as f:
        f.writelines(lines)


def configure_environment(rotate_secrets: bool) -> bool:
    logger.info("Configuring environment...")
    current = read_env_file(ENV_PATH)
    updates = {key: value for key, value in DEFAULT_ENV.items() if key not in current}

    if rotate_secrets or not current.get("SESSION_SECRET_KEY"):
        updates["SESSION_SECRET_KEY"] = secrets.token_urlsafe(32)
        logger.info("Generated SESSION_SECRET_KEY")

    if not current.get("ENCRYPTION_KEY"):
        updates["ENCRYPTION_KEY"] = Fernet.generate_key().decode("ascii")
        logger.info("Generated ENCRYPTION_KEY")
    elif rotate_secrets:
        # Stored API keys would become unreadable
        logger.warning("Keeping existing ENCRYPTION_KEY; rotate it manually after re-encrypting provider keys")

    if updates:
        write_env_file(ENV_PATH, updates)
        logger.info(f"✅ Updated {ENV_PATH}")
    else:
        logger.info("Environment already configured")

    # Make the new values visible to the settings module imported below
    for key, value in read_env_file(ENV_PATH).items():
        os.environ.setdefault(key, value)
    return True


def create_directories() -> bool:
    data_dir = Path(os.getenv("OPENWRITE_DATA_DIR", PROJECT_ROOT / "data"))
    try:
        data_dir.mkdir(parents=True, exist_ok=True)
        logger.info(f"Created directory: {data_dir}")
        return True
    except OSError as e:
        logger.error(f"Failed to create {data_dir}: {e}")
        return False


def run_migrations() -> bool:
    logger.info("Applying database migrations...")
    try:
        config = Config(str(PROJECT_ROOT / "alembic.ini"))
        config.set_main_option("script_location", str(PROJECT_ROOT / "alembic"))
        command.upgrade(config, "head")
        logger.info("✅ Database schema is up to date")
        return True
    except Exception as e:
        logger.error(f"Migration failed: {e}")
        return False


def main() -> bool:
    parser = argparse.ArgumentParser(description="Bootstrap an OpenWrite checkout")
    parser.add_argument("--rotate-secrets", action="store_true",
                        help="Generate a new SESSION_SECRET_KEY even if one exists")
    parser.add_argument("--skip-migrations", action="store_true",
                        help="Only write .env and create directories")
    args = parser.parse_args()

    logger.info("Setting up OpenWrite...")

    if not configure_environment(args.rotate_secrets):
        return False
    if not create_directories():
        return False
    if not args.skip_migrations and not run_migrations():
        return False

    logger.info("Setup complete. Start the API with: python -m openwrite.run")
    return True


if __name__ == "__main__":
    sys.exit(0 if main() else 1)
