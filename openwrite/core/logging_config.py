"""Centralized logging configuration for the application."""

import logging
import os
import sys


def configure_logging(level=None):
    """Configure logging for the entire application."""
    if level is None:
        level = os.getenv('LOG_LEVEL', 'INFO').upper()

    # Configure root logger
    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Remove existing handlers
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    # Create console handler with custom format
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    # Suppress verbose loggers
    suppress_loggers = [
        'httpx',
        'httpcore',
        'uvicorn.access',
        'watchfiles.main',
        'passlib',
        'sqlalchemy.engine',
        'sqlalchemy.pool',
    ]

    for logger_name in suppress_loggers:
        logger = logging.getLogger(logger_name)
        logger.setLevel(logging.WARNING)

    # Set specific levels for app loggers
    app_loggers = {
        'openwrite': level,
        'openwrite.core': logging.INFO,
        'openwrite.routes': level,
        'openwrite.database': logging.INFO,
        'openwrite.database_query_facade': level,
        'alembic': logging.INFO,
    }

    for logger_name, logger_level in app_loggers.items():
        logging.getLogger(logger_name).setLevel(logger_level)
