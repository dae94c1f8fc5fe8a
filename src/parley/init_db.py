"""Create the Parley schema in the configured database."""

import logging

from parley.core.logging_config import setup_logging
from parley.core.settings import settings
from parley.db.session import create_tables

logger = logging.getLogger(__name__)


def init_db() -> None:
    """Initialize the database by creating all tables."""
    create_tables()


if __name__ == "__main__":
    setup_logging(settings.log_level, settings.log_format)
    init_db()
    logger.info("Database initialized at %s", settings.effective_database_url)
