"""
Initialize database tables for the companion chatbot.
Uses the async SQLAlchemy backend configured by DATABASE_URL.
"""

import asyncio
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from config.settings import settings
from core import configure_logging, get_logger
from memory.database_async import AsyncDatabase

logger = get_logger(__name__)


async def main():
    """Create all database tables."""
    configure_logging(settings.LOG_LEVEL)

    if not settings.DATABASE_URL:
        logger.error("DATABASE_URL is not set; nothing to initialize")
        sys.exit(1)

    logger.info("Starting database initialization")
    db = AsyncDatabase(settings.DATABASE_URL)

    try:
        await db.create_tables()
        logger.info("Database initialization complete")
    except Exception as e:
        logger.error("Database initialization failed", error=str(e), exc_info=True)
        sys.exit(1)
    finally:
        await db.dispose()


if __name__ == "__main__":
    asyncio.run(main())
