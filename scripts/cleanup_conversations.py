"""
Delete inactive conversations that have not been updated for a number of days.

Usage:
    python scripts/cleanup_conversations.py --days 30
"""

import argparse
import asyncio
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from config.settings import settings
from core import configure_logging, get_logger
from memory.conversation_service import ConversationService
from memory.database_async import AsyncDatabase, SQLConversationStore

logger = get_logger(__name__)


async def main(days: int) -> int:
    configure_logging(settings.LOG_LEVEL)

    if not settings.DATABASE_URL:
        logger.error("DATABASE_URL is not set; in-memory conversations are not swept")
        return 1

    db = AsyncDatabase(settings.DATABASE_URL)
    try:
        service = ConversationService(SQLConversationStore(db))
        removed = await service.cleanup_old_data(days)
        print(f"Removed {removed} inactive conversations older than {days} days")
        return 0
    except Exception as e:
        logger.error("Cleanup failed", error=str(e), exc_info=True)
        return 1
    finally:
        await db.dispose()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__.strip().splitlines()[0])
    parser.add_argument("--days", type=int, default=settings.CLEANUP_DAYS, help="Age threshold in days")
    args = parser.parse_args()
    sys.exit(asyncio.run(main(args.days)))
