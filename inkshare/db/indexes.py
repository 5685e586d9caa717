"""
inkshare/db/indexes.py

Purpose: Database index management

- Lookup index on users.handle for transfer addressing
- Handles may repeat, so the index is deliberately not unique
"""

from motor.motor_asyncio import AsyncIOMotorCollection

from inkshare.core.logging import get_logger

logger = get_logger(__name__)


async def create_indexes(users: AsyncIOMotorCollection):
    """
    Creates all necessary database indexes.
    This function is idempotent - safe to run multiple times.
    """
    try:
        logger.info("Creating database indexes...")

        await users.create_index("handle", name="handle_idx", sparse=True)
        logger.debug("Created index on users.handle")

        logger.info("✅ All database indexes created successfully")

    except Exception as e:
        logger.error(f"Failed to create indexes: {str(e)}", exc_info=True)
        raise
