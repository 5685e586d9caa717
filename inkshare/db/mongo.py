"""
inkshare/db/mongo.py

Purpose: MongoDB-backed credential store

- Initializes Motor client with connection pooling
- Single collection: users, keyed by session key (_id)
- Atomic per-key merges via find_one_and_update
- Health checks and startup retry logic
"""

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorCollection
from pymongo import ReturnDocument
from pymongo.errors import ConnectionFailure, ServerSelectionTimeoutError
from typing import Any, AsyncIterator, Dict, Optional
import asyncio

from inkshare.models.user import UserRecord, UserRecordUpdate
from inkshare.core.logging import get_logger

logger = get_logger(__name__)

USERS_COLLECTION = "users"


def build_merge_update(update: UserRecordUpdate) -> Dict[str, Any]:
    """
    Translates a partial update into a MongoDB update document.

    Fields explicitly set to None are removed from the stored document.
    """
    to_set = {}
    to_unset = {}
    for field, value in update.changes().items():
        if value is None:
            to_unset[field] = ""
        else:
            to_set[field] = value

    operations: Dict[str, Any] = {}
    if to_set:
        operations["$set"] = to_set
    if to_unset:
        operations["$unset"] = to_unset
    return operations


def _record_from_document(document: Optional[Dict[str, Any]]) -> Optional[UserRecord]:
    if document is None:
        return None
    fields = {k: v for k, v in document.items() if k != "_id"}
    if fields.get("pending_file") is not None:
        fields["pending_file"] = bytes(fields["pending_file"])
    return UserRecord.model_validate(fields)


class MongoCredentialStore:
    """
    Credential store over a MongoDB collection.

    Unlike the file store, merges need no in-process lock: the server applies
    each $set/$unset atomically for the document.
    """

    def __init__(self, collection: AsyncIOMotorCollection, client: Optional[AsyncIOMotorClient] = None):
        self.collection = collection
        self._client = client

    @classmethod
    async def connect(cls, url: str, db_name: str, max_retries: int = 3) -> "MongoCredentialStore":
        """
        Establishes connection to MongoDB with retry logic.
        Called during application startup.
        """
        retry_delay = 2

        for attempt in range(1, max_retries + 1):
            try:
                logger.info(
                    f"Attempting to connect to MongoDB (attempt {attempt}/{max_retries})"
                )

                client = AsyncIOMotorClient(
                    url,
                    maxPoolSize=50,
                    minPoolSize=1,
                    serverSelectionTimeoutMS=5000,
                    connectTimeoutMS=10000,
                    retryWrites=True,
                    retryReads=True,
                )

                await client.admin.command("ping")

                logger.info(f"✅ Successfully connected to MongoDB: {db_name}")
                return cls(client[db_name][USERS_COLLECTION], client=client)

            except (ConnectionFailure, ServerSelectionTimeoutError) as e:
                logger.error(
                    f"Failed to connect to MongoDB (attempt {attempt}/{max_retries}): {e}"
                )

                if attempt < max_retries:
                    logger.info(f"Retrying in {retry_delay} seconds...")
                    await asyncio.sleep(retry_delay)
                    retry_delay *= 2
                else:
                    logger.critical("Failed to connect to MongoDB after all retries")
                    raise ConnectionError("Could not establish MongoDB connection") from e

        raise ConnectionError("Could not establish MongoDB connection")

    async def get(self, key: str) -> Optional[UserRecord]:
        document = await self.collection.find_one({"_id": key})
        return _record_from_document(document)

    async def merge(self, key: str, update: UserRecordUpdate) -> UserRecord:
        operations = build_merge_update(update)
        if not operations:
            return await self.get(key) or UserRecord()

        document = await self.collection.find_one_and_update(
            {"_id": key},
            operations,
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )
        return _record_from_document(document) or UserRecord()

    async def clear_pending_if(self, key: str, expected: bytes) -> bool:
        """Atomic compare-and-clear; a newer pending file is left in place."""
        result = await self.collection.update_one(
            {"_id": key, "pending_file": expected},
            {"$unset": {"pending_file": ""}},
        )
        return result.modified_count == 1

    async def keys(self) -> AsyncIterator[str]:
        cursor = self.collection.find({}, projection={"_id": 1}).sort("_id", 1)
        async for document in cursor:
            yield document["_id"]

    async def ping(self) -> bool:
        """
        Checks if the database connection is healthy.
        """
        if self._client is None:
            return True
        try:
            await self._client.admin.command("ping")
            return True
        except Exception as e:
            logger.error(f"Database health check failed: {str(e)}")
            return False

    async def close(self) -> None:
        """
        Closes the MongoDB connection.
        Called during application shutdown.
        """
        if self._client:
            logger.info("Closing MongoDB connection")
            self._client.close()
            self._client = None
            logger.info("MongoDB connection closed")
