"""
Tubely MongoDB Database Client Module

Async MongoDB connection management for Tubely using Motor. It provides:
- Connection pooling sized from settings
- Connection retry with exponential backoff at startup
- Health checks using the MongoDB ping command
- Accessor for the ``videos`` collection and its indexes
- Startup/shutdown lifecycle hooks for the FastAPI lifespan
"""

import asyncio
import logging

from motor.motor_asyncio import (
    AsyncIOMotorClient,
    AsyncIOMotorCollection,
    AsyncIOMotorDatabase,
)
from pymongo.errors import ConnectionFailure, PyMongoError, ServerSelectionTimeoutError

from app.config import Settings, get_settings


logger = logging.getLogger(__name__)

VIDEOS_COLLECTION = "videos"

CONNECT_MAX_RETRIES = 3
SERVER_SELECTION_TIMEOUT_MS = 5000


class DatabaseClient:
    """
    Async MongoDB client wrapper with connection pooling and lifecycle management.

    Example usage:
        ```python
        db_client = DatabaseClient(get_settings())
        await db_client.connect()

        videos = db_client.get_videos_collection()
        await videos.find_one({"_id": video_id})

        await db_client.close()
        ```
    """

    def __init__(self, settings: Settings) -> None:
        self._mongodb_uri = settings.mongodb_uri
        self._db_name = settings.mongodb_db_name
        self._min_pool_size = settings.mongodb_min_pool_size
        self._max_pool_size = settings.mongodb_max_pool_size
        self._client: AsyncIOMotorClient | None = None
        self._database: AsyncIOMotorDatabase | None = None

    async def connect(self) -> bool:
        """
        Connect to MongoDB, retrying with exponential backoff (1s, 2s).

        Returns:
            bool: True if the server answered a ping, False after all retries failed.
        """
        retry_delay = 1.0

        for attempt in range(1, CONNECT_MAX_RETRIES + 1):
            try:
                logger.info(
                    f"Attempting MongoDB connection (attempt {attempt}/{CONNECT_MAX_RETRIES}) "
                    f"to {self._db_name}..."
                )

                self._client = AsyncIOMotorClient(
                    self._mongodb_uri,
                    minPoolSize=self._min_pool_size,
                    maxPoolSize=self._max_pool_size,
                    serverSelectionTimeoutMS=SERVER_SELECTION_TIMEOUT_MS,
                    uuidRepresentation="standard",
                )
                self._database = self._client[self._db_name]

                await self._client.admin.command("ping")

                logger.info(
                    f"Connected to MongoDB database: {self._db_name} "
                    f"with pool size {self._min_pool_size}-{self._max_pool_size}"
                )
                return True

            except (ServerSelectionTimeoutError, ConnectionFailure):
                logger.exception(
                    f"MongoDB connection failure (attempt {attempt}/{CONNECT_MAX_RETRIES})"
                )
                if attempt < CONNECT_MAX_RETRIES:
                    logger.warning(f"Retrying in {retry_delay} seconds...")
                    await asyncio.sleep(retry_delay)
                    retry_delay *= 2

        logger.error(
            f"Failed to connect to MongoDB after {CONNECT_MAX_RETRIES} attempts. "
            "Check connection URI and server availability."
        )
        return False

    async def close(self) -> None:
        """Close the Motor client. Safe to call when not connected."""
        if self._client is None:
            logger.warning("MongoDB close called but no active connection exists")
            return

        self._client.close()
        self._client = None
        self._database = None
        logger.info(f"MongoDB connection closed for database: {self._db_name}")

    async def ping(self) -> bool:
        """
        Health check using the MongoDB admin ping command.

        Returns:
            bool: True if the server responded, False otherwise.
        """
        if self._client is None:
            logger.warning("MongoDB ping failed: No active connection")
            return False

        try:
            await self._client.admin.command("ping")
            return True
        except PyMongoError:
            logger.exception("MongoDB ping failed")
            return False

    def get_database(self) -> AsyncIOMotorDatabase:
        """
        Get the database instance for direct operations.

        Raises:
            RuntimeError: If not connected to MongoDB.
        """
        if self._database is None:
            raise RuntimeError(
                "MongoDB database not available. Call connect() first or check connection status."
            )
        return self._database

    def get_videos_collection(self) -> AsyncIOMotorCollection:
        """
        Get the videos collection.

        Documents are keyed by the video UUID string in ``_id`` and carry the
        owning ``user_id`` and the public ``video_url``.
        """
        return self.get_database()[VIDEOS_COLLECTION]

    async def create_indexes(self) -> None:
        """Create the ``user_id`` index used to list a user's videos."""
        videos = self.get_videos_collection()
        try:
            await videos.create_index("user_id")
            await videos.create_index([("user_id", 1), ("created_at", -1)])
            logger.info(f"Created indexes on {VIDEOS_COLLECTION} collection")
        except PyMongoError:
            logger.exception("Error creating MongoDB indexes")
            raise


# Container class for database client singleton to avoid global statements
class _DatabaseClientContainer:
    """Container for database client singleton to avoid global statements."""

    client: DatabaseClient | None = None


_container = _DatabaseClientContainer()


async def init_db(settings: Settings | None = None) -> DatabaseClient:
    """
    Initialize the global database client singleton.

    Connects to MongoDB and creates indexes. Called from the FastAPI lifespan.

    Raises:
        RuntimeError: If connection to MongoDB fails after all retries.
    """
    if _container.client is not None:
        logger.warning("Database client already initialized, returning existing instance")
        return _container.client

    if settings is None:
        settings = get_settings()

    logger.info("Initializing MongoDB database client...")

    client = DatabaseClient(settings)
    if not await client.connect():
        raise RuntimeError(
            "Failed to establish MongoDB connection. "
            "Check mongodb_uri configuration and server availability."
        )

    await client.create_indexes()
    _container.client = client

    logger.info("MongoDB database client initialization complete")
    return client


async def close_db() -> None:
    """Close the global database client. Called from the FastAPI lifespan."""
    if _container.client is None:
        logger.warning("close_db called but no database client exists")
        return

    await _container.client.close()
    _container.client = None
    logger.info("MongoDB database client closed")


def get_db_client() -> DatabaseClient:
    """
    Get the global database client singleton instance.

    Raises:
        RuntimeError: If the client has not been initialized via init_db().
    """
    if _container.client is None:
        raise RuntimeError(
            "Database client not initialized. Call init_db() first during application startup."
        )
    return _container.client


__all__ = [
    "VIDEOS_COLLECTION",
    "DatabaseClient",
    "close_db",
    "get_db_client",
    "init_db",
]
