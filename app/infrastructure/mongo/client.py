"""
Adapter: MongoDB client lifecycle.

Opens and closes the Motor client used by every document model.
"""

import logging
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase

logger = logging.getLogger(__name__)


class MongoClientManager:
    """Owns the Motor client for the lifetime of the application."""

    def __init__(self, url: str, database_name: str) -> None:
        self._url = url
        self._database_name = database_name
        self._client: Optional[AsyncIOMotorClient] = None

    @property
    def database(self) -> AsyncIOMotorDatabase:
        if self._client is None:
            raise RuntimeError("MongoDB client is not connected. Call connect() first.")
        return self._client[self._database_name]

    async def connect(self) -> AsyncIOMotorDatabase:
        """Create the client and verify the server is reachable."""
        self._client = AsyncIOMotorClient(self._url, tz_aware=True)
        await self._client.admin.command("ping")
        logger.info("Connected to MongoDB database %s", self._database_name)
        return self.database

    async def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None
            logger.info("MongoDB connection closed")
