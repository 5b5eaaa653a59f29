"""
Async MongoDB connection manager built on Motor.

Services receive the AsyncIOMotorDatabase and work on raw collections.
Each call is its own statement; nothing here opens a session or a
multi-document transaction.

Example:
    from common.database import MongoDB

    mongo = MongoDB()
    await mongo.connect(uri="mongodb://localhost:27017", database_name="mentorhub")
    circles = mongo.db["circles"]
"""

import logging
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase

logger = logging.getLogger(__name__)


class MongoDB:
    """Owns one Motor client bound to one database."""

    def __init__(self):
        self._client: Optional[AsyncIOMotorClient] = None
        self._database_name: Optional[str] = None

    async def connect(self, uri: str, database_name: str, ping: bool = True) -> None:
        """
        Open the client.

        Args:
            uri: MongoDB connection string
            database_name: Database the services read and write
            ping: Round-trip once so a bad URI fails at startup
        """
        # Strip credentials before logging
        host = uri.rsplit("@", 1)[-1]
        logger.info(f"Connecting to MongoDB at {host} (database: {database_name})")

        client = AsyncIOMotorClient(uri, tz_aware=True)
        try:
            if ping:
                await client.admin.command("ping")
        except Exception as e:
            logger.error(f"MongoDB ping failed: {e}")
            client.close()
            raise

        self._client = client
        self._database_name = database_name

    async def disconnect(self) -> None:
        """Close the client if one is open."""
        if self._client is None:
            return
        logger.info(f"Closing MongoDB connection ({self._database_name})")
        self._client.close()
        self._client = None
        self._database_name = None

    @property
    def is_connected(self) -> bool:
        return self._client is not None

    @property
    def db(self) -> AsyncIOMotorDatabase:
        """The connected database."""
        if self._client is None:
            raise RuntimeError("Database not connected")
        return self._client[self._database_name]
