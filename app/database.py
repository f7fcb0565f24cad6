"""MongoDB connection for the state store using Motor (async driver)."""
import logging
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase

from app.config import settings

logger = logging.getLogger(__name__)


class Database:
    """Holds the Motor client and the database the state records live in."""

    client: AsyncIOMotorClient | None = None
    db: AsyncIOMotorDatabase | None = None

    async def connect(
        self,
        url: Optional[str] = None,
        db_name: Optional[str] = None,
    ) -> AsyncIOMotorDatabase:
        """
        Connect and check the server answers.

        Args:
            url: MongoDB connection URL (defaults to settings)
            db_name: Database name (defaults to settings)

        Returns:
            The connected database
        """
        db_name = db_name or settings.mongodb_db_name
        self.client = AsyncIOMotorClient(url or settings.mongodb_url)
        self.db = self.client[db_name]
        await self.db.command("ping")
        logger.info("Connected to MongoDB: %s", db_name)
        return self.db

    async def disconnect(self) -> None:
        """Disconnect from MongoDB."""
        if self.client is not None:
            self.client.close()
            self.client = None
            self.db = None
            logger.info("Disconnected from MongoDB")


# Global database instance
database = Database()
