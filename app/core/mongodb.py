"""MongoDB client configuration and utilities."""

import structlog
from pymongo import ASCENDING, AsyncMongoClient
from pymongo.asynchronous.collection import AsyncCollection
from pymongo.asynchronous.database import AsyncDatabase
from pymongo.errors import PyMongoError

from app.core.exceptions import InfrastructureException

logger = structlog.get_logger(__name__)

APPOINTMENTS_COLLECTION = "appointments"


class MongoDBClient:
    """
    Connection handle for the appointment store.

    Created once at startup and passed to repositories; holds no global state.
    """

    def __init__(self, uri: str, database: str, timeout_ms: int = 5000):
        """Initialize handle with connection parameters. Does not connect."""
        self.uri = uri
        self.database_name = database
        self.timeout_ms = timeout_ms
        self._client: AsyncMongoClient | None = None
        self._db: AsyncDatabase | None = None

    async def connect(self) -> None:
        """
        Open the connection and create the appointment indexes.

        Raises:
            InfrastructureException: If the server cannot be reached
        """
        if self._client is not None:
            return

        client: AsyncMongoClient = AsyncMongoClient(
            self.uri,
            tz_aware=True,
            serverSelectionTimeoutMS=self.timeout_ms,
        )
        try:
            db = client[self.database_name]
            await db.command("ping")
            self._client = client
            self._db = db
            await self.create_indexes()
        except PyMongoError as e:
            await client.close()
            self._client = None
            self._db = None
            logger.error("mongodb_connection_failed", error=str(e))
            raise InfrastructureException(f"MongoDB connection failed: {e}") from e

        logger.info("mongodb_connected", database=self.database_name)

    async def create_indexes(self) -> None:
        """Create lookup indexes on the appointments collection."""
        collection = self.get_collection(APPOINTMENTS_COLLECTION)

        await collection.create_index([("patientEmail", ASCENDING)])
        await collection.create_index([("appointmentDate", ASCENDING)])
        await collection.create_index([("status", ASCENDING)])
        await collection.create_index([("patientEmail", ASCENDING), ("appointmentDate", ASCENDING)])

        logger.info("mongodb_indexes_created", collection=APPOINTMENTS_COLLECTION)

    def get_database(self) -> AsyncDatabase:
        """
        Get the connected database.

        Raises:
            InfrastructureException: If ``connect`` has not been awaited
        """
        if self._db is None:
            raise InfrastructureException("MongoDB not connected. Call connect() first.")
        return self._db

    def get_collection(self, name: str) -> AsyncCollection:
        """Get a collection of the connected database."""
        return self.get_database()[name]

    async def disconnect(self) -> None:
        """Close MongoDB connection."""
        if self._client is not None:
            await self._client.close()
            self._client = None
            self._db = None
            logger.info("mongodb_disconnected")

    async def health_check(self) -> bool:
        """
        Check if MongoDB connection is healthy.

        Returns:
            True if the server answers a ping, False otherwise
        """
        if self._db is None:
            return False
        try:
            await self._db.command("ping")
            return True
        except PyMongoError:
            return False
