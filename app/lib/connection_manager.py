import logging
from asyncio import Event, Lock
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from app.clients.mongo_client import close_mongo, init_mongo


class ConnectionManager:
    """Owns the MongoDB client for the lifetime of the application."""

    @classmethod
    async def create(
        cls,
        config: dict,
        mongo_client: Optional[AsyncIOMotorClient] = None,
    ) -> "ConnectionManager":
        """
        Create and initialize a ConnectionManager instance.

        Args:
            config: Application configuration
            mongo_client: Optional pre-built client, used instead of connecting

        Returns:
            Initialized ConnectionManager instance
        """
        instance = cls(config)
        await instance._initialize_clients(mongo_client)
        return instance

    def __init__(self, config: dict):
        """Initialize instance variables"""
        self.config = config
        self.mongo_client: Optional[AsyncIOMotorClient] = None
        self._owns_mongo_client = False
        self._mongo_ready = Event()
        self._state_lock = Lock()
        self.logger = logging.getLogger(__name__)

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=10),
        retry=retry_if_exception_type(Exception),
        reraise=True,
    )
    async def _initialize_mongo(self):
        """Initialize MongoDB client with Tenacity retry logic."""
        self.mongo_client = await init_mongo(self.config)
        self._owns_mongo_client = True
        self.logger.info("MongoDB client initialized successfully")

    async def _initialize_clients(self, mongo_client: Optional[AsyncIOMotorClient]):
        self.logger.info("Starting to initialize database clients")
        try:
            async with self._state_lock:
                if mongo_client is not None:
                    self.mongo_client = mongo_client
                else:
                    await self._initialize_mongo()
                self._mongo_ready.set()
        except Exception as e:
            self.logger.error(f"Error initializing clients: {e}")
            await self.close_clients()
            raise

    async def close_clients(self):
        """Close the MongoDB client if this manager created it."""
        async with self._state_lock:
            self.logger.info("Closing database clients")
            if self.mongo_client is None:
                self.logger.warning("MongoDB client is None during cleanup.")
                return
            try:
                if self._owns_mongo_client:
                    close_mongo(self.mongo_client)
            finally:
                self.mongo_client = None
                self._owns_mongo_client = False
                self._mongo_ready.clear()

    async def get_mongo_client(self) -> AsyncIOMotorClient:
        """Get MongoDB client with readiness verification"""
        await self._mongo_ready.wait()
        if not self.mongo_client:
            raise RuntimeError("MongoDB client not initialized")
        return self.mongo_client

    async def get_database(self) -> AsyncIOMotorDatabase:
        mongo_client = await self.get_mongo_client()
        return mongo_client.get_database(self.config["mongo_db_name"])
