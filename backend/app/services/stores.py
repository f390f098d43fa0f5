"""External store handles.

The datastore and cache are placeholders: connecting and closing them always
succeeds immediately. They are passed to ``create_app`` as an
``ExternalStores`` bundle and their lifetime is tied to the application
lifespan.
"""

import logging
from dataclasses import dataclass, field

from .disposable import DisposableDomainChecker

logger = logging.getLogger(__name__)


class StoreClient:
    """Base for placeholder store clients."""

    name = "store"

    def __init__(self):
        self.connected = False

    async def connect(self) -> None:
        logger.info(f"{self.name} initialization skipped (not required for basic operation)")
        self.connected = True

    async def close(self) -> None:
        if self.connected:
            logger.info(f"{self.name} connection closed")
        self.connected = False


class DatabaseClient(StoreClient):
    """Placeholder datastore client. Query methods belong here once a datastore is configured."""

    name = "Database"


class CacheClient(StoreClient):
    """Placeholder cache client. Lookup methods belong here once a cache is configured."""

    name = "Cache"


@dataclass
class ExternalStores:
    """Process-lifetime handles injected into the application."""
    database: StoreClient = field(default_factory=DatabaseClient)
    cache: StoreClient = field(default_factory=CacheClient)
    disposable: DisposableDomainChecker = field(default_factory=DisposableDomainChecker)

    async def open(self) -> None:
        """Initialize every store in order, logging each step."""
        logger.info("Connecting to database...")
        await self.database.connect()
        logger.info("Database connected successfully")

        logger.info("Connecting to cache...")
        await self.cache.connect()
        logger.info("Cache connected successfully")

        logger.info("Loading disposable domains list...")
        await self.disposable.load()
        logger.info("Disposable domains loaded successfully")

    async def close(self) -> None:
        """Release store handles. The database is closed even if the cache fails."""
        try:
            await self.cache.close()
        finally:
            await self.database.close()
