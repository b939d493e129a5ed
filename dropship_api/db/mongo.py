"""MongoDB store management.

One ``MongoStore`` is built at startup, kept on ``app.state.store`` and handed
to route handlers through the ``get_store`` dependency.
"""

import asyncio
import logging
from typing import Annotated, Any, Optional

from fastapi import Depends, Request
from pymongo import ASCENDING, AsyncMongoClient
from pymongo.asynchronous.collection import AsyncCollection
from pymongo.server_api import ServerApi

from dropship_api.core.config import Settings
from dropship_api.core.errors import ServiceUnavailableError

logger = logging.getLogger(__name__)


class MongoStore:
    """Owns the Mongo client and the users/admins/products collections.

    Collections are only available once ``connect`` has succeeded; until then
    ``ready`` is False and data routes answer 503.
    """

    def __init__(self, settings: Settings, client: Optional[AsyncMongoClient] = None):
        self.settings = settings
        self._client = client
        self.users: Optional[AsyncCollection] = None
        self.admins: Optional[AsyncCollection] = None
        self.products: Optional[AsyncCollection] = None

    @property
    def ready(self) -> bool:
        return self.users is not None and self.admins is not None and self.products is not None

    def _make_client(self) -> AsyncMongoClient:
        return AsyncMongoClient(
            self.settings.mongodb_uri,
            server_api=ServerApi("1", strict=True, deprecation_errors=True),
            serverSelectionTimeoutMS=self.settings.server_selection_timeout_ms,
        )

    async def connect(self) -> None:
        """Ping the server, bind the collections and make sure indexes exist."""
        if not self.settings.mongodb_uri:
            raise RuntimeError("MONGODB_URI missing")
        if self._client is None:
            self._client = self._make_client()

        await self._client.admin.command("ping")
        db = self._client[self.settings.db_name]
        users = db[self.settings.users_collection]
        admins = db[self.settings.admins_collection]
        products = db[self.settings.products_collection]

        # Unique indexes are the real guard against concurrent duplicate signups
        await users.create_index([("email", ASCENDING)], unique=True)
        await admins.create_index([("employee_id", ASCENDING)], unique=True)
        await admins.create_index([("user_id", ASCENDING)], unique=True)
        try:
            await products.create_index([("category", ASCENDING)])
        except Exception as e:
            logger.warning(f"Could not create category index: {e}")

        self.users, self.admins, self.products = users, admins, products
        logger.info(
            f"Mongo connected → {self.settings.db_name}.{self.settings.products_collection}"
        )

    async def connect_with_retry(self) -> None:
        """Keep trying to connect on a fixed delay until it succeeds."""
        while not self.ready:
            try:
                await self.connect()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error(f"Mongo connect failed: {e}")
                await asyncio.sleep(self.settings.reconnect_delay_seconds)

    async def ping(self) -> bool:
        if not self.ready or self._client is None:
            return False
        try:
            await self._client.admin.command("ping")
            return True
        except Exception as e:
            logger.warning(f"Mongo ping failed: {e}")
            return False

    async def close(self) -> None:
        if self._client is not None:
            await self._client.close()
        self.users = self.admins = self.products = None


def get_store(request: Request) -> Any:
    """Get the process-wide store dependency."""
    return request.app.state.store


def get_ready_store(store: Annotated[Any, Depends(get_store)]) -> Any:
    """Get the store, failing with 503 while it is not connected."""
    if not store.ready:
        raise ServiceUnavailableError("DB not ready")
    return store


# Type aliases for dependency injection
Store = Annotated[MongoStore, Depends(get_store)]
ReadyStore = Annotated[MongoStore, Depends(get_ready_store)]
