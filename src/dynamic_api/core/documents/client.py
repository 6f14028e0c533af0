"""MongoDB client configuration and connection management.

One AsyncMongoClient is shared by every request for the process
lifetime; tenant databases are resolved from it per request.
"""

from pymongo import AsyncMongoClient

from dynamic_api.config import settings


_client: AsyncMongoClient | None = None


def get_mongo_client() -> AsyncMongoClient:
    """Get or create the shared MongoDB client.

    The client connects lazily on its first operation.

    Usage:
        client = get_mongo_client()
        await client[tenant_id][collection].insert_one({...})
    """
    global _client
    if _client is None:
        _client = AsyncMongoClient(
            settings.mongo_uri,
            serverSelectionTimeoutMS=settings.mongo_server_selection_timeout_ms,
        )
    return _client


async def close_mongo_client() -> None:
    """Close the shared MongoDB client.

    Call this during application shutdown.
    """
    global _client
    if _client is not None:
        await _client.close()
        _client = None
