"""Document store access: shared client and naming rules."""

from dynamic_api.core.documents.client import close_mongo_client, get_mongo_client
from dynamic_api.core.documents.names import (
    ensure_valid_collection_name,
    ensure_valid_database_name,
)


__all__ = [
    "close_mongo_client",
    "ensure_valid_collection_name",
    "ensure_valid_database_name",
    "get_mongo_client",
]
