"""Generic document operations scoped to one tenant database."""

from typing import Annotated, Any

import structlog
from fastapi import Depends
from pymongo import AsyncMongoClient
from pymongo.asynchronous.collection import AsyncCollection
from pymongo.errors import PyMongoError

from dynamic_api.core.documents import (
    ensure_valid_collection_name,
    ensure_valid_database_name,
    get_mongo_client,
)
from dynamic_api.core.errors import StoreError

from .schemas import InsertSummary


logger = structlog.get_logger()


class DocumentRouter:
    """Routes insert and lookup operations to a tenant's collection.

    The Mongo client is shared and owned by the application; this class
    only resolves ``client[tenant_id][collection]`` per call, so no
    operation can reach outside the named tenant database.
    """

    def __init__(
        self,
        client: Annotated[AsyncMongoClient, Depends(get_mongo_client)],
    ) -> None:
        self.client = client

    def resolve(self, tenant_id: str, collection: str) -> AsyncCollection:
        """Resolve the tenant handle for a request.

        Raises:
            InvalidTenantError: If either name is unusable
        """
        ensure_valid_database_name(tenant_id)
        ensure_valid_collection_name(collection)
        return self.client[tenant_id][collection]

    async def insert(
        self,
        tenant_id: str,
        collection: str,
        records: list[dict[str, Any]],
    ) -> InsertSummary:
        """Insert projected records as one batch.

        The collection is created by the store if it does not exist.

        Raises:
            StoreError: If the store rejects the batch
        """
        target = self.resolve(tenant_id, collection)
        try:
            result = await target.insert_many(records)
        except PyMongoError as e:
            logger.error(
                "records_insert_failed",
                tenant_id=tenant_id,
                collection=collection,
                error=str(e),
            )
            raise StoreError(
                "Error occurred during data insertion",
                details={"cause": str(e)},
            ) from e

        inserted_ids = [str(inserted_id) for inserted_id in result.inserted_ids]
        logger.info(
            "records_inserted",
            tenant_id=tenant_id,
            collection=collection,
            count=len(inserted_ids),
        )
        return InsertSummary(
            acknowledged=result.acknowledged,
            inserted_count=len(inserted_ids),
            inserted_ids=inserted_ids,
        )

    async def find_one(
        self,
        tenant_id: str,
        collection: str,
        query: dict[str, Any],
    ) -> dict[str, Any] | None:
        """Find the first document equal to ``query`` on every given key.

        Each value is wrapped in ``$eq`` so it is compared literally;
        an object value such as ``{"$ne": null}`` never acts as an operator.

        Returns:
            The document, or None when nothing matches

        Raises:
            StoreError: If the query fails
        """
        target = self.resolve(tenant_id, collection)
        try:
            document = await target.find_one(
                {key: {"$eq": value} for key, value in query.items()}
            )
        except PyMongoError as e:
            logger.error(
                "record_lookup_failed",
                tenant_id=tenant_id,
                collection=collection,
                error=str(e),
            )
            raise StoreError(
                "Error occurred during data lookup",
                details={"cause": str(e)},
            ) from e

        logger.info(
            "record_lookup",
            tenant_id=tenant_id,
            collection=collection,
            found=document is not None,
        )
        return document


# Type alias for dependency injection
DocumentRouterDep = Annotated[DocumentRouter, Depends(DocumentRouter)]
