"""Generic document API routes.

The tenant database and collection come from the path; the body carries
rows of typed field descriptors that are validated before the store is
touched.
"""

import structlog
from bson import ObjectId
from fastapi import APIRouter, Request
from fastapi.encoders import jsonable_encoder

from dynamic_api.core.errors import DocumentNotFoundError, MissingFieldError

from .schemas import InsertResponse, LookupResponse, RecordBatchRequest
from .services import DocumentRouterDep
from .validation import validate_and_project


router = APIRouter(tags=["documents"])


def _bind_target(request: Request, tenant_id: str, collection: str) -> None:
    """Expose the resolved tenant to request logging."""
    request.state.tenant_id = tenant_id
    structlog.contextvars.bind_contextvars(tenant_id=tenant_id, collection=collection)


@router.post(
    "/{tenant_id}/{collection}",
    response_model=InsertResponse,
    summary="Insert records",
    description="Validate a batch of typed field descriptors and insert the projected records.",
)
async def insert_records(
    tenant_id: str,
    collection: str,
    body: RecordBatchRequest,
    documents: DocumentRouterDep,
    request: Request,
) -> InsertResponse:
    """Validate and insert a record batch into a tenant collection."""
    _bind_target(request, tenant_id, collection)

    if not body.data:
        raise MissingFieldError("Missing data to insert")

    records = validate_and_project(body.data)
    summary = await documents.insert(tenant_id, collection, records)
    return InsertResponse(result=summary)


@router.post(
    "/{tenant_id}/{collection}/login",
    response_model=LookupResponse,
    summary="Look up a record",
    description=(
        "Validate a batch of typed field descriptors and find the first document "
        "equal to the batch's first row."
    ),
)
async def find_record(
    tenant_id: str,
    collection: str,
    body: RecordBatchRequest,
    documents: DocumentRouterDep,
    request: Request,
) -> LookupResponse:
    """Find a document matching the first row of the batch."""
    _bind_target(request, tenant_id, collection)

    if not body.data:
        raise MissingFieldError("Missing data to check")

    records = validate_and_project(body.data)
    document = await documents.find_one(tenant_id, collection, records[0])
    if document is None:
        raise DocumentNotFoundError(
            f"No document in {collection} matches the given fields",
            resource=collection,
        )

    return LookupResponse(result=jsonable_encoder(document, custom_encoder={ObjectId: str}))
