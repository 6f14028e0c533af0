"""Pydantic schemas for the generic document endpoints."""

from typing import Any

from pydantic import BaseModel, Field


class RecordBatchRequest(BaseModel):
    """Body of insert and lookup requests.

    ``data`` is a list of rows; each row maps a field name to its
    descriptor (``type``, ``value`` and optional constraints). Rows are
    left untyped here so the record validator reports malformed ones.
    """

    data: list[Any] | None = Field(
        None,
        description="Rows of typed field descriptors",
        examples=[[{"name": {"type": "string", "value": "Sam", "required": True}}]],
    )


class InsertSummary(BaseModel):
    """Outcome of a batch insert as reported by the store."""

    acknowledged: bool
    inserted_count: int
    inserted_ids: list[str]


class InsertResponse(BaseModel):
    """Schema for a successful insert."""

    message: str = "Data inserted successfully"
    result: InsertSummary


class LookupResponse(BaseModel):
    """Schema for a successful lookup."""

    message: str = "Data Found successfully"
    result: dict[str, Any]
