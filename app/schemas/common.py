"""Shared response envelopes."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model serialised with camelCase keys (``by_alias=True``)."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class Pagination(CamelModel):
    page: int = Field(..., description="Current page (1-based).")
    limit: int = Field(..., description="Page size actually applied.")
    total: int = Field(..., description="Number of rows matching the query.")
    total_pages: int = Field(..., description="ceil(total / limit).")


class MessageResponse(BaseModel):
    message: str


def dump(model: BaseModel) -> dict[str, Any]:
    """JSON-ready dict with camelCase keys."""
    return model.model_dump(mode="json", by_alias=True)
