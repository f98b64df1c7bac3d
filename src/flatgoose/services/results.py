"""Operation results returned by models.

INVARIANT: Result objects are frozen snapshots; they never reference the
live collection.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class UpdateResult(BaseModel):
    """Outcome of an update or replace.

    Attributes:
        matched_count: Documents that matched the filter.
        modified_count: Matched documents whose content actually changed.
    """

    model_config = {"frozen": True}

    matched_count: int = 0
    modified_count: int = 0


class DeleteResult(BaseModel):
    """Outcome of a delete."""

    model_config = {"frozen": True}

    deleted_count: int = 0


class InsertError(BaseModel):
    """A document rejected from a batch insert."""

    model_config = {"frozen": True}

    index: int
    errors: dict[str, str] = Field(default_factory=dict)


class InsertManyResult(BaseModel):
    """Outcome of a batch insert: stored documents plus per-index failures."""

    model_config = {"frozen": True}

    inserted: list[dict[str, Any]] = Field(default_factory=list)
    errors: list[InsertError] = Field(default_factory=list)

    @property
    def inserted_ids(self) -> list[str]:
        return [doc["_id"] for doc in self.inserted]
