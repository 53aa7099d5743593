"""
Internal pydantic models.
"""
from enum import Enum
from typing import Any
from pydantic import BaseModel, ConfigDict, field_validator


class IdStrategy(Enum):
    """
    IdStrategy decides how a record gets its id on insert.

    opaque: the store assigns an ObjectId at insert time
    sequential: an integer taken from an atomic per-collection counter
    random: a random numeric string of fixed length, checked for collisions
    """

    opaque = "opaque"
    sequential = "sequential"
    random = "random"


class UpdateOptions(BaseModel):
    model_config = ConfigDict(frozen=True)

    force_insert: bool = False
    preserve_id: bool = False


class SearchOptions(BaseModel):
    model_config = ConfigDict(frozen=True)

    query: dict[str, Any] = {}
    sort: list[tuple[str, int]] | None = None
    skip: int = 0
    limit: int = 0

    @field_validator("query", mode="before")
    @classmethod
    def _empty_query(cls, value: Any) -> Any:
        return value or {}

    @field_validator("sort", mode="before")
    @classmethod
    def _sort_pairs(cls, value: Any) -> Any:
        # pymongo wants an ordered list of (key, direction) pairs
        if isinstance(value, dict):
            return list(value.items())
        if isinstance(value, str):
            return [(value, 1)]
        return value or None
