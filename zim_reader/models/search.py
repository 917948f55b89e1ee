"""Search request/response models."""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field, StrictInt, field_validator


class SearchResultItem(BaseModel):
    """A single ranked match with a markup-free title."""

    title: str
    path: str = Field(..., description="Exact archive path, usable with the read tool")
    score: int = Field(..., description="Relevance score as reported by the engine")


class SearchResponse(BaseModel):
    """Ranked search hits, most relevant first."""

    results: List[SearchResultItem] = Field(default_factory=list)


class SearchRequest(BaseModel):
    """Full-text search query parameters."""

    query: str = Field(..., description="The keyword or phrase to search for.")
    count: Optional[StrictInt] = Field(
        default=None,
        ge=1,
        description="Number of results to return. Defaults to 20.",
    )

    @field_validator("query")
    @classmethod
    def _require_text(cls, value: str) -> str:
        cleaned = value.strip()
        if not cleaned:
            raise ValueError("query must not be empty")
        return cleaned


__all__ = ["SearchResultItem", "SearchResponse", "SearchRequest"]
