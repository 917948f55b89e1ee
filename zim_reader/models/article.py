"""Article read models."""

from __future__ import annotations

from pydantic import BaseModel, Field


class ReadRequest(BaseModel):
    path: str = Field(
        ..., description="The exact Path of the article (obtained from search)."
    )


class ReadResponse(BaseModel):
    markdown: str


__all__ = ["ReadRequest", "ReadResponse"]
