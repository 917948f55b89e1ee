"""Pydantic models for tool requests, responses and envelopes."""

from .article import ReadRequest, ReadResponse
from .envelope import ToolEnvelope, ToolError, envelope_from_exception
from .search import SearchRequest, SearchResponse, SearchResultItem

__all__ = [
    "SearchRequest",
    "SearchResponse",
    "SearchResultItem",
    "ReadRequest",
    "ReadResponse",
    "ToolEnvelope",
    "ToolError",
    "envelope_from_exception",
]
