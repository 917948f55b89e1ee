"""Error taxonomy for archive operations."""

from __future__ import annotations


class ZimReaderError(Exception):
    """Base class for per-call and startup errors with a client-safe message."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ArchiveOpenError(ZimReaderError):
    """Raised when the ZIM archive cannot be opened."""


class MissingIndexError(ZimReaderError):
    """Raised when a search is requested on an archive without a full-text index."""


class QueryParseError(ZimReaderError):
    """Raised when the search engine rejects a query."""


class SearchExecutionError(ZimReaderError):
    """Raised when the searcher cannot be created or the search fails."""


class ResultRetrievalError(ZimReaderError):
    """Raised when ranked hits cannot be read back from a search."""


class ArticleNotFoundError(ZimReaderError):
    """Raised when no entry exists at the requested path."""


class ItemLoadError(ZimReaderError):
    """Raised when an entry's content cannot be loaded."""


class UnsupportedContentTypeError(ZimReaderError):
    """Raised for items that are not HTML or plain text."""


class ConversionError(ZimReaderError):
    """Raised when HTML cannot be rendered to Markdown."""


class OperationCancelled(ZimReaderError):
    """Raised when the caller cancelled the request mid-flight."""


__all__ = [
    "ZimReaderError",
    "ArchiveOpenError",
    "MissingIndexError",
    "QueryParseError",
    "SearchExecutionError",
    "ResultRetrievalError",
    "ArticleNotFoundError",
    "ItemLoadError",
    "UnsupportedContentTypeError",
    "ConversionError",
    "OperationCancelled",
]
