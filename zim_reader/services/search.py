"""Full-text search over the archive's Xapian index."""

from __future__ import annotations

from contextlib import ExitStack
import html
import logging
import re

from ..errors import MissingIndexError
from ..models.search import SearchResponse, SearchResultItem
from .archive import ArchiveBackend
from .config import DEFAULT_SEARCH_COUNT

logger = logging.getLogger(__name__)

HTML_TAG_PATTERN = re.compile(r"<[^>]*>")


def sanitize_title(title: str) -> str:
    """Unescape HTML entities, strip tags, trim whitespace."""
    cleaned = html.unescape(title)
    cleaned = HTML_TAG_PATTERN.sub("", cleaned)
    return cleaned.strip()


class SearchService:
    """Runs ranked searches against a shared archive handle."""

    def __init__(self, archive: ArchiveBackend, default_count: int = DEFAULT_SEARCH_COUNT) -> None:
        self.archive = archive
        self.default_count = default_count

    def search(self, query: str, count: int | None = None) -> SearchResponse:
        if not self.archive.has_fulltext_index():
            raise MissingIndexError("This ZIM file does not contain a full-text search index.")

        limit = count if count is not None else self.default_count
        with ExitStack() as stack:
            native_query = self.archive.new_query(query)
            stack.callback(native_query.close)
            searcher = self.archive.new_searcher()
            stack.callback(searcher.close)
            result_set = searcher.search(native_query)
            stack.callback(result_set.close)
            hits = result_set.get_results(0, limit)

        results = [
            SearchResultItem(title=sanitize_title(hit.title), path=hit.path, score=hit.score)
            for hit in hits[:limit]
        ]
        logger.debug(
            "Search complete",
            extra={"query": query, "limit": limit, "result_count": len(results)},
        )
        return SearchResponse(results=results)


__all__ = ["SearchService", "sanitize_title"]
