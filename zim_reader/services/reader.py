"""Article retrieval by exact archive path."""

from __future__ import annotations

from contextlib import ExitStack
import logging
import threading
from typing import Optional

from ..errors import UnsupportedContentTypeError
from ..models.article import ReadResponse
from .archive import ArchiveBackend
from .markdown import MarkdownPostProcessor

logger = logging.getLogger(__name__)

HTML_MIMETYPE = "text/html"
PLAIN_TEXT_MIMETYPE = "text/plain"


def _base_mimetype(mimetype: str) -> str:
    return mimetype.split(";", 1)[0].strip().lower()


class ArticleReader:
    """Loads an entry (following redirects) and renders it as Markdown."""

    def __init__(
        self,
        archive: ArchiveBackend,
        post_processor: Optional[MarkdownPostProcessor] = None,
    ) -> None:
        self.archive = archive
        self.post_processor = post_processor or MarkdownPostProcessor()

    def read(self, path: str, cancelled: Optional[threading.Event] = None) -> ReadResponse:
        with ExitStack() as stack:
            entry = self.archive.get_entry_by_path(path)
            stack.callback(entry.close)
            item = entry.get_item(follow_redirects=True)
            stack.callback(item.close)
            mimetype = item.mimetype
            kind = _base_mimetype(mimetype)
            if kind not in (HTML_MIMETYPE, PLAIN_TEXT_MIMETYPE):
                raise UnsupportedContentTypeError(
                    f"Cannot read non-text article (mimetype: {mimetype})"
                )
            data = item.data

        if kind == HTML_MIMETYPE:
            markdown = self.post_processor.convert(data, cancelled=cancelled)
        else:
            markdown = data.decode("utf-8", errors="replace")

        logger.debug(
            "Article read",
            extra={"article_path": path, "mimetype": mimetype, "markdown_length": len(markdown)},
        )
        return ReadResponse(markdown=markdown)


__all__ = ["ArticleReader"]
