"""Service layer for archive access, search, reading and tool dispatch."""

from .archive import ArchiveBackend, LibzimArchive, SearchHit
from .config import AppConfig, build_config
from .markdown import MarkdownPostProcessor, collapse_newlines, normalize_links
from .reader import ArticleReader
from .search import SearchService, sanitize_title
from .tool_executor import ToolExecutor, ToolSpec

__all__ = [
    "AppConfig",
    "build_config",
    "ArchiveBackend",
    "LibzimArchive",
    "SearchHit",
    "MarkdownPostProcessor",
    "collapse_newlines",
    "normalize_links",
    "ArticleReader",
    "SearchService",
    "sanitize_title",
    "ToolExecutor",
    "ToolSpec",
]
