"""Tool Executor - Dispatches tool calls to the search and read services.

Every call returns a ``ToolEnvelope``. Unknown tools and invalid arguments
short-circuit to a failure envelope before any handler runs, and faults
raised inside a handler are converted to failure envelopes here so nothing
escapes to the transport.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
import threading
import time
from typing import Any, Callable, Dict, List, Optional, Type

from pydantic import BaseModel, ValidationError

from ..errors import ZimReaderError
from ..models.article import ReadRequest
from ..models.envelope import ToolEnvelope, envelope_from_exception
from ..models.search import SearchRequest
from .archive import ArchiveBackend
from .config import DEFAULT_SEARCH_COUNT
from .markdown import MarkdownPostProcessor
from .reader import ArticleReader
from .search import SearchService

logger = logging.getLogger(__name__)

Handler = Callable[[Any, Optional[threading.Event]], BaseModel]


@dataclass(frozen=True)
class ToolSpec:
    name: str
    description: str
    request_model: Type[BaseModel]
    handler: Handler


def _format_validation_error(exc: ValidationError) -> str:
    problems = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ())) or "arguments"
        problems.append(f"{location}: {error.get('msg', 'invalid value')}")
    return "; ".join(problems)


class ToolExecutor:
    """
    Executes tool calls by routing to the archive services.

    The archive handle is passed in explicitly and shared read-only by all
    concurrent calls.
    """

    def __init__(
        self,
        archive: ArchiveBackend,
        search_service: Optional[SearchService] = None,
        article_reader: Optional[ArticleReader] = None,
        post_processor: Optional[MarkdownPostProcessor] = None,
        default_search_count: Optional[int] = None,
    ) -> None:
        """
        Initialize the tool executor with service dependencies.

        Args:
            archive: Shared archive backend
            search_service: SearchService instance (created if None)
            article_reader: ArticleReader instance (created if None)
            post_processor: Markdown pipeline for the default ArticleReader
            default_search_count: Hit count used when 'count' is omitted
        """
        self.archive = archive
        self.search_service = search_service or SearchService(
            archive, default_count=default_search_count or DEFAULT_SEARCH_COUNT
        )
        self.article_reader = article_reader or ArticleReader(archive, post_processor)

        # Tool registry mapping tool names to their schema and handler
        self._tools: Dict[str, ToolSpec] = {
            "search": ToolSpec(
                name="search",
                description=(
                    "Search the offline ZIM archive for articles. Returns a structured "
                    "JSON array of top hits with their Title, Path, and Score."
                ),
                request_model=SearchRequest,
                handler=self._search,
            ),
            "read": ToolSpec(
                name="read",
                description=(
                    "Read an article from the ZIM archive using its exact Path. The HTML "
                    "is converted to Markdown and returned within a JSON envelope."
                ),
                request_model=ReadRequest,
                handler=self._read,
            ),
        }

    @property
    def tool_names(self) -> List[str]:
        return list(self._tools)

    def get_tool_spec(self, name: str) -> ToolSpec:
        return self._tools[name]

    def get_tool_schemas(self) -> List[Dict[str, Any]]:
        """Return MCP-style tool definitions derived from the request models."""
        return [
            {
                "name": spec.name,
                "description": spec.description,
                "inputSchema": spec.request_model.model_json_schema(),
            }
            for spec in self._tools.values()
        ]

    def execute(
        self,
        name: str,
        arguments: Optional[Dict[str, Any]] = None,
        cancelled: Optional[threading.Event] = None,
    ) -> ToolEnvelope:
        """
        Execute a tool call and return its envelope.

        Args:
            name: Tool name to execute
            arguments: Raw tool arguments
            cancelled: Set by the transport when the caller gives up

        Returns:
            Success envelope carrying the response payload, or a failure
            envelope carrying a message
        """
        start_time = time.time()
        spec = self._tools.get(name)
        if spec is None:
            logger.warning(f"Unknown tool requested: {name}")
            return ToolEnvelope.failure(f"Unknown tool: {name}")

        try:
            request = spec.request_model.model_validate(arguments or {})
        except ValidationError as exc:
            logger.warning(f"Tool {name} validation error: {exc.error_count()} problem(s)")
            return ToolEnvelope.failure(f"Invalid arguments: {_format_validation_error(exc)}")

        try:
            envelope = ToolEnvelope.success(spec.handler(request, cancelled))
        except ZimReaderError as exc:
            logger.warning(f"Tool {name} failed: {exc.message}")
            envelope = envelope_from_exception(exc)
        except Exception as exc:
            logger.exception(f"Tool {name} execution failed: {exc}")
            envelope = envelope_from_exception(exc)

        duration_ms = (time.time() - start_time) * 1000
        logger.info(
            "MCP tool called",
            extra={
                "tool_name": name,
                "ok": envelope.ok,
                "duration_ms": f"{duration_ms:.2f}",
            },
        )
        return envelope

    # =========================================================================
    # Tool Implementations
    # =========================================================================

    def _search(self, request: SearchRequest, cancelled: Optional[threading.Event]) -> BaseModel:
        return self.search_service.search(request.query, request.count)

    def _read(self, request: ReadRequest, cancelled: Optional[threading.Event]) -> BaseModel:
        return self.article_reader.read(request.path, cancelled=cancelled)


__all__ = ["ToolExecutor", "ToolSpec"]
