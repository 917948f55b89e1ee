"""FastMCP server exposing ZIM search and read tools."""

from __future__ import annotations

from functools import partial
import json
import logging
import threading
from typing import Any, Dict, Optional, Tuple

import anyio
from fastmcp import FastMCP
from fastmcp.exceptions import ToolError
from fastmcp.tools.tool import ToolResult
from mcp.types import TextContent
from pydantic import Field, StrictInt

from ..models.envelope import ToolEnvelope
from ..services.tool_executor import ToolExecutor

logger = logging.getLogger(__name__)

SERVER_NAME = "ZimReader"
SERVER_VERSION = "1.0.0"


def envelope_to_result(envelope: ToolEnvelope) -> ToolResult:
    """Render a success envelope as JSON content; raise ToolError for failures."""
    if not envelope.ok:
        raise ToolError(envelope.message or "Tool execution failed")
    payload = envelope.data or {}
    return ToolResult(
        content=[TextContent(type="text", text=json.dumps(payload, ensure_ascii=False))],
        structured_content=payload,
    )


async def run_tool(
    executor: ToolExecutor, name: str, arguments: Dict[str, Any]
) -> ToolEnvelope:
    """Run a dispatcher call in a worker thread, signalling it if the caller cancels."""
    cancelled = threading.Event()
    try:
        return await anyio.to_thread.run_sync(
            partial(executor.execute, name, arguments, cancelled),
            abandon_on_cancel=True,
        )
    except anyio.get_cancelled_exc_class():
        cancelled.set()
        logger.info("MCP tool cancelled", extra={"tool_name": name})
        raise


def create_server(executor: ToolExecutor) -> FastMCP:
    """Build the MCP server bound to one executor (and its archive)."""
    mcp = FastMCP(
        SERVER_NAME,
        version=SERVER_VERSION,
        instructions=(
            "Offline ZIM archive tools. Use 'search' to find articles (results carry "
            "title, path and score, most relevant first) and 'read' with an exact path "
            "to fetch an article as compact Markdown. Redirects are followed; images "
            "and internal navigation links are stripped."
        ),
    )
    search_spec = executor.get_tool_spec("search")
    read_spec = executor.get_tool_spec("read")

    @mcp.tool(name=search_spec.name, description=search_spec.description)
    async def search(
        query: str = Field(..., description="The keyword or phrase to search for."),
        count: Optional[StrictInt] = Field(
            default=None, description="Number of results to return. Defaults to 20."
        ),
    ) -> ToolResult:
        arguments: Dict[str, Any] = {"query": query}
        if count is not None:
            arguments["count"] = count
        return envelope_to_result(await run_tool(executor, "search", arguments))

    @mcp.tool(name=read_spec.name, description=read_spec.description)
    async def read(
        path: str = Field(
            ..., description="The exact Path of the article (obtained from search)."
        ),
    ) -> ToolResult:
        return envelope_to_result(await run_tool(executor, "read", {"path": path}))

    return mcp


def serve(mcp: FastMCP, listen_address: Optional[Tuple[str, int]] = None) -> None:
    """Serve over streamable HTTP when an address is given, stdio otherwise."""
    if listen_address is not None:
        host, port = listen_address
        logger.info(
            "Starting MCP server",
            extra={"transport": "http", "host": host, "port": port},
        )
        mcp.run(transport="http", host=host, port=port)
    else:
        logger.info("Starting MCP server", extra={"transport": "stdio"})
        mcp.run(transport="stdio")


__all__ = ["create_server", "envelope_to_result", "run_tool", "serve"]
