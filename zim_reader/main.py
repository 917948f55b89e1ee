"""Command-line entry point: open the archive once, then serve MCP."""

import logging
from pathlib import Path
import sys
from typing import NoReturn, Optional

from dotenv import load_dotenv
from pydantic import ValidationError
import typer

from .errors import ArchiveOpenError
from .mcp.server import create_server, serve
from .services.archive import LibzimArchive
from .services.config import AppConfig, build_config
from .services.tool_executor import ToolExecutor

logger = logging.getLogger(__name__)

USAGE = "Usage: zim-reader -z <path-to-zim-file> [--listen :4545]"

app = typer.Typer(add_completion=False, help="Serve a ZIM archive to MCP clients.")


def configure_logging(level: str = "INFO") -> None:
    """Log to stderr; stdout carries the stdio transport."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
        force=True,
    )


def _fail(message: str) -> NoReturn:
    typer.echo(f"Error: {message}", err=True)
    typer.echo(USAGE, err=True)
    raise typer.Exit(code=1)


def _load_config(zim: Optional[Path], listen: Optional[str], log_level: Optional[str]) -> AppConfig:
    try:
        return build_config(zim_path=zim, listen=listen, log_level=log_level)
    except ValidationError as exc:
        messages = "; ".join(error["msg"] for error in exc.errors())
        _fail(messages)


@app.command()
def run(
    zim: Optional[Path] = typer.Option(
        None, "-z", "--zim", help="Path to the .zim file (or ZIM_PATH)."
    ),
    listen: Optional[str] = typer.Option(
        None,
        "--listen",
        help="Listen address for HTTP (e.g. :4545). If empty, uses stdio (or MCP_LISTEN).",
    ),
    log_level: Optional[str] = typer.Option(
        None, "--log-level", help="Logging level (or LOG_LEVEL, default INFO)."
    ),
) -> None:
    """Open the ZIM archive and serve the search and read tools."""
    load_dotenv()
    config = _load_config(zim, listen, log_level)
    configure_logging(config.log_level)

    try:
        archive = LibzimArchive.open(config.zim_path)
    except ArchiveOpenError as exc:
        _fail(exc.message)

    try:
        logger.info(
            "Archive ready",
            extra={
                "zim_path": str(config.zim_path),
                "fulltext_index": archive.has_fulltext_index(),
            },
        )
        executor = ToolExecutor(archive, default_search_count=config.default_search_count)
        serve(create_server(executor), config.listen_address)
    finally:
        archive.close()


if __name__ == "__main__":
    app()
