"""HTML to compact Markdown conversion for article bodies."""

from __future__ import annotations

import logging
import re
import threading
from typing import Iterable, Optional

from bs4 import BeautifulSoup
from markdownify import ATX, MarkdownConverter

from ..errors import ConversionError, OperationCancelled

logger = logging.getLogger(__name__)

# Dropped with their whole subtree before rendering so alt text and captions
# nested inside never reach the output.
TOKEN_HEAVY_TAGS = ("img", "picture", "svg")
# Non-content elements the renderer's base ruleset never emits.
BASE_REMOVED_TAGS = (
    "head",
    "script",
    "style",
    "noscript",
    "iframe",
    "template",
    "link",
    "meta",
    "input",
    "textarea",
    "button",
    "select",
)

# Link targets may carry one level of balanced parentheses, as in
# Wikipedia's disambiguated titles: [Mercury](Mercury_(planet)).
LINK_PATTERN = re.compile(r"\[(.*?)\]\(((?:[^()]|\([^()]*\))*?)\)", re.DOTALL)
EXCESS_NEWLINES_PATTERN = re.compile(r"\n{3,}")
EXTERNAL_SCHEMES = ("http://", "https://")


class CommonMarkConverter(MarkdownConverter):
    """markdownify configured for CommonMark-flavoured output."""

    def __init__(self, **options):
        options.setdefault("heading_style", ATX)
        options.setdefault("bullets", "-")
        options.setdefault("strong_em_symbol", "*")
        options.setdefault("code_language", "")
        super().__init__(**options)


def _rewrite_link(match: re.Match) -> str:
    text, target = match.group(1), match.group(2)
    if not text.strip():
        return ""
    parts = target.split()
    url = parts[0] if parts else ""
    if not url.startswith(EXTERNAL_SCHEMES):
        return text
    return match.group(0)


def normalize_links(markdown: str) -> str:
    """
    Drop empty links and unwrap internal ones.

    ``[](img.png)`` disappears, ``[see here](/wiki/Foo)`` becomes ``see here``
    and links with an http(s) URL are left exactly as written.
    """
    return LINK_PATTERN.sub(_rewrite_link, markdown)


def collapse_newlines(markdown: str) -> str:
    """Collapse runs of three or more newlines to a single blank line."""
    return EXCESS_NEWLINES_PATTERN.sub("\n\n", markdown)


def _check_cancelled(cancelled: Optional[threading.Event]) -> None:
    if cancelled is not None and cancelled.is_set():
        raise OperationCancelled("Request cancelled during Markdown conversion")


class MarkdownPostProcessor:
    """Ordered, deterministic HTML -> Markdown pipeline."""

    def __init__(
        self,
        converter: Optional[MarkdownConverter] = None,
        removed_tags: Iterable[str] = TOKEN_HEAVY_TAGS + BASE_REMOVED_TAGS,
    ) -> None:
        self.converter = converter or CommonMarkConverter()
        self.removed_tags = tuple(removed_tags)

    def render(self, html: bytes | str) -> str:
        """Structural conversion with image-like subtrees removed up front."""
        try:
            soup = BeautifulSoup(html, "html.parser")
            for tag in soup.find_all(self.removed_tags):
                if not tag.decomposed:
                    tag.decompose()
            return self.converter.convert_soup(soup)
        except Exception as exc:
            raise ConversionError(f"Failed to convert HTML to Markdown: {exc}") from exc

    def convert(
        self,
        html: bytes | str,
        cancelled: Optional[threading.Event] = None,
    ) -> str:
        _check_cancelled(cancelled)
        markdown = self.render(html)
        _check_cancelled(cancelled)
        markdown = normalize_links(markdown)
        _check_cancelled(cancelled)
        markdown = collapse_newlines(markdown)
        _check_cancelled(cancelled)
        logger.debug(
            "Converted article HTML",
            extra={"html_length": len(html), "markdown_length": len(markdown)},
        )
        return markdown


__all__ = [
    "MarkdownPostProcessor",
    "CommonMarkConverter",
    "normalize_links",
    "collapse_newlines",
    "TOKEN_HEAVY_TAGS",
    "BASE_REMOVED_TAGS",
]
