"""Shared fixtures: an in-memory archive backend that records handle lifecycles."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional

import pytest

from zim_reader.errors import (
    ArticleNotFoundError,
    ItemLoadError,
    QueryParseError,
    ResultRetrievalError,
    SearchExecutionError,
)
from zim_reader.services.archive import SearchHit


@dataclass
class FakeArticle:
    mimetype: str = "text/html"
    data: bytes = b""
    redirect_to: Optional[str] = None


class FakeHandle:
    def __init__(self, archive: "FakeArchive", kind: str) -> None:
        self.archive = archive
        self.kind = kind
        self.closed = False
        archive.opened.append(self)

    def close(self) -> None:
        self.closed = True


class FakeItem(FakeHandle):
    def __init__(self, archive: "FakeArchive", article: FakeArticle) -> None:
        super().__init__(archive, "item")
        self._article = article

    @property
    def mimetype(self) -> str:
        return self._article.mimetype

    @property
    def data(self) -> bytes:
        return self._article.data


class FakeEntry(FakeHandle):
    def __init__(self, archive: "FakeArchive", path: str) -> None:
        super().__init__(archive, "entry")
        self.path = path

    def get_item(self, follow_redirects: bool = True) -> FakeItem:
        if "item" in self.archive.fail_on:
            raise ItemLoadError("Failed to load article item: corrupt cluster")
        article = self.archive.articles[self.path]
        while article.redirect_to is not None:
            if not follow_redirects:
                raise ItemLoadError(f"Failed to load article item: '{self.path}' is a redirect")
            article = self.archive.articles[article.redirect_to]
        return FakeItem(self.archive, article)


class FakeQuery(FakeHandle):
    def __init__(self, archive: "FakeArchive", text: str) -> None:
        super().__init__(archive, "query")
        self.text = text


class FakeSearch(FakeHandle):
    def __init__(self, archive: "FakeArchive") -> None:
        super().__init__(archive, "search")

    def get_results(self, start: int, count: int) -> List[SearchHit]:
        if "results" in self.archive.fail_on:
            raise ResultRetrievalError("Failed to retrieve results: index truncated")
        self.archive.requested_ranges.append((start, count))
        return list(self.archive.hits[start : start + count])


class FakeSearcher(FakeHandle):
    def __init__(self, archive: "FakeArchive") -> None:
        super().__init__(archive, "searcher")

    def search(self, query: FakeQuery) -> FakeSearch:
        if "search" in self.archive.fail_on:
            raise SearchExecutionError("Search execution failed: xapian error")
        return FakeSearch(self.archive)


class FakeArchive:
    """ArchiveBackend double backed by plain dicts."""

    def __init__(
        self,
        articles: Optional[Dict[str, FakeArticle]] = None,
        hits: Optional[List[SearchHit]] = None,
        has_index: bool = True,
        fail_on: tuple = (),
    ) -> None:
        self.articles = dict(articles or {})
        self.hits = list(hits or [])
        self.has_index = has_index
        self.fail_on = set(fail_on)
        self.opened: List[FakeHandle] = []
        self.requested_ranges: List[tuple] = []
        self.closed = False

    def has_fulltext_index(self) -> bool:
        return self.has_index

    def get_entry_by_path(self, path: str) -> FakeEntry:
        if path not in self.articles:
            raise ArticleNotFoundError(f"Article not found for path '{path}': no such entry")
        return FakeEntry(self, path)

    def new_query(self, text: str) -> FakeQuery:
        if "query" in self.fail_on:
            raise QueryParseError("Failed to parse query: unbalanced quote")
        return FakeQuery(self, text)

    def new_searcher(self) -> FakeSearcher:
        if "searcher" in self.fail_on:
            raise SearchExecutionError("Failed to initialize searcher: no index")
        return FakeSearcher(self)

    def close(self) -> None:
        self.closed = True

    def opened_kinds(self) -> List[str]:
        return [handle.kind for handle in self.opened]

    def leaked(self) -> List[FakeHandle]:
        return [handle for handle in self.opened if not handle.closed]


ARTICLE_HTML = b"""<html><head><title>Dog</title><style>p{color:red}</style></head>
<body>
<h1>Dog</h1>
<p>The <a href="/wiki/Dog">dog</a> is a <b>domesticated</b> descendant of the
<a href="https://en.wikipedia.org/wiki/Wolf" title="Wolf">wolf</a>.</p>
<p><a href="/wiki/File:Dog.jpg"><img src="dog.jpg" alt="A dog"></a></p>
<picture><source srcset="dog.webp"><span>hidden caption</span></picture>
<svg><text>vector label</text></svg>
<p>Dogs were domesticated long ago.</p>
</body></html>"""


@pytest.fixture
def archive() -> FakeArchive:
    return FakeArchive(
        articles={
            "A/Dog": FakeArticle("text/html", ARTICLE_HTML),
            "A/Doggo": FakeArticle("text/html", b"", redirect_to="A/Dog"),
            "A/Notes.txt": FakeArticle("text/plain", "Plain été notes\n\n\n\nend".encode("utf-8")),
            "I/dog.jpg": FakeArticle("image/jpeg", b"\xff\xd8\xff\xe0binary"),
        },
        hits=[
            SearchHit(title="&lt;b&gt;Dog&lt;/b&gt;  ", path="A/Dog", score=97),
            SearchHit(title="Dog <i>breeds</i>", path="A/Dog_breeds", score=80),
            SearchHit(title="  Hot &amp; dog", path="A/Hot_dog", score=64),
        ],
    )


@pytest.fixture
def make_archive():
    """Factory for archives with custom articles, hits or failure points."""
    return FakeArchive


@pytest.fixture
def make_article():
    return FakeArticle
