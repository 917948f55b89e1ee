"""ZIM archive access.

The operations layer only talks to the ``ArchiveBackend`` capability set so any
conforming backend can be swapped in. ``LibzimArchive`` is the production
backend built on python-libzim.

libzim is not safe for concurrent use, so every native call that touches the
shared archive is serialized behind one lock owned by the archive. Per-call
handles (entry, item, query, searcher, search) expose ``close()`` and drop
their native reference when closed.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
from pathlib import Path
import threading
from typing import Any, List, Optional, Protocol

from libzim.reader import Archive
from libzim.search import Query, Searcher

from ..errors import (
    ArchiveOpenError,
    ArticleNotFoundError,
    ItemLoadError,
    QueryParseError,
    ResultRetrievalError,
    SearchExecutionError,
)

logger = logging.getLogger(__name__)

MAX_REDIRECT_HOPS = 50


@dataclass(frozen=True)
class SearchHit:
    """A ranked hit as reported by the search engine."""

    title: str
    path: str
    score: int


class ItemHandle(Protocol):
    @property
    def mimetype(self) -> str: ...

    @property
    def data(self) -> bytes: ...

    def close(self) -> None: ...


class EntryHandle(Protocol):
    @property
    def path(self) -> str: ...

    def get_item(self, follow_redirects: bool = True) -> ItemHandle: ...

    def close(self) -> None: ...


class QueryHandle(Protocol):
    def close(self) -> None: ...


class SearchHandle(Protocol):
    def get_results(self, start: int, count: int) -> List[SearchHit]: ...

    def close(self) -> None: ...


class SearcherHandle(Protocol):
    def search(self, query: QueryHandle) -> SearchHandle: ...

    def close(self) -> None: ...


class ArchiveBackend(Protocol):
    """Capability set the search and read operations rely on."""

    def has_fulltext_index(self) -> bool: ...

    def get_entry_by_path(self, path: str) -> EntryHandle: ...

    def new_query(self, text: str) -> QueryHandle: ...

    def new_searcher(self) -> SearcherHandle: ...

    def close(self) -> None: ...


class _NativeHandle:
    """Holds a native libzim object until ``close()`` releases it."""

    def __init__(self, native: Any) -> None:
        self._native = native

    @property
    def native(self) -> Any:
        if self._native is None:
            raise RuntimeError(f"{type(self).__name__} used after close()")
        return self._native

    def close(self) -> None:
        self._native = None


class LibzimItem(_NativeHandle):
    def __init__(self, native: Any, lock: threading.Lock) -> None:
        super().__init__(native)
        self._lock = lock

    @property
    def mimetype(self) -> str:
        with self._lock:
            return self.native.mimetype or ""

    @property
    def data(self) -> bytes:
        with self._lock:
            return bytes(self.native.content)


class LibzimEntry(_NativeHandle):
    def __init__(self, native: Any, lock: threading.Lock) -> None:
        super().__init__(native)
        self._lock = lock

    @property
    def path(self) -> str:
        return self.native.path

    def get_item(self, follow_redirects: bool = True) -> LibzimItem:
        with self._lock:
            entry = self.native
            try:
                hops = 0
                while entry.is_redirect:
                    if not follow_redirects:
                        raise ItemLoadError(
                            f"Failed to load article item: '{entry.path}' is a redirect"
                        )
                    hops += 1
                    if hops > MAX_REDIRECT_HOPS:
                        raise ItemLoadError(
                            f"Failed to load article item: redirect loop at '{self.native.path}'"
                        )
                    entry = entry.get_redirect_entry()
                native_item = entry.get_item()
            except ItemLoadError:
                raise
            except Exception as exc:
                raise ItemLoadError(f"Failed to load article item: {exc}") from exc
        return LibzimItem(native_item, self._lock)


class LibzimQuery(_NativeHandle):
    pass


class LibzimSearch(_NativeHandle):
    def __init__(self, native: Any, archive: "LibzimArchive") -> None:
        super().__init__(native)
        self._archive = archive

    def get_results(self, start: int, count: int) -> List[SearchHit]:
        with self._archive.lock:
            try:
                paths = list(self.native.getResults(start, count))
            except Exception as exc:
                raise ResultRetrievalError(f"Failed to retrieve results: {exc}") from exc
            hits: List[SearchHit] = []
            for index, path in enumerate(paths):
                # python-libzim yields paths in relevance order without the
                # engine percentage; report a strictly decreasing rank score.
                hits.append(
                    SearchHit(
                        title=self._archive.title_for(path),
                        path=path,
                        score=len(paths) - index,
                    )
                )
            return hits


class LibzimSearcher(_NativeHandle):
    def __init__(self, native: Any, archive: "LibzimArchive") -> None:
        super().__init__(native)
        self._archive = archive

    def search(self, query: QueryHandle) -> LibzimSearch:
        if not isinstance(query, LibzimQuery):
            raise SearchExecutionError("Search execution failed: foreign query handle")
        with self._archive.lock:
            try:
                native_search = self.native.search(query.native)
            except Exception as exc:
                raise SearchExecutionError(f"Search execution failed: {exc}") from exc
        return LibzimSearch(native_search, self._archive)


class LibzimArchive:
    """Process-wide handle on one ZIM file."""

    def __init__(self, archive: Any, path: Path) -> None:
        self._archive: Optional[Any] = archive
        self.path = path
        self.lock = threading.Lock()

    @classmethod
    def open(cls, path: Path | str) -> "LibzimArchive":
        zim_path = Path(path)
        if not zim_path.is_file():
            raise ArchiveOpenError(f"Failed to open zim archive at {zim_path}: file not found")
        try:
            archive = Archive(zim_path)
        except Exception as exc:
            raise ArchiveOpenError(f"Failed to open zim archive at {zim_path}: {exc}") from exc
        logger.info(
            "Opened ZIM archive",
            extra={"zim_path": str(zim_path), "entry_count": archive.entry_count},
        )
        return cls(archive, zim_path)

    @property
    def archive(self) -> Any:
        if self._archive is None:
            raise RuntimeError("Archive is closed")
        return self._archive

    def has_fulltext_index(self) -> bool:
        with self.lock:
            return bool(self.archive.has_fulltext_index)

    def get_entry_by_path(self, path: str) -> LibzimEntry:
        with self.lock:
            try:
                native = self.archive.get_entry_by_path(path)
            except KeyError as exc:
                raise ArticleNotFoundError(
                    f"Article not found for path '{path}': {exc}"
                ) from exc
        return LibzimEntry(native, self.lock)

    def new_query(self, text: str) -> LibzimQuery:
        try:
            native = Query().set_query(text)
        except Exception as exc:
            raise QueryParseError(f"Failed to parse query: {exc}") from exc
        return LibzimQuery(native)

    def new_searcher(self) -> LibzimSearcher:
        with self.lock:
            try:
                native = Searcher(self.archive)
            except Exception as exc:
                raise SearchExecutionError(f"Failed to initialize searcher: {exc}") from exc
        return LibzimSearcher(native, self)

    def title_for(self, path: str) -> str:
        """Entry title for a result path; caller must hold ``lock``."""
        try:
            return self.archive.get_entry_by_path(path).title
        except KeyError:
            return path

    def close(self) -> None:
        if self._archive is not None:
            logger.info("Closing ZIM archive", extra={"zim_path": str(self.path)})
        self._archive = None


__all__ = [
    "ArchiveBackend",
    "EntryHandle",
    "ItemHandle",
    "QueryHandle",
    "SearchHandle",
    "SearcherHandle",
    "SearchHit",
    "LibzimArchive",
    "MAX_REDIRECT_HOPS",
]
