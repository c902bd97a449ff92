"""
In-memory data store for the catalogue.

``CatalogStore`` owns the authoritative, ordered list of ``Book``
records and is the only code that changes it. Each operation runs
under one lock, so readers always see a complete list and never a
half-applied mutation. Identifiers come from a per-store counter and
are never handed out twice, even after the record is deleted.

A store may be pre-seeded at startup from a JSON file (see
``load_seed_books``); nothing is ever written back to disk.
"""

from __future__ import annotations

import itertools
import json
import logging
import threading
from pathlib import Path
from typing import Iterable, List, Optional, Tuple, Union

from .schemas import Book


logger = logging.getLogger(__name__)


class CatalogError(Exception):
    """Base class for errors reported by the catalogue store."""


class BookValidationError(CatalogError, ValueError):
    """A title or author was missing or blank."""


class BookNotFoundError(CatalogError, LookupError):
    """An operation referenced an identifier the store does not hold."""

    def __init__(self, book_id: str) -> None:
        super().__init__(f"Book not found: {book_id}")
        self.book_id = book_id


def _clean(field: str, value: Optional[str]) -> str:
    cleaned = (value or "").strip()
    if not cleaned:
        raise BookValidationError(f"{field} must not be empty")
    return cleaned


class CatalogStore:
    """CRUD operations for the in-memory book list.

    Parameters
    ----------
    seed : Iterable[Tuple[str, str]], optional
        ``(title, author)`` pairs added in order when the store is
        created.
    strict_delete : bool
        When ``True`` (the default), deleting an unknown id raises
        ``BookNotFoundError``. When ``False`` it is a silent no-op.
    """

    def __init__(
        self,
        seed: Optional[Iterable[Tuple[str, str]]] = None,
        strict_delete: bool = True,
    ) -> None:
        self.strict_delete = strict_delete
        self._books: List[Book] = []
        self._ids = itertools.count(1)
        self._lock = threading.Lock()
        for title, author in seed or ():
            self.add(title, author)

    def __len__(self) -> int:
        with self._lock:
            return len(self._books)

    def _index_of(self, book_id: str) -> int:
        for index, book in enumerate(self._books):
            if book.id == book_id:
                return index
        raise BookNotFoundError(book_id)

    def list(self) -> List[Book]:
        with self._lock:
            return list(self._books)

    def get(self, book_id: str) -> Book:
        with self._lock:
            return self._books[self._index_of(book_id)]

    def add(self, title: str, author: str) -> Book:
        title = _clean("title", title)
        author = _clean("author", author)
        with self._lock:
            book = Book(id=str(next(self._ids)), title=title, author=author)
            self._books.append(book)
        logger.info("Added book %s (%r by %r)", book.id, book.title, book.author)
        return book

    def update(self, book_id: str, title: str, author: str) -> Book:
        """Replace the title and author of an existing record.

        The record keeps its identifier and its position in the list.
        Validation happens before the lookup, so a rejected call never
        touches the catalogue.
        """
        title = _clean("title", title)
        author = _clean("author", author)
        with self._lock:
            index = self._index_of(book_id)
            book = self._books[index].model_copy(update={"title": title, "author": author})
            self._books[index] = book
        logger.info("Updated book %s", book.id)
        return book

    def delete(self, book_id: str) -> Optional[Book]:
        """Remove a record and return it.

        Returns ``None`` for an unknown id when the store was built with
        ``strict_delete=False``; otherwise raises ``BookNotFoundError``.
        """
        with self._lock:
            try:
                index = self._index_of(book_id)
            except BookNotFoundError:
                if self.strict_delete:
                    raise
                logger.debug("Ignoring delete of unknown book %s", book_id)
                return None
            book = self._books.pop(index)
        logger.info("Deleted book %s", book.id)
        return book


def load_seed_books(path: Union[str, Path]) -> List[Tuple[str, str]]:
    """Read ``(title, author)`` pairs from a JSON seed file.

    The file holds a list of objects with a ``title`` and either an
    ``author`` string or an ``authors`` list (joined with ``", "``).
    Entries without a usable title or author are skipped. A missing or
    malformed file yields an empty list; problems are logged rather
    than raised so that the service can still start.

    Parameters
    ----------
    path : str or Path
        Location of the seed file.

    Returns
    -------
    List[Tuple[str, str]]
        The pairs in file order.
    """
    seed_path = Path(path)
    try:
        with seed_path.open("r", encoding="utf-8") as f:
            raw = json.load(f)
    except (OSError, ValueError) as exc:
        logger.warning("Could not read seed file %s: %s", seed_path, exc)
        return []
    if not isinstance(raw, list):
        logger.warning("Seed file %s must contain a JSON list", seed_path)
        return []

    pairs: List[Tuple[str, str]] = []
    for position, entry in enumerate(raw):
        if not isinstance(entry, dict):
            logger.warning("Skipping seed entry %d: not an object", position)
            continue
        authors = entry.get("authors")
        if isinstance(authors, list):
            author = ", ".join(str(a) for a in authors if a)
        else:
            author = str(entry.get("author") or "")
        title = str(entry.get("title") or "")
        if not title.strip() or not author.strip():
            logger.warning("Skipping seed entry %d: title and author are required", position)
            continue
        pairs.append((title, author))
    logger.info("Loaded %d seed books from %s", len(pairs), seed_path)
    return pairs
