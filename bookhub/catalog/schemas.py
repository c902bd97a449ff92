"""
Pydantic schema definitions for the catalog module.

The ``Book`` model is the record shared by the REST endpoints and the
realtime feed: an opaque ``id`` plus ``title`` and ``author``. Records
are frozen so that a list handed to one reader can never be changed
underneath it by a later update; the store replaces a record instead
of mutating it.

The remaining models describe the messages pushed to WebSocket
subscribers. Every message carries a ``type`` tag so that clients can
dispatch on it: one ``snapshot`` when the connection opens, then one
``book_added``, ``book_updated`` or ``book_deleted`` per mutation.
"""

from typing import List, Literal, Union

from pydantic import BaseModel, ConfigDict


class Book(BaseModel):
    """A single book entry."""

    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    author: str


class BookCreate(BaseModel):
    title: str
    author: str


class BookUpdate(BaseModel):
    title: str
    author: str


class CatalogSnapshot(BaseModel):
    """Full catalog state, sent once to each new subscriber."""

    type: Literal["snapshot"] = "snapshot"
    books: List[Book]


class BookAdded(BaseModel):
    type: Literal["book_added"] = "book_added"
    book: Book


class BookUpdated(BaseModel):
    type: Literal["book_updated"] = "book_updated"
    book: Book


class BookDeleted(BaseModel):
    type: Literal["book_deleted"] = "book_deleted"
    id: str


CatalogEvent = Union[BookAdded, BookUpdated, BookDeleted]
