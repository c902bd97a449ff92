"""
Route definitions for the catalogue API.

Endpoints under /api/books:
- GET    /                : list every book in insertion order
- GET    /{book_id}       : get one book
- POST   /                : add a book
- PUT    /{book_id}       : replace a book's title and author
- DELETE /{book_id}       : remove a book
- WS     /ws              : snapshot on connect, then live change events

Every mutating route calls the store first and publishes to the
fan-out channel only when the store call succeeded. Handlers are
``async`` so that they run on the event loop, which keeps a store call
and its publish together with nothing interleaved.
"""

from __future__ import annotations

import asyncio
import logging
from typing import List

from fastapi import APIRouter, HTTPException, Request, WebSocket, status

from .fanout import FanoutChannel, Subscription
from .schemas import Book, BookAdded, BookCreate, BookDeleted, BookUpdate, BookUpdated
from .store import BookNotFoundError, BookValidationError, CatalogStore

router = APIRouter(prefix="/api/books", tags=["books"])
logger = logging.getLogger(__name__)


def _store(request: Request) -> CatalogStore:
    return request.app.state.store


def _channel(request: Request) -> FanoutChannel:
    return request.app.state.channel


@router.get("", response_model=List[Book])
async def list_books(request: Request) -> List[Book]:
    return _store(request).list()


@router.get("/{book_id}", response_model=Book)
async def get_book(book_id: str, request: Request) -> Book:
    try:
        return _store(request).get(book_id)
    except BookNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post("", response_model=Book, status_code=status.HTTP_201_CREATED)
async def add_book(req: BookCreate, request: Request) -> Book:
    try:
        book = _store(request).add(req.title, req.author)
    except BookValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    _channel(request).publish(BookAdded(book=book))
    return book


@router.put("/{book_id}", response_model=Book)
async def update_book(book_id: str, req: BookUpdate, request: Request) -> Book:
    try:
        book = _store(request).update(book_id, req.title, req.author)
    except BookValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except BookNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    _channel(request).publish(BookUpdated(book=book))
    return book


@router.delete("/{book_id}")
async def delete_book(book_id: str, request: Request):
    """Remove a book.

    With a lenient delete policy an unknown id is not an error: the
    response reports ``not_found`` and nothing is broadcast.
    """
    try:
        removed = _store(request).delete(book_id)
    except BookNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    if removed is None:
        return {"status": "not_found", "id": book_id}
    _channel(request).publish(BookDeleted(id=removed.id))
    return {"status": "ok", "id": removed.id}


# ---------------------------------------------------------------------------
# Realtime feed
#
# One subscription per socket. A pump task copies queued messages to the
# socket while the handler itself waits for the client to go away; client
# frames carry no meaning and are discarded. Whichever side finishes
# first, the subscription is released.


async def _pump(websocket: WebSocket, channel: FanoutChannel, subscription: Subscription) -> None:
    while True:
        message = await subscription.receive()
        if message is None:
            # Dropped by the channel.
            try:
                await websocket.close(code=status.WS_1013_TRY_AGAIN_LATER)
            except Exception as exc:
                logger.debug("Close of subscriber %d failed: %s", subscription.id, exc)
            return
        try:
            await websocket.send_json(message)
        except Exception as exc:
            logger.debug("Send to subscriber %d failed: %s", subscription.id, exc)
            channel.unsubscribe(subscription)
            return


@router.websocket("/ws")
async def catalog_feed(websocket: WebSocket) -> None:
    channel: FanoutChannel = websocket.app.state.channel
    await websocket.accept()
    subscription = channel.subscribe()
    pump = asyncio.create_task(_pump(websocket, channel, subscription))
    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break
    finally:
        channel.unsubscribe(subscription)
        pump.cancel()
        await asyncio.gather(pump, return_exceptions=True)
