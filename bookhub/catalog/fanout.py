"""
Realtime fan-out of catalogue changes.

``FanoutChannel`` keeps one ``Subscription`` per connected client. A
subscription is a queue of JSON-ready messages; whoever owns the
connection (the WebSocket route) drains it and writes to the socket.
The channel itself knows nothing about sockets.

Ordering: ``subscribe`` enqueues the snapshot before the subscription
becomes visible to ``publish``, and ``publish`` enqueues synchronously,
so each subscriber sees its snapshot followed by every later event in
publish order. Delivery is best-effort. Nothing is replayed, and a
client that misses events catches up only by subscribing again.
"""

from __future__ import annotations

import asyncio
import itertools
import logging
from typing import Any, Dict, List, Optional

from .schemas import CatalogEvent, CatalogSnapshot
from .store import CatalogStore


logger = logging.getLogger(__name__)

Message = Dict[str, Any]

# Marks the end of a subscription's stream.
_CLOSED: Message = {"type": "closed"}


class Subscription:
    """Handle for one subscriber's message stream."""

    def __init__(self, subscription_id: int, max_pending: int = 0) -> None:
        self.id = subscription_id
        self.active = True
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=max_pending)

    def __repr__(self) -> str:
        return f"Subscription(id={self.id}, active={self.active})"

    def offer(self, message: Message) -> bool:
        """Queue a message without waiting. Returns ``False`` if full."""
        try:
            self._queue.put_nowait(message)
        except asyncio.QueueFull:
            return False
        return True

    def close(self) -> None:
        if not self.active:
            return
        self.active = False
        while not self._queue.empty():
            self._queue.get_nowait()
        self._queue.put_nowait(_CLOSED)

    async def receive(self) -> Optional[Message]:
        """Wait for the next message; ``None`` once the stream has ended."""
        message = await self._queue.get()
        if message is _CLOSED:
            return None
        return message

    def drain(self) -> List[Message]:
        """Return every message queued right now, without waiting.

        The end-of-stream marker stays queued, so ``receive`` still
        returns ``None`` afterwards on a closed subscription.
        """
        messages: List[Message] = []
        while not self._queue.empty():
            message = self._queue.get_nowait()
            if message is _CLOSED:
                self._queue.put_nowait(_CLOSED)
                break
            messages.append(message)
        return messages


class FanoutChannel:
    """Broadcasts catalogue events to every registered subscription.

    The channel reads the store to build snapshots but never changes
    it. Callers mutate the store first and call ``publish`` only once
    the mutation has succeeded.

    Parameters
    ----------
    store : CatalogStore
        Source of the snapshot sent to new subscribers.
    max_pending : int
        Per-subscriber queue bound. A subscriber that falls this far
        behind is dropped. ``0`` means unbounded.
    """

    def __init__(self, store: CatalogStore, max_pending: int = 0) -> None:
        self.store = store
        self.max_pending = max_pending
        self._subscriptions: Dict[int, Subscription] = {}
        self._ids = itertools.count(1)

    @property
    def subscriber_count(self) -> int:
        return len(self._subscriptions)

    def subscribe(self) -> Subscription:
        subscription = Subscription(next(self._ids), self.max_pending)
        snapshot = CatalogSnapshot(books=self.store.list())
        # A bounded queue always has room for this first message.
        subscription.offer(snapshot.model_dump(mode="json"))
        self._subscriptions[subscription.id] = subscription
        logger.debug("Subscriber %d joined (%d total)", subscription.id, self.subscriber_count)
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        if self._subscriptions.pop(subscription.id, None) is not None:
            logger.debug("Subscriber %d left (%d total)", subscription.id, self.subscriber_count)
        subscription.close()

    def publish(self, event: CatalogEvent) -> int:
        """Queue ``event`` for every current subscriber.

        Returns the number of subscribers the event reached. Subscribers
        whose queue is full are dropped; the others are unaffected.
        """
        message = event.model_dump(mode="json")
        delivered = 0
        for subscription in list(self._subscriptions.values()):
            if subscription.offer(message):
                delivered += 1
                continue
            logger.warning(
                "Dropping subscriber %d: %d messages pending",
                subscription.id,
                self.max_pending,
            )
            self.unsubscribe(subscription)
        return delivered
