import asyncio

from bookhub.catalog.fanout import FanoutChannel
from bookhub.catalog.schemas import BookAdded, BookDeleted, BookUpdated


def test_subscribe_delivers_snapshot_first(store, channel):
    book = store.add("1984", "George Orwell")

    subscription = channel.subscribe()

    assert subscription.drain() == [
        {
            "type": "snapshot",
            "books": [{"id": book.id, "title": "1984", "author": "George Orwell"}],
        }
    ]


def test_snapshot_of_empty_catalog(channel):
    subscription = channel.subscribe()
    assert subscription.drain() == [{"type": "snapshot", "books": []}]


def test_late_subscriber_sees_update_once_and_no_add(store, channel):
    book = store.add("Original", "Author")
    channel.publish(BookAdded(book=book))

    s1 = channel.subscribe()
    updated = store.update(book.id, "Revised", book.author)
    channel.publish(BookUpdated(book=updated))

    snapshot, *events = s1.drain()
    assert snapshot["books"][0]["title"] == "Original"
    assert events == [
        {
            "type": "book_updated",
            "book": {"id": book.id, "title": "Revised", "author": "Author"},
        }
    ]


def test_events_arrive_in_publish_order(store, channel):
    first = channel.subscribe()
    second = channel.subscribe()
    first.drain()
    second.drain()

    a = store.add("A", "x")
    channel.publish(BookAdded(book=a))
    b = store.add("B", "y")
    channel.publish(BookAdded(book=b))
    store.delete(a.id)
    channel.publish(BookDeleted(id=a.id))

    expected = [
        {"type": "book_added", "book": {"id": a.id, "title": "A", "author": "x"}},
        {"type": "book_added", "book": {"id": b.id, "title": "B", "author": "y"}},
        {"type": "book_deleted", "id": a.id},
    ]
    assert first.drain() == expected
    assert second.drain() == expected


def test_publish_returns_number_reached(store, channel):
    assert channel.publish(BookDeleted(id="1")) == 0
    channel.subscribe()
    channel.subscribe()
    assert channel.publish(BookDeleted(id="1")) == 2


def test_unsubscribe_stops_delivery_and_is_idempotent(channel):
    subscription = channel.subscribe()
    other = channel.subscribe()

    channel.unsubscribe(subscription)
    channel.unsubscribe(subscription)

    assert not subscription.active
    assert channel.subscriber_count == 1
    assert channel.publish(BookDeleted(id="9")) == 1
    assert subscription.drain() == []
    assert other.drain()[-1] == {"type": "book_deleted", "id": "9"}


def test_receive_ends_after_unsubscribe(channel):
    subscription = channel.subscribe()

    async def consume():
        first = await subscription.receive()
        channel.unsubscribe(subscription)
        return first, await subscription.receive()

    snapshot, end = asyncio.run(consume())
    assert snapshot["type"] == "snapshot"
    assert end is None


def test_receive_ends_after_drain_of_closed_subscription(channel):
    subscription = channel.subscribe()
    channel.unsubscribe(subscription)

    assert subscription.drain() == []
    assert subscription.drain() == []
    end = asyncio.run(asyncio.wait_for(subscription.receive(), timeout=1))
    assert end is None


def test_slow_subscriber_is_dropped_without_affecting_others(store):
    channel = FanoutChannel(store, max_pending=2)
    slow = channel.subscribe()
    fast = channel.subscribe()

    channel.publish(BookDeleted(id="1"))
    fast.drain()

    reached = channel.publish(BookDeleted(id="2"))

    assert reached == 1
    assert not slow.active
    assert fast.active
    assert channel.subscriber_count == 1
    assert fast.drain() == [{"type": "book_deleted", "id": "2"}]


def test_channel_never_mutates_store(store, channel):
    book = store.add("Only", "One")
    channel.subscribe()
    channel.publish(BookDeleted(id=book.id))
    assert store.list() == [book]
