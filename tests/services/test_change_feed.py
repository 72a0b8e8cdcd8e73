"""Tests for the push and polling report change feeds."""

import asyncio
import threading

import pytest

from frostwatch.core.errors import StorageUnavailableError
from frostwatch.services.change_feed import (
    ChangeEvent,
    PollingChangeFeed,
    PushChangeFeed,
    ReportChange,
    diff_snapshots,
)


def _change(report_id: str = "r1", event: ChangeEvent = ChangeEvent.INSERT) -> ReportChange:
    return ReportChange("report", event, report_id, {"id": report_id})


def test_as_message() -> None:
    message = _change("abc", ChangeEvent.UPDATE).as_message()
    assert message == {"type": "report_update", "report_id": "abc", "payload": {"id": "abc"}}


def test_diff_snapshots() -> None:
    previous = {"a": {"up": 0}, "b": {"up": 1}, "c": {"up": 2}}
    current = {"a": {"up": 0}, "b": {"up": 2}, "d": {"up": 0}}
    changes = {(c.report_id, c.event) for c in diff_snapshots(previous, current)}
    assert changes == {
        ("b", ChangeEvent.UPDATE),
        ("d", ChangeEvent.INSERT),
        ("c", ChangeEvent.DELETE),
    }


@pytest.mark.asyncio
async def test_push_feed_fans_out_to_every_subscriber() -> None:
    feed = PushChangeFeed()
    await feed.start()
    first, second = feed.subscribe(), feed.subscribe()

    feed.publish(_change())

    assert (await asyncio.wait_for(first.get(), 1)).report_id == "r1"
    assert (await asyncio.wait_for(second.get(), 1)).report_id == "r1"
    await feed.stop()


@pytest.mark.asyncio
async def test_push_feed_accepts_changes_from_worker_threads() -> None:
    feed = PushChangeFeed()
    await feed.start()
    subscription = feed.subscribe()

    thread = threading.Thread(target=feed.publish, args=(_change("from-thread"),))
    thread.start()
    thread.join()

    change = await asyncio.wait_for(subscription.get(), 1)
    assert change.report_id == "from-thread"
    await feed.stop()


@pytest.mark.asyncio
async def test_closed_subscription_stops_receiving() -> None:
    feed = PushChangeFeed()
    await feed.start()
    subscription = feed.subscribe()
    assert feed.subscriber_count == 1

    subscription.close()
    feed.publish(_change())

    assert feed.subscriber_count == 0
    assert subscription.pending() == 0
    await feed.stop()


@pytest.mark.asyncio
async def test_slow_subscriber_keeps_newest_changes() -> None:
    feed = PushChangeFeed(queue_size=2)
    await feed.start()
    subscription = feed.subscribe()

    for report_id in ("r1", "r2", "r3"):
        feed.publish(_change(report_id))

    assert subscription.pending() == 2
    assert subscription.get_nowait().report_id == "r2"
    assert subscription.get_nowait().report_id == "r3"
    await feed.stop()


@pytest.mark.asyncio
async def test_polling_feed_primes_then_diffs() -> None:
    snapshots = [
        {"a": {"up": 0}},
        {"a": {"up": 1}, "b": {"up": 0}},
        {"b": {"up": 0}},
    ]
    feed = PollingChangeFeed(lambda: snapshots.pop(0), interval=60)
    subscription = feed.subscribe()

    assert await feed.poll_once() == []
    second = await feed.poll_once()
    third = await feed.poll_once()

    assert {(c.report_id, c.event) for c in second} == {
        ("a", ChangeEvent.UPDATE),
        ("b", ChangeEvent.INSERT),
    }
    assert [(c.report_id, c.event) for c in third] == [("a", ChangeEvent.DELETE)]
    assert subscription.pending() == 3


@pytest.mark.asyncio
async def test_polling_feed_accepts_async_loader() -> None:
    async def loader():
        return {"a": {"up": 0}}

    feed = PollingChangeFeed(loader, interval=60)
    assert await feed.poll_once() == []
    assert await feed.poll_once() == []


@pytest.mark.asyncio
async def test_polling_feed_loop_runs_and_stops_cleanly() -> None:
    calls = 0

    def loader():
        nonlocal calls
        calls += 1
        return {str(calls): {}}

    feed = PollingChangeFeed(loader, interval=0.1)
    subscription = feed.subscribe()
    await feed.start()

    change = await asyncio.wait_for(subscription.get(), 2)
    assert change.event in (ChangeEvent.INSERT, ChangeEvent.DELETE)

    await feed.stop()
    calls_after_stop = calls
    await asyncio.sleep(0.3)
    assert calls == calls_after_stop


@pytest.mark.asyncio
async def test_polling_feed_survives_loader_failures() -> None:
    attempts = 0

    def loader():
        nonlocal attempts
        attempts += 1
        if attempts == 1:
            raise StorageUnavailableError("down")
        return {}

    feed = PollingChangeFeed(loader, interval=0.1)
    await feed.start()
    await asyncio.sleep(0.35)
    await feed.stop()
    assert attempts >= 2


def test_publish_is_ignored_by_polling_feed() -> None:
    feed = PollingChangeFeed(lambda: {}, interval=60)
    subscription = feed.subscribe()
    feed.publish(_change())
    assert subscription.pending() == 0
