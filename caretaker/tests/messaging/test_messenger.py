"""Tests for window-gated sending."""

from datetime import UTC, datetime, timedelta

import pytest

from caretaker.constants import CaretakerConstants
from caretaker.messaging import MemoryWindowStore, Messenger, WindowEconomics
from caretaker.tests.conftest import TEST_SENDER

NOW = datetime(2025, 3, 3, 15, 30, tzinfo=UTC)


@pytest.fixture
def windows():
    return MemoryWindowStore()


@pytest.fixture
def messenger(db, transport, windows) -> Messenger:
    return Messenger(transport, windows, WindowEconomics(), db)


@pytest.mark.asyncio
async def test_reply_after_inbound_is_free_and_counted(db, messenger, transport, windows):
    messenger.record_inbound(TEST_SENDER, NOW)

    result = await messenger.send_reply(TEST_SENDER, "hello", now=NOW + timedelta(minutes=1))

    assert result.success
    assert transport.sent == [(TEST_SENDER, "hello")]
    tracker = windows.get(TEST_SENDER)
    assert tracker is not None
    assert tracker.message_count == 1
    log = db.messages.get_history(TEST_SENDER)[-1]
    assert log.direction == CaretakerConstants.MessageDirection.OUTGOING
    assert log.is_free_message
    assert log.external_id == "wamid.1"


@pytest.mark.asyncio
async def test_reply_outside_window_is_still_sent_but_billed(db, messenger, transport):
    result = await messenger.send_reply(TEST_SENDER, "hello", now=NOW)

    assert result.success
    assert not db.messages.get_history(TEST_SENDER)[-1].is_free_message


@pytest.mark.asyncio
async def test_failed_send_is_reported_not_logged(db, messenger, transport, windows):
    transport.fail_with = "HTTP 400"
    messenger.record_inbound(TEST_SENDER, NOW)

    result = await messenger.send_reply(TEST_SENDER, "hello", now=NOW)

    assert not result.success
    assert result.error == "HTTP 400"
    assert db.messages.get_history(TEST_SENDER) == []
    tracker = windows.get(TEST_SENDER)
    assert tracker is not None
    assert tracker.message_count == 0


@pytest.mark.asyncio
async def test_proactive_inside_window_sends_now(messenger, transport):
    messenger.record_inbound(TEST_SENDER, NOW)

    result = await messenger.send_proactive(TEST_SENDER, "reminder", now=NOW + timedelta(hours=2))

    assert result.sent
    assert not result.deferred
    assert transport.sent == [(TEST_SENDER, "reminder")]


@pytest.mark.asyncio
async def test_proactive_outside_window_is_deferred(db, messenger, transport):
    result = await messenger.send_proactive(TEST_SENDER, "reminder", kind="media", now=NOW)

    assert not result.sent
    assert result.deferred
    assert result.scheduled_for == datetime(2025, 3, 4, 9, 0, tzinfo=UTC)
    assert result.estimated_cost == pytest.approx(0.10)
    assert transport.sent == []
    pending = db.deferred.list_pending()
    assert [(m.content, m.kind) for m in pending] == [("reminder", "media")]


@pytest.mark.asyncio
async def test_deliver_due_waits_for_slot(db, messenger, transport):
    await messenger.send_proactive(TEST_SENDER, "reminder", now=NOW)

    assert await messenger.deliver_due(NOW + timedelta(hours=1)) == 0
    assert await messenger.deliver_due(datetime(2025, 3, 4, 9, 0, tzinfo=UTC)) == 1

    assert transport.sent == [(TEST_SENDER, "reminder")]
    assert db.deferred.list_pending() == []


@pytest.mark.asyncio
async def test_deliver_due_sends_early_when_window_reopens(db, messenger, transport):
    await messenger.send_proactive(TEST_SENDER, "reminder", now=NOW)
    messenger.record_inbound(TEST_SENDER, NOW + timedelta(hours=1))

    delivered = await messenger.deliver_due(NOW + timedelta(hours=1, minutes=1))

    assert delivered == 1
    assert db.messages.get_history(TEST_SENDER)[-1].is_free_message


@pytest.mark.asyncio
async def test_deliver_due_keeps_failed_messages(db, messenger, transport):
    await messenger.send_proactive(TEST_SENDER, "reminder", now=NOW)
    transport.fail_with = "network error"

    assert await messenger.deliver_due(NOW + timedelta(days=2)) == 0
    assert len(db.deferred.list_pending()) == 1


def test_optimize_bulk_uses_stored_trackers(messenger):
    messenger.record_inbound("open", NOW)

    plan = messenger.optimize_bulk(["open", "closed"], NOW + timedelta(hours=1))

    assert plan.send_now == ["open"]
    assert plan.wait_for_user_initiation == ["closed"]


@pytest.mark.parametrize("store_kind", ["memory", "database"])
def test_window_store_prunes_idle_trackers(db, store_kind):
    store = MemoryWindowStore() if store_kind == "memory" else db.windows
    economics = WindowEconomics()
    for phone, seen in (("old", NOW - timedelta(days=40)), ("recent", NOW - timedelta(days=2))):
        store.save(
            economics.update(
                economics.new_tracker(phone),
                is_sender_initiated=True,
                direction="inbound",
                now=seen,
            )
        )

    removed = store.prune(NOW - timedelta(days=30))

    assert removed == 1
    assert set(store.all()) == {"recent"}


@pytest.mark.parametrize("store_kind", ["memory", "database"])
def test_window_store_prune_treats_naive_cutoff_as_utc(db, store_kind):
    store = MemoryWindowStore() if store_kind == "memory" else db.windows
    economics = WindowEconomics()
    store.save(
        economics.update(
            economics.new_tracker("old"),
            is_sender_initiated=True,
            direction="inbound",
            now=NOW - timedelta(days=40),
        )
    )

    removed = store.prune((NOW - timedelta(days=30)).replace(tzinfo=None))

    assert removed == 1
    assert store.all() == {}


def test_database_window_store_round_trips_tracker(db):
    messenger = Messenger(None, db.windows, WindowEconomics(), db)  # type: ignore[arg-type]
    messenger.record_inbound(TEST_SENDER, NOW)

    tracker = db.windows.get(TEST_SENDER)

    assert tracker is not None
    assert tracker.is_window_active
    assert WindowEconomics().is_within_window(tracker, NOW + timedelta(hours=1))
