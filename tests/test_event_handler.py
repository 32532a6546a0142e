import json
from unittest.mock import AsyncMock, MagicMock

import pytest
import redis

from shared import event_handler as events
from shared.event_handler import EventHandler


@pytest.fixture
def handler():
    db = MagicMock()
    db.execute_query = AsyncMock(return_value=[{"event_id": "e-1"}])
    handler = EventHandler(db=db, consumer_group="Test_group", service_name="Test")
    handler.r = AsyncMock()
    return handler


def stream_message(event_type="BookingCreated", payload=None):
    body = {"event_id": "e-1", "event_type": event_type, "payload": payload or {"booking_id": "b-1"}}
    return {b"event_id": b"e-1", b"event_type": event_type.encode(), b"payload": json.dumps(body).encode()}


@pytest.mark.asyncio
async def test_publish_writes_outbox_then_stream(handler):
    event_id = await handler.publish_event("AirlineCreated", {"airline_id": "a-1"})

    sql, outbox_id, event_type, body = handler.db.execute_query.call_args.args
    assert "INSERT INTO outbox" in sql
    assert (outbox_id, event_type) == (event_id, "AirlineCreated")
    assert json.loads(body)["payload"] == {"airline_id": "a-1"}
    stream, fields = handler.r.xadd.await_args.args
    assert stream == "fbs_stream"
    assert fields["event_id"] == event_id


@pytest.mark.asyncio
async def test_publish_survives_stream_outage(handler):
    handler.r.xadd.side_effect = redis.ConnectionError("down")

    event_id = await handler.publish_event("AirlineCreated", {"airline_id": "a-1"})

    assert event_id
    handler.db.execute_query.assert_awaited_once()


@pytest.mark.asyncio
async def test_handle_message_records_processes_and_acks(handler):
    callback = AsyncMock()

    assert await handler.handle_message(b"1-0", stream_message(), callback) is True

    assert "INSERT INTO inbox" in handler.db.execute_query.call_args.args[0]
    event = callback.await_args.args[0]
    assert event.event_type == "BookingCreated"
    handler.r.xack.assert_awaited_once_with("fbs_stream", "Test_group", b"1-0")


@pytest.mark.asyncio
async def test_handle_message_drops_garbage(handler):
    callback = AsyncMock()

    assert await handler.handle_message(b"2-0", {b"payload": b"{not json"}, callback) is False

    callback.assert_not_awaited()
    handler.r.xack.assert_awaited_once_with("fbs_stream", "Test_group", b"2-0")


@pytest.mark.asyncio
async def test_trimmed_pending_entry_is_dropped(handler):
    callback = AsyncMock()

    assert await handler.handle_message(b"2-1", None, callback) is False

    callback.assert_not_awaited()
    handler.r.xack.assert_awaited_once_with("fbs_stream", "Test_group", b"2-1")


@pytest.mark.asyncio
async def test_duplicate_event_is_acked_without_processing(handler):
    handler.db.execute_query.return_value = []
    callback = AsyncMock()

    assert await handler.handle_message(b"4-0", stream_message(), callback) is False

    callback.assert_not_awaited()
    handler.r.xack.assert_awaited_once_with("fbs_stream", "Test_group", b"4-0")


@pytest.mark.asyncio
async def test_failed_callback_leaves_message_pending(handler):
    callback = AsyncMock(side_effect=RuntimeError("db down"))

    assert await handler.handle_message(b"3-0", stream_message(), callback) is False

    handler.r.xack.assert_not_awaited()
    sql, event_id = handler.db.execute_query.await_args.args
    assert sql.startswith("DELETE FROM inbox")
    assert event_id == "e-1"


@pytest.mark.asyncio
async def test_pending_messages_are_processed_again(handler):
    handler.r.xreadgroup.return_value = [[b"fbs_stream", [(b"3-0", stream_message())]]]
    callback = AsyncMock()

    assert await handler.process_pending(callback) == 1

    assert handler.r.xreadgroup.await_args.kwargs["streams"] == {"fbs_stream": "0"}
    assert handler.r.xreadgroup.await_args.kwargs["consumername"] == "Test"
    callback.assert_awaited_once()
    handler.r.xack.assert_awaited_once_with("fbs_stream", "Test_group", b"3-0")


@pytest.mark.asyncio
async def test_group_creation_waits_for_redis(handler, monkeypatch):
    monkeypatch.setattr(events, "RETRY_DELAY", 0)
    handler.r.xgroup_create.side_effect = [redis.ConnectionError("refused"), True]

    await handler.ensure_group()

    assert handler.r.xgroup_create.await_count == 2


@pytest.mark.asyncio
async def test_existing_group_is_reused(handler):
    handler.r.xgroup_create.side_effect = redis.ResponseError("BUSYGROUP Consumer Group name already exists")

    await handler.ensure_group()

    handler.r.xgroup_create.assert_awaited_once()
