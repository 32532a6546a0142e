# event_handler.py
import asyncio
import json
import logging
import redis
import redis.asyncio as aioredis
from uuid import uuid4
from typing import Dict, Any
from shared.models import Event
from shared.database import Database

logger = logging.getLogger(__name__)

STREAM = "fbs_stream"
RETRY_DELAY = 5
PENDING_INTERVAL = 30


class EventHandler:
    def __init__(
        self,
        db: Database,
        consumer_group: str = "Service_group",
        service_name: str = "Service",
        redis_host: str = "localhost",
        redis_port: int = 6379,
        redis_db: int = 0,
        stream: str = STREAM
    ):
        self.db = db
        self.consumer_group = consumer_group
        self.service_name = service_name
        self.stream = stream

        self.r = aioredis.Redis(
            connection_pool=aioredis.ConnectionPool(
                host=redis_host,
                port=redis_port,
                db=redis_db
            )
        )

    async def publish_event(self, event_type: str, payload: Dict[str, Any]) -> str:
        event_id = str(uuid4())
        event = Event(event_id=event_id, event_type=event_type, payload=payload)
        body = event.model_dump_json()

        # The outbox row is the durable record; the stream is best effort
        sql = """
            INSERT INTO outbox (event_id, event_type, payload)
            VALUES ($1, $2, $3)
        """
        await self.db.execute_query(sql, event_id, event_type, body)

        try:
            await self.r.xadd(self.stream, {
                "event_id": event_id,
                "event_type": event_type,
                "payload": body
            })
        except redis.RedisError as e:
            logger.warning(f"Event {event_type} ({event_id}) kept in outbox only: {e}")
            return event_id

        logger.info(f"Published event {event_type} with ID {event_id}")
        return event_id

    def _decode(self, message) -> Event:
        # claimed entries whose stream data was trimmed come back without fields
        message = message or {}
        payload_value = message.get(b"payload", message.get("payload"))
        if payload_value is None:
            raise ValueError(f"Message missing payload field: {message}")
        if isinstance(payload_value, bytes):
            payload_value = payload_value.decode("utf-8")
        return Event(**json.loads(payload_value))

    async def ensure_group(self):
        """Create the consumer group, waiting for Redis to come up if needed."""
        while True:
            try:
                await self.r.xgroup_create(self.stream, self.consumer_group, id="0", mkstream=True)
                return
            except redis.ResponseError as e:
                if "BUSYGROUP" in str(e):
                    return
                raise
            except redis.ConnectionError as e:
                logger.warning(f"Redis unavailable, retrying in {RETRY_DELAY}s: {e}")
                await asyncio.sleep(RETRY_DELAY)

    async def process_pending(self, process_callback) -> int:
        """Re-run messages delivered to this consumer but never acknowledged."""
        events = await self.r.xreadgroup(
            groupname=self.consumer_group,
            consumername=self.service_name,
            streams={self.stream: "0"},
            count=100
        )
        handled = 0
        for _stream, messages in events or []:
            for message_id, message in messages:
                await self.handle_message(message_id, message, process_callback)
                handled += 1
        if handled:
            logger.info(f"Retried {handled} pending messages")
        return handled

    async def consume_events(self, process_callback):
        await self.ensure_group()
        loop = asyncio.get_running_loop()
        last_retry = None

        while True:
            try:
                if last_retry is None or loop.time() - last_retry >= PENDING_INTERVAL:
                    await self.process_pending(process_callback)
                    last_retry = loop.time()

                events = await self.r.xreadgroup(
                    groupname=self.consumer_group,
                    consumername=self.service_name,
                    streams={self.stream: ">"},
                    count=1,
                    block=1000
                )

                for _stream, messages in events or []:
                    for message_id, message in messages:
                        await self.handle_message(message_id, message, process_callback)

            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error(f"Error in consume_events loop: {e}")
                await asyncio.sleep(1)

    async def handle_message(self, message_id, message, process_callback) -> bool:
        """Record one stream message in the inbox, run the callback, ack it.

        Undecodable and already recorded messages are acked and dropped. A
        failing callback removes the inbox record and leaves the message
        pending, so ``process_pending`` runs it again.
        """
        try:
            event = self._decode(message)
        except (ValueError, TypeError) as e:
            logger.error(f"Dropping undecodable message {message_id}: {e}")
            await self.r.xack(self.stream, self.consumer_group, message_id)
            return False

        sql = """
            INSERT INTO inbox (event_id, event_type, payload)
            VALUES ($1, $2, $3)
            ON CONFLICT (event_id) DO NOTHING
            RETURNING event_id
        """
        recorded = await self.db.execute_query(sql, event.event_id, event.event_type, event.model_dump_json())
        if not recorded:
            logger.info(f"Skipping duplicate event {event.event_id}")
            await self.r.xack(self.stream, self.consumer_group, message_id)
            return False

        try:
            await process_callback(event)
        except Exception as e:
            logger.error(f"Error processing event {event.event_id}: {e}")
            await self.db.execute_query("DELETE FROM inbox WHERE event_id = $1", event.event_id)
            return False

        await self.r.xack(self.stream, self.consumer_group, message_id)
        return True

    async def close(self):
        await self.r.aclose()
