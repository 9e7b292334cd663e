"""
Redis Streams backend.

Every trigger reads its topic stream through a consumer group named after
the trigger, so several trigger front-ends share the work and a message is
acknowledged only once the handler accepted it.
"""

import logging
import socket
from typing import Mapping, Self

from redis.asyncio import Redis
from redis.exceptions import ResponseError

from mqtrigger.backends.base import MessageHandler, MessageQueue, MessageQueueType
from mqtrigger.backends.connection import connect_redis
from mqtrigger.backends.registry import register_backend
from mqtrigger.models import MessageQueueTrigger

logger = logging.getLogger(__name__)

PAYLOAD_FIELD = b"payload"
READ_COUNT = 10
BLOCK_MS = 5000


@register_backend(MessageQueueType.REDIS_STREAMS)
class RedisStreamsQueue(MessageQueue):
    def __init__(self, redis_client: Redis, consumer_name: str | None = None):
        self.redis = redis_client
        self.consumer_name = consumer_name or socket.gethostname()

    @classmethod
    async def create(cls, url: str, secrets: Mapping[str, bytes]) -> Self:
        return cls(await connect_redis(url, secrets))

    async def ensure_group(self, trigger: MessageQueueTrigger) -> None:
        try:
            await self.redis.xgroup_create(
                trigger.topic, trigger.name, id="$", mkstream=True
            )
        except ResponseError as e:
            if "BUSYGROUP" not in str(e):
                raise

    async def consume(
        self, trigger: MessageQueueTrigger, handler: MessageHandler
    ) -> None:
        await self.ensure_group(trigger)
        while True:
            response = await self.redis.xreadgroup(
                trigger.name,
                self.consumer_name,
                {trigger.topic: ">"},
                count=READ_COUNT,
                block=BLOCK_MS,
            )
            for _stream, messages in response or []:
                for message_id, fields in messages:
                    payload = fields.get(PAYLOAD_FIELD, b"")
                    if await self.deliver(trigger, handler, payload):
                        await self.redis.xack(trigger.topic, trigger.name, message_id)

    async def close(self) -> None:
        await self.redis.aclose()
