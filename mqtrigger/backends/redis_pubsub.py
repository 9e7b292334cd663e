from typing import Mapping, Self

from redis.asyncio import Redis

from mqtrigger.backends.base import MessageHandler, MessageQueue, MessageQueueType
from mqtrigger.backends.connection import connect_redis
from mqtrigger.backends.registry import register_backend
from mqtrigger.models import MessageQueueTrigger


@register_backend(MessageQueueType.REDIS_PUBSUB)
class RedisPubSubQueue(MessageQueue):
    """Fire-and-forget channels; messages published while unsubscribed are lost."""

    def __init__(self, redis_client: Redis):
        self.redis = redis_client

    @classmethod
    async def create(cls, url: str, secrets: Mapping[str, bytes]) -> Self:
        return cls(await connect_redis(url, secrets))

    async def consume(
        self, trigger: MessageQueueTrigger, handler: MessageHandler
    ) -> None:
        pubsub = self.redis.pubsub()
        await pubsub.subscribe(trigger.topic)
        try:
            async for message in pubsub.listen():
                if message["type"] != "message":
                    continue
                await self.deliver(trigger, handler, message["data"])
        finally:
            await pubsub.unsubscribe(trigger.topic)
            await pubsub.aclose()

    async def close(self) -> None:
        await self.redis.aclose()
