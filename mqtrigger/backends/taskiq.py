"""
TaskIQ backend.

Each trigger topic is a taskiq-redis list queue. A dedicated broker is
started per subscription and messages are taken from ``broker.listen()``.
"""

import inspect
from typing import Mapping, Self

from taskiq import AckableMessage
from taskiq_redis import ListQueueBroker

from mqtrigger.backends.base import MessageHandler, MessageQueue, MessageQueueType
from mqtrigger.backends.connection import connect_redis, redis_connection_kwargs
from mqtrigger.backends.registry import register_backend
from mqtrigger.models import MessageQueueTrigger


@register_backend(MessageQueueType.TASKIQ)
class TaskIQQueue(MessageQueue):
    def __init__(self, url: str, connection_kwargs: dict[str, str] | None = None):
        self.url = url
        self.connection_kwargs = connection_kwargs or {}

    @classmethod
    async def create(cls, url: str, secrets: Mapping[str, bytes]) -> Self:
        # Brokers are created lazily per topic, probe the server once now
        probe = await connect_redis(url, secrets)
        await probe.aclose()
        return cls(url, redis_connection_kwargs(secrets))

    def create_broker(self, trigger: MessageQueueTrigger) -> ListQueueBroker:
        return ListQueueBroker(
            url=self.url, queue_name=trigger.topic, **self.connection_kwargs
        )

    async def consume(
        self, trigger: MessageQueueTrigger, handler: MessageHandler
    ) -> None:
        broker = self.create_broker(trigger)
        await broker.startup()
        try:
            async for message in broker.listen():
                if isinstance(message, AckableMessage):
                    if await self.deliver(trigger, handler, message.data):
                        ack = message.ack()
                        if inspect.isawaitable(ack):
                            await ack
                else:
                    await self.deliver(trigger, handler, message)
        finally:
            await broker.shutdown()
