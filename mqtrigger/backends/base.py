"""
Base abstract interface for message queue backends.

A backend is constructed once per process by the registry and then handed
over to the trigger manager, which is its only user. The only thing the
manager needs from a backend is to start and stop receiving messages for a
trigger, so that is all this contract covers.
"""

import abc
import asyncio
import logging
from abc import ABC
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Mapping, Self

from mqtrigger.models import MessageQueueTrigger

logger = logging.getLogger(__name__)

MessageHandler = Callable[[MessageQueueTrigger, bytes], Awaitable[None]]


class MessageQueueType(str, Enum):
    """Built-in backend kinds."""

    REDIS_STREAMS = "redis-streams"
    REDIS_PUBSUB = "redis-pubsub"
    TASKIQ = "taskiq"


@dataclass
class Subscription:
    trigger: MessageQueueTrigger
    consumer: asyncio.Task

    @property
    def active(self) -> bool:
        return not self.consumer.done()


class MessageQueue(ABC):
    mq_type: str

    @classmethod
    @abc.abstractmethod
    async def create(cls, url: str, secrets: Mapping[str, bytes]) -> Self:
        """
        Connect to the broker and return a ready backend.

        Args:
            url: Broker address, used as given
            secrets: Credential map loaded from the secrets directory

        Returns:
            A connected backend instance
        """
        pass

    @abc.abstractmethod
    async def consume(
        self, trigger: MessageQueueTrigger, handler: MessageHandler
    ) -> None:
        """Receive messages for the trigger until cancelled."""
        pass

    async def close(self) -> None:
        pass

    async def subscribe(
        self, trigger: MessageQueueTrigger, handler: MessageHandler
    ) -> Subscription:
        consumer = asyncio.create_task(
            self.consume(trigger, handler), name=f"mqtrigger-{trigger.name}"
        )
        logger.info(f"Subscribed trigger {trigger.name} to topic {trigger.topic}")
        return Subscription(trigger=trigger, consumer=consumer)

    async def unsubscribe(self, subscription: Subscription) -> None:
        consumer = subscription.consumer
        if not consumer.done():
            consumer.cancel()
        try:
            await consumer
        except asyncio.CancelledError:
            pass
        except Exception:
            logger.exception(
                f"Consumer of trigger {subscription.trigger.name} stopped with an error"
            )
        logger.info(f"Unsubscribed trigger {subscription.trigger.name}")

    async def deliver(
        self, trigger: MessageQueueTrigger, handler: MessageHandler, payload: bytes
    ) -> bool:
        """Hand one message to the handler. Returns whether it was handled."""
        try:
            await handler(trigger, payload)
        except Exception:
            logger.exception(f"Handler failed for message on trigger {trigger.name}")
            return False
        return True
