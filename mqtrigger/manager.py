import asyncio
import importlib
import logging

from mqtrigger.backends.base import MessageHandler, MessageQueue, Subscription
from mqtrigger.models import MessageQueueTrigger
from mqtrigger.protocols import ControlPlane

logger = logging.getLogger(__name__)


async def log_message(trigger: MessageQueueTrigger, payload: bytes) -> None:
    logger.info(
        f"Received {len(payload)} bytes on {trigger.topic} "
        f"for function {trigger.function_name}"
    )


def import_handler(path: str) -> MessageHandler:
    """Load a handler from a ``package.module:function`` path."""
    module_name, sep, attr = path.partition(":")
    if not sep or not module_name or not attr:
        raise ValueError(f"Handler path must look like 'module:function', got {path!r}")
    module = importlib.import_module(module_name)
    handler = getattr(module, attr)
    if not callable(handler):
        raise TypeError(f"Handler {path!r} is not callable")
    return handler


class MessageQueueTriggerManager:
    """
    Keeps backend subscriptions in line with the control plane.

    Every ``resync_interval`` seconds the triggers of the backend's kind are
    listed; new or changed triggers are (re)subscribed and removed ones are
    unsubscribed. A subscription whose consumer died is replaced on the next
    pass.
    """

    def __init__(
        self,
        control_plane: ControlPlane,
        message_queue: MessageQueue,
        handler: MessageHandler | None = None,
        resync_interval: float = 5.0,
    ):
        self.control_plane = control_plane
        self.message_queue = message_queue
        self.handler = handler or log_message
        self.resync_interval = resync_interval
        self.subscriptions: dict[str, Subscription] = {}

    @property
    def mq_type(self) -> str:
        return self.message_queue.mq_type

    async def sync(self) -> None:
        triggers = {
            trigger.name: trigger
            for trigger in await self.control_plane.list_triggers(self.mq_type)
        }

        for name, subscription in list(self.subscriptions.items()):
            if subscription.active and triggers.get(name) == subscription.trigger:
                continue
            await self.message_queue.unsubscribe(subscription)
            del self.subscriptions[name]

        for name, trigger in triggers.items():
            if name not in self.subscriptions:
                self.subscriptions[name] = await self.message_queue.subscribe(
                    trigger, self.handler
                )

    async def run(self) -> None:
        logger.info(f"Starting message queue trigger manager for {self.mq_type}")
        try:
            while True:
                await self.sync()
                await asyncio.sleep(self.resync_interval)
        finally:
            await self.shutdown()

    async def shutdown(self) -> None:
        for subscription in self.subscriptions.values():
            await self.message_queue.unsubscribe(subscription)
        self.subscriptions.clear()
        await self.message_queue.close()
