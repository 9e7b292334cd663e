"""
Message queue backends.

Importing this package registers every built-in backend kind:
- redis-streams: Redis Streams with one consumer group per trigger
- redis-pubsub: Redis Pub/Sub channels
- taskiq: taskiq-redis list queues
"""
from mqtrigger.backends.base import (
    MessageHandler,
    MessageQueue,
    MessageQueueType,
    Subscription,
)
from mqtrigger.backends.registry import (
    create_message_queue,
    get_backend_class,
    list_registered_backends,
    register_backend,
    unregister_backend,
)
from mqtrigger.backends.redis_pubsub import RedisPubSubQueue
from mqtrigger.backends.redis_streams import RedisStreamsQueue
from mqtrigger.backends.taskiq import TaskIQQueue

__all__ = [
    "MessageHandler",
    "MessageQueue",
    "MessageQueueType",
    "Subscription",
    "create_message_queue",
    "get_backend_class",
    "list_registered_backends",
    "register_backend",
    "unregister_backend",
    "RedisPubSubQueue",
    "RedisStreamsQueue",
    "TaskIQQueue",
]
