"""
Message queue backend registry.

Backends register themselves by kind with ``@register_backend``. The registry
is the ONLY place where the configured kind is checked; the rest of the code
works with the MessageQueue interface.
"""

import logging
from typing import Callable, Mapping

from mqtrigger.backends.base import MessageQueue
from mqtrigger.errors import UnsupportedBackendKindError

logger = logging.getLogger(__name__)

# Registry of backend classes by kind
_BACKEND_REGISTRY: dict[str, type[MessageQueue]] = {}


def register_backend(
    mq_type: str,
) -> Callable[[type[MessageQueue]], type[MessageQueue]]:
    """
    Decorator to register a backend class.

    Example:
        @register_backend(MessageQueueType.REDIS_STREAMS)
        class RedisStreamsQueue(MessageQueue):
            ...
    """
    # Keys are plain strings so lookups compare the literal configured value
    key = str(getattr(mq_type, "value", mq_type))

    def decorator(cls: type[MessageQueue]) -> type[MessageQueue]:
        _BACKEND_REGISTRY[key] = cls
        cls.mq_type = key
        return cls

    return decorator


def unregister_backend(mq_type: str) -> None:
    _BACKEND_REGISTRY.pop(mq_type, None)


def get_backend_class(mq_type: str) -> type[MessageQueue]:
    """
    Get the backend class for a message queue kind.

    Raises:
        UnsupportedBackendKindError: If no backend is registered for the kind
    """
    if mq_type not in _BACKEND_REGISTRY:
        raise UnsupportedBackendKindError(mq_type)
    return _BACKEND_REGISTRY[mq_type]


async def create_message_queue(
    mq_type: str, url: str, secrets: Mapping[str, bytes]
) -> MessageQueue:
    """
    Construct the backend registered for a message queue kind.

    Args:
        mq_type: The configured kind, matched exactly
        url: Broker address, passed to the backend unchanged
        secrets: Credential map, passed to the backend unchanged

    Returns:
        Connected MessageQueue instance
    """
    backend_class = get_backend_class(mq_type)
    logger.info(f"Creating {mq_type} message queue backend")
    return await backend_class.create(url, secrets)


def list_registered_backends() -> list[str]:
    """List all registered backend kinds."""
    return list(_BACKEND_REGISTRY.keys())
