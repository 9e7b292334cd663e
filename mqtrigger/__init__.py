"""
mqtrigger - startup of a message-queue-driven trigger front-end.

Startup waits for the control plane, reads configuration from the
environment, loads queue credentials from a secrets directory, builds the
configured message queue backend and hands it to the trigger manager.

Example usage:
    import asyncio
    from mqtrigger import resolve_settings, start

    asyncio.run(start(resolve_settings()))
"""

from mqtrigger.backends import (
    MessageQueue,
    MessageQueueType,
    create_message_queue,
    list_registered_backends,
    register_backend,
)
from mqtrigger.config import MessageQueueConfig, TriggerSettings, resolve_settings
from mqtrigger.controlplane import RedisControlPlane
from mqtrigger.errors import (
    FatalStartupError,
    MQTriggerError,
    SecretsNotFoundError,
    StartupError,
    UnsupportedBackendKindError,
)
from mqtrigger.manager import MessageQueueTriggerManager
from mqtrigger.models import MessageQueueTrigger
from mqtrigger.secrets import load_secrets
from mqtrigger.startup import MQTriggerStartup, StartupState, start

__all__ = [
    # Startup
    "start",
    "MQTriggerStartup",
    "StartupState",
    # Configuration
    "resolve_settings",
    "TriggerSettings",
    "MessageQueueConfig",
    "load_secrets",
    # Backends
    "MessageQueue",
    "MessageQueueType",
    "create_message_queue",
    "list_registered_backends",
    "register_backend",
    # Collaborators
    "RedisControlPlane",
    "MessageQueueTrigger",
    "MessageQueueTriggerManager",
    # Errors
    "MQTriggerError",
    "SecretsNotFoundError",
    "UnsupportedBackendKindError",
    "StartupError",
    "FatalStartupError",
]
