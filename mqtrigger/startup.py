"""
Startup sequence of the message queue trigger front-end.

    INIT -> CONTROL_PLANE_READY -> CONFIG_RESOLVED -> SECRETS_LOADED
         -> BACKEND_CONSTRUCTED -> RUNNING

Any failing step moves to ABORTED and raises a StartupError carrying the
original exception. A backend that cannot be constructed raises
FatalStartupError instead: nothing can ever fire without it, so the caller
is expected to end the process rather than retry.

A control plane built from the settings is closed when the sequence ends,
whether it aborted or the manager returned.
"""

import logging
from enum import Enum
from typing import Awaitable, Callable, Mapping

from mqtrigger.backends import MessageHandler, MessageQueue, create_message_queue
from mqtrigger.config import MessageQueueConfig, TriggerSettings
from mqtrigger.controlplane import RedisControlPlane
from mqtrigger.errors import FatalStartupError, StartupError
from mqtrigger.manager import MessageQueueTriggerManager
from mqtrigger.protocols import ControlPlane, TriggerManager
from mqtrigger.secrets import load_secrets

logger = logging.getLogger(__name__)

BackendFactory = Callable[[str, str, Mapping[str, bytes]], Awaitable[MessageQueue]]
ManagerFactory = Callable[[ControlPlane, MessageQueue], TriggerManager]


class StartupState(str, Enum):
    INIT = "init"
    CONTROL_PLANE_READY = "control_plane_ready"
    CONFIG_RESOLVED = "config_resolved"
    SECRETS_LOADED = "secrets_loaded"
    BACKEND_CONSTRUCTED = "backend_constructed"
    RUNNING = "running"
    ABORTED = "aborted"


class MQTriggerStartup:
    def __init__(
        self,
        settings: TriggerSettings,
        control_plane: ControlPlane | None = None,
        backend_factory: BackendFactory = create_message_queue,
        manager_factory: ManagerFactory | None = None,
        handler: MessageHandler | None = None,
    ):
        self.settings = settings
        self.control_plane = control_plane
        self.owns_control_plane = control_plane is None
        self.backend_factory = backend_factory
        self.manager_factory = manager_factory or self.create_manager
        self.handler = handler
        self.mq_config: MessageQueueConfig | None = None
        self.state = StartupState.INIT

    def transition(self, state: StartupState) -> None:
        logger.info(f"Startup state {self.state.value} -> {state.value}")
        self.state = state

    def abort(self, operation: str, error: Exception) -> StartupError:
        self.transition(StartupState.ABORTED)
        return StartupError(operation, error)

    def create_manager(
        self, control_plane: ControlPlane, message_queue: MessageQueue
    ) -> TriggerManager:
        return MessageQueueTriggerManager(
            control_plane,
            message_queue,
            handler=self.handler,
            resync_interval=self.settings.resync_interval,
        )

    async def wait_for_control_plane(self) -> ControlPlane:
        if self.control_plane is None:
            try:
                self.control_plane = RedisControlPlane.from_url(
                    self.settings.control_plane_url
                )
            except Exception as e:
                raise self.abort("failed to get control plane client", e) from e

        try:
            await self.control_plane.wait_for_schemas(
                self.settings.schema_poll_interval
            )
        except Exception as e:
            raise self.abort("error waiting for schemas", e) from e

        self.transition(StartupState.CONTROL_PLANE_READY)
        return self.control_plane

    def resolve_config(self) -> MessageQueueConfig:
        self.mq_config = self.settings.mq_config()
        self.transition(StartupState.CONFIG_RESOLVED)
        return self.mq_config

    def load_secrets(self) -> MessageQueueConfig:
        secrets: dict[str, bytes] = {}
        if self.settings.has_secrets:
            try:
                secrets = load_secrets(self.settings.secrets_path)
            except Exception as e:
                raise self.abort("failed to read secrets", e) from e

        self.mq_config = self.mq_config.model_copy(update={"secrets": secrets})
        self.transition(StartupState.SECRETS_LOADED)
        return self.mq_config

    async def create_backend(self) -> MessageQueue:
        config = self.mq_config
        try:
            message_queue = await self.backend_factory(
                config.mq_type, config.url, config.secrets
            )
        except Exception as e:
            self.transition(StartupState.ABORTED)
            raise FatalStartupError(
                "failed to connect to remote message queue server", e
            ) from e

        self.transition(StartupState.BACKEND_CONSTRUCTED)
        return message_queue

    async def run(self) -> None:
        try:
            control_plane = await self.wait_for_control_plane()
            self.resolve_config()
            self.load_secrets()
            message_queue = await self.create_backend()

            manager = self.manager_factory(control_plane, message_queue)
            self.transition(StartupState.RUNNING)
            await manager.run()
        finally:
            await self.close_control_plane()

    async def close_control_plane(self) -> None:
        # Injected control planes belong to the caller
        if self.owns_control_plane and self.control_plane is not None:
            await self.control_plane.close()


async def start(
    settings: TriggerSettings,
    handler: MessageHandler | None = None,
    **collaborators,
) -> None:
    """Run the startup sequence and hand over to the trigger manager."""
    await MQTriggerStartup(settings, handler=handler, **collaborators).run()
