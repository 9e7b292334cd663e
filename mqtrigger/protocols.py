"""
Collaborator protocols used during startup.

The startup sequence only needs a narrow view of its collaborators:
1. ControlPlane: wait for schemas, list trigger definitions
2. TriggerManager: take over the backend and run until the process ends
"""
from typing import Protocol, runtime_checkable

from mqtrigger.models import MessageQueueTrigger


@runtime_checkable
class ControlPlane(Protocol):
    async def wait_for_schemas(self, poll_interval: float = 1.0) -> None:
        """Block until the resource schemas are installed."""
        ...

    async def list_triggers(
        self, mq_type: str | None = None
    ) -> list[MessageQueueTrigger]:
        """Get the current trigger definitions, optionally of one kind."""
        ...

    async def close(self) -> None:
        ...


@runtime_checkable
class TriggerManager(Protocol):
    async def run(self) -> None:
        """Drive the message flow. Does not return under normal operation."""
        ...
