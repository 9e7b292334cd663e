"""
Redis-backed control plane.

The control plane owns trigger definitions. Before a trigger front-end may
start, the schema of every resource it reads has to be installed, which is
what ``wait_for_schemas`` blocks on.

Layout:
- ``mqtrigger:schemas``: hash of resource name to JSON schema
- ``mqtrigger:triggers``: hash of trigger name to trigger JSON
"""

import asyncio
import json
import logging

import redis.asyncio
from pydantic import BaseModel
from redis.asyncio import Redis

from mqtrigger.models import MessageQueueTrigger

logger = logging.getLogger(__name__)

SCHEMAS_KEY = "mqtrigger:schemas"
TRIGGERS_KEY = "mqtrigger:triggers"

REQUIRED_SCHEMAS: dict[str, type[BaseModel]] = {
    MessageQueueTrigger.__name__: MessageQueueTrigger,
}


class RedisControlPlane:
    def __init__(self, redis_client: Redis):
        # Expects a client created with decode_responses=True
        self.redis = redis_client

    @classmethod
    def from_url(cls, url: str) -> "RedisControlPlane":
        return cls(redis.asyncio.from_url(url, decode_responses=True))

    async def install_schemas(self) -> None:
        await self.redis.hset(
            SCHEMAS_KEY,
            mapping={
                name: json.dumps(model.model_json_schema())
                for name, model in REQUIRED_SCHEMAS.items()
            },
        )

    async def missing_schemas(self) -> list[str]:
        installed = set(await self.redis.hkeys(SCHEMAS_KEY))
        return [name for name in REQUIRED_SCHEMAS if name not in installed]

    async def wait_for_schemas(self, poll_interval: float = 1.0) -> None:
        """Block until every required schema is installed. Never gives up."""
        missing = await self.missing_schemas()
        while missing:
            logger.info(f"Waiting for schemas to be installed: {', '.join(missing)}")
            await asyncio.sleep(poll_interval)
            missing = await self.missing_schemas()
        logger.info("Control plane schemas are installed")

    async def save_trigger(self, trigger: MessageQueueTrigger) -> None:
        await self.redis.hset(TRIGGERS_KEY, trigger.name, trigger.model_dump_json())

    async def get_trigger(self, name: str) -> MessageQueueTrigger | None:
        raw = await self.redis.hget(TRIGGERS_KEY, name)
        if raw is None:
            return None
        return MessageQueueTrigger.model_validate_json(raw)

    async def delete_trigger(self, name: str) -> bool:
        return await self.redis.hdel(TRIGGERS_KEY, name) > 0

    async def list_triggers(self, mq_type: str | None = None) -> list[MessageQueueTrigger]:
        triggers = [
            MessageQueueTrigger.model_validate_json(raw)
            for raw in await self.redis.hvals(TRIGGERS_KEY)
        ]
        if mq_type is not None:
            triggers = [trigger for trigger in triggers if trigger.mq_type == mq_type]
        return sorted(triggers, key=lambda trigger: trigger.name)

    async def close(self) -> None:
        await self.redis.aclose()
