import fakeredis.aioredis
import pytest
import pytest_asyncio

from mqtrigger.backends import register_backend, unregister_backend
from mqtrigger.controlplane import RedisControlPlane
from tests.unit.fakes import RECORDING_MQ_TYPE, RecordingQueue


@pytest.fixture
def recording_backend():
    RecordingQueue.create_calls = []
    register_backend(RECORDING_MQ_TYPE)(RecordingQueue)
    try:
        yield RecordingQueue
    finally:
        unregister_backend(RECORDING_MQ_TYPE)


@pytest_asyncio.fixture
async def redis_client():
    client = fakeredis.aioredis.FakeRedis(decode_responses=True)
    await client.flushall()
    try:
        yield client
    finally:
        await client.flushall()
        await client.aclose()


@pytest_asyncio.fixture
async def control_plane(redis_client):
    return RedisControlPlane(redis_client)
