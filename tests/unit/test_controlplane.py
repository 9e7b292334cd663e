import asyncio
import json
from unittest.mock import AsyncMock

import pytest

from mqtrigger.controlplane import SCHEMAS_KEY, TRIGGERS_KEY, RedisControlPlane
from tests.unit.fakes import make_trigger


@pytest.mark.asyncio
async def test__install_schemas__trigger_schema_stored_as_json(control_plane, redis_client):
    # Act
    await control_plane.install_schemas()

    # Assert
    raw_schema = await redis_client.hget(SCHEMAS_KEY, "MessageQueueTrigger")
    schema = json.loads(raw_schema)
    assert "topic" in schema["properties"]
    assert await control_plane.missing_schemas() == []


@pytest.mark.asyncio
async def test__missing_schemas__nothing_installed__trigger_schema_missing(control_plane):
    # Act
    missing = await control_plane.missing_schemas()

    # Assert
    assert missing == ["MessageQueueTrigger"]


@pytest.mark.asyncio
async def test__wait_for_schemas__already_installed__returns_immediately(control_plane):
    # Arrange
    await control_plane.install_schemas()

    # Act & Assert
    await asyncio.wait_for(control_plane.wait_for_schemas(poll_interval=10), timeout=1)


@pytest.mark.asyncio
async def test__wait_for_schemas__installed_later__blocks_until_installed(control_plane):
    # Arrange
    waiter = asyncio.create_task(control_plane.wait_for_schemas(poll_interval=0.01))
    await asyncio.sleep(0.05)
    assert not waiter.done()

    # Act
    await control_plane.install_schemas()

    # Assert
    await asyncio.wait_for(waiter, timeout=1)


@pytest.mark.asyncio
async def test__wait_for_schemas__connection_error__propagated(control_plane, monkeypatch):
    # Arrange
    error = ConnectionError("control plane down")
    monkeypatch.setattr(control_plane.redis, "hkeys", AsyncMock(side_effect=error))

    # Act & Assert
    with pytest.raises(ConnectionError) as exc_info:
        await control_plane.wait_for_schemas(poll_interval=0.01)

    assert exc_info.value is error


@pytest.mark.asyncio
async def test__save_and_get_trigger__stored_under_name(control_plane, redis_client):
    # Arrange
    trigger = make_trigger("orders", response_topic="orders-out", max_retries=3)

    # Act
    await control_plane.save_trigger(trigger)
    loaded = await control_plane.get_trigger("orders")

    # Assert
    assert loaded == trigger
    assert await redis_client.hexists(TRIGGERS_KEY, "orders")
    assert await control_plane.get_trigger("unknown") is None


@pytest.mark.asyncio
async def test__list_triggers__filtered_by_kind__only_matching_sorted_by_name(control_plane):
    # Arrange
    await control_plane.save_trigger(make_trigger("zeta", mq_type="redis-streams"))
    await control_plane.save_trigger(make_trigger("alpha", mq_type="redis-streams"))
    await control_plane.save_trigger(make_trigger("beta", mq_type="taskiq"))

    # Act
    streams_triggers = await control_plane.list_triggers("redis-streams")
    all_triggers = await control_plane.list_triggers()

    # Assert
    assert [trigger.name for trigger in streams_triggers] == ["alpha", "zeta"]
    assert [trigger.name for trigger in all_triggers] == ["alpha", "beta", "zeta"]


@pytest.mark.asyncio
async def test__delete_trigger__existing_and_missing__reports_whether_deleted(control_plane):
    # Arrange
    await control_plane.save_trigger(make_trigger("orders"))

    # Act
    deleted = await control_plane.delete_trigger("orders")
    deleted_again = await control_plane.delete_trigger("orders")

    # Assert
    assert deleted
    assert not deleted_again
    assert await control_plane.list_triggers() == []


def test__from_url__client_decodes_responses():
    # Act
    control_plane = RedisControlPlane.from_url("redis://localhost:6379")

    # Assert
    assert control_plane.redis.connection_pool.connection_kwargs["decode_responses"] is True
