import asyncio
import logging
from unittest.mock import AsyncMock, MagicMock

import pytest

from mqtrigger.manager import MessageQueueTriggerManager, import_handler, log_message
from tests.unit.fakes import RECORDING_MQ_TYPE, make_trigger


@pytest.fixture
def control_plane_mock():
    control_plane = MagicMock()
    control_plane.list_triggers = AsyncMock(return_value=[])
    return control_plane


@pytest.fixture
def message_queue(recording_backend):
    return recording_backend(url="memory://")


@pytest.mark.asyncio
async def test__sync__new_triggers__subscribed_for_backend_kind(
    control_plane_mock, message_queue
):
    # Arrange
    control_plane_mock.list_triggers.return_value = [
        make_trigger("orders"),
        make_trigger("payments"),
    ]
    manager = MessageQueueTriggerManager(control_plane_mock, message_queue)

    # Act
    await manager.sync()
    await asyncio.sleep(0)

    # Assert
    control_plane_mock.list_triggers.assert_awaited_once_with(RECORDING_MQ_TYPE)
    assert set(manager.subscriptions) == {"orders", "payments"}
    assert sorted(message_queue.consumed) == ["orders", "payments"]
    await manager.shutdown()


@pytest.mark.asyncio
async def test__sync__trigger_removed__unsubscribed(control_plane_mock, message_queue):
    # Arrange
    control_plane_mock.list_triggers.return_value = [
        make_trigger("orders"),
        make_trigger("payments"),
    ]
    manager = MessageQueueTriggerManager(control_plane_mock, message_queue)
    await manager.sync()
    removed = manager.subscriptions["payments"]
    control_plane_mock.list_triggers.return_value = [make_trigger("orders")]

    # Act
    await manager.sync()

    # Assert
    assert set(manager.subscriptions) == {"orders"}
    assert removed.consumer.cancelled()
    await manager.shutdown()


@pytest.mark.asyncio
async def test__sync__trigger_changed__resubscribed_with_new_definition(
    control_plane_mock, message_queue
):
    # Arrange
    control_plane_mock.list_triggers.return_value = [make_trigger("orders")]
    manager = MessageQueueTriggerManager(control_plane_mock, message_queue)
    await manager.sync()
    old_subscription = manager.subscriptions["orders"]
    changed = make_trigger("orders", topic="orders-v2")
    control_plane_mock.list_triggers.return_value = [changed]

    # Act
    await manager.sync()

    # Assert
    assert manager.subscriptions["orders"] is not old_subscription
    assert manager.subscriptions["orders"].trigger == changed
    assert old_subscription.consumer.cancelled()
    await manager.shutdown()


@pytest.mark.asyncio
async def test__sync__unchanged_trigger__subscription_kept(
    control_plane_mock, message_queue
):
    # Arrange
    control_plane_mock.list_triggers.return_value = [make_trigger("orders")]
    manager = MessageQueueTriggerManager(control_plane_mock, message_queue)
    await manager.sync()
    subscription = manager.subscriptions["orders"]

    # Act
    await manager.sync()

    # Assert
    assert manager.subscriptions["orders"] is subscription
    await manager.shutdown()


@pytest.mark.asyncio
async def test__sync__consumer_crashed__replaced_with_new_subscription(
    control_plane_mock, message_queue, monkeypatch
):
    # Arrange
    control_plane_mock.list_triggers.return_value = [make_trigger("orders")]
    manager = MessageQueueTriggerManager(control_plane_mock, message_queue)

    async def crashing_consume(trigger, handler):
        raise ConnectionError("broker went away")

    monkeypatch.setattr(message_queue, "consume", crashing_consume)
    await manager.sync()
    crashed = manager.subscriptions["orders"]
    await asyncio.sleep(0)
    monkeypatch.undo()

    # Act
    await manager.sync()

    # Assert
    assert not crashed.active
    assert manager.subscriptions["orders"] is not crashed
    assert manager.subscriptions["orders"].active
    await manager.shutdown()


@pytest.mark.asyncio
async def test__run__cancelled__subscriptions_dropped_and_backend_closed(
    control_plane_mock, message_queue
):
    # Arrange
    control_plane_mock.list_triggers.return_value = [make_trigger("orders")]
    manager = MessageQueueTriggerManager(
        control_plane_mock, message_queue, resync_interval=0.01
    )
    runner = asyncio.create_task(manager.run())
    await asyncio.sleep(0.05)

    # Act
    runner.cancel()
    with pytest.raises(asyncio.CancelledError):
        await runner

    # Assert
    assert control_plane_mock.list_triggers.await_count >= 2
    assert manager.subscriptions == {}
    assert message_queue.closed


@pytest.mark.asyncio
async def test__run__control_plane_error__propagated_after_cleanup(
    control_plane_mock, message_queue
):
    # Arrange
    error = ConnectionError("control plane down")
    control_plane_mock.list_triggers.side_effect = error
    manager = MessageQueueTriggerManager(control_plane_mock, message_queue)

    # Act
    with pytest.raises(ConnectionError) as exc_info:
        await manager.run()

    # Assert
    assert exc_info.value is error
    assert message_queue.closed


@pytest.mark.asyncio
async def test__log_message__payload__size_and_function_logged(caplog):
    # Act
    with caplog.at_level(logging.INFO, logger="mqtrigger.manager"):
        await log_message(make_trigger("orders"), b"12345")

    # Assert
    assert "Received 5 bytes on orders-topic for function orders-fn" in caplog.text


def test__import_handler__module_function_path__callable_loaded():
    # Act
    handler = import_handler("mqtrigger.manager:log_message")

    # Assert
    assert handler is log_message


@pytest.mark.parametrize(
    ["path", "error"],
    [
        ["mqtrigger.manager", ValueError],
        [":log_message", ValueError],
        ["mqtrigger.manager:", ValueError],
        ["mqtrigger.models:DEFAULT_CONTENT_TYPE", TypeError],
        ["mqtrigger.manager:missing", AttributeError],
        ["mqtrigger.not_a_module:handler", ImportError],
    ],
)
def test__import_handler__bad_path__error(path, error):
    # Act & Assert
    with pytest.raises(error):
        import_handler(path)
