import asyncio
import logging
from typing import Awaitable, Callable, TypeVar

import click
from pydantic import ValidationError

from mqtrigger.config import resolve_settings, TriggerSettings
from mqtrigger.controlplane import RedisControlPlane
from mqtrigger.errors import FatalStartupError, StartupError
from mqtrigger.manager import import_handler
from mqtrigger.models import DEFAULT_CONTENT_TYPE, MessageQueueTrigger
from mqtrigger.startup import start

logger = logging.getLogger("mqtrigger")

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
FATAL_EXIT_CODE = 1

T = TypeVar("T")


def load_settings() -> TriggerSettings:
    try:
        return resolve_settings()
    except ValidationError as e:
        raise click.ClickException(f"Invalid configuration: {e}")


def with_control_plane(func: Callable[[RedisControlPlane], Awaitable[T]]) -> T:
    async def runner() -> T:
        control_plane = RedisControlPlane.from_url(load_settings().control_plane_url)
        try:
            return await func(control_plane)
        finally:
            await control_plane.close()

    return asyncio.run(runner())


@click.group()
@click.option(
    "--log-level",
    default="INFO",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    help="Logging level",
)
def cli(log_level: str):
    """Message queue trigger front-end"""
    logging.basicConfig(level=log_level.upper(), format=LOG_FORMAT)


@cli.command()
@click.option(
    "--handler",
    "handler_path",
    default=None,
    help="Message handler as 'package.module:function' (default: log messages)",
)
def run(handler_path: str | None):
    """Start the trigger front-end with the backend from the environment"""
    settings = load_settings()
    handler = None
    if handler_path:
        try:
            handler = import_handler(handler_path)
        except (ImportError, AttributeError, ValueError, TypeError) as e:
            raise click.ClickException(f"Cannot load handler {handler_path}: {e}")

    try:
        asyncio.run(start(settings, handler=handler))
    except FatalStartupError as e:
        logger.critical(
            f"{e.operation}: mq_type={settings.mq_type} error={e.cause}",
            exc_info=e.cause,
            extra={"mq_type": settings.mq_type, "error": str(e.cause)},
        )
        raise SystemExit(FATAL_EXIT_CODE)
    except StartupError as e:
        raise click.ClickException(str(e))


@cli.command(name="install-schemas")
def install_schemas():
    """Install the control plane resource schemas"""
    with_control_plane(lambda control_plane: control_plane.install_schemas())
    click.echo("Schemas installed")


@cli.command(name="create-trigger")
@click.option("--name", required=True, help="Trigger name")
@click.option("--function", "function_name", required=True, help="Function to invoke")
@click.option("--mq-type", required=True, help="Message queue kind")
@click.option("--topic", required=True, help="Topic to consume")
@click.option("--response-topic", default=None, help="Topic for function responses")
@click.option("--error-topic", default=None, help="Topic for function errors")
@click.option("--max-retries", default=0, type=int, help="Retries per message")
@click.option("--content-type", default=DEFAULT_CONTENT_TYPE, help="Message content type")
def create_trigger(
    name: str,
    function_name: str,
    mq_type: str,
    topic: str,
    response_topic: str | None,
    error_topic: str | None,
    max_retries: int,
    content_type: str,
):
    """Create or replace a message queue trigger"""
    try:
        trigger = MessageQueueTrigger(
            name=name,
            function_name=function_name,
            mq_type=mq_type,
            topic=topic,
            response_topic=response_topic,
            error_topic=error_topic,
            max_retries=max_retries,
            content_type=content_type,
        )
    except ValidationError as e:
        raise click.ClickException(f"Invalid trigger: {e}")

    with_control_plane(lambda control_plane: control_plane.save_trigger(trigger))
    click.echo(f"Trigger {name} saved")


@cli.command(name="delete-trigger")
@click.argument("name")
def delete_trigger(name: str):
    """Delete a message queue trigger"""
    deleted = with_control_plane(lambda control_plane: control_plane.delete_trigger(name))
    if not deleted:
        raise click.ClickException(f"Trigger {name} not found")
    click.echo(f"Trigger {name} deleted")


@cli.command(name="list-triggers")
@click.option("--mq-type", default=None, help="Only show triggers of this kind")
def list_triggers(mq_type: str | None):
    """List message queue triggers"""
    triggers = with_control_plane(
        lambda control_plane: control_plane.list_triggers(mq_type)
    )
    for trigger in triggers:
        click.echo(
            f"{trigger.name}\t{trigger.mq_type}\t{trigger.topic}\t{trigger.function_name}"
        )
