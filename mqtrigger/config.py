import os
from typing import Mapping

from pydantic import BaseModel, ConfigDict, Field, field_validator

MQ_TYPE_ENV = "MESSAGE_QUEUE_TYPE"
MQ_URL_ENV = "MESSAGE_QUEUE_URL"
MQ_SECRETS_ENV = "MESSAGE_QUEUE_SECRETS"
CONTROL_PLANE_URL_ENV = "REDIS_URL"
RESYNC_INTERVAL_ENV = "MQTRIGGER_RESYNC_INTERVAL"
SCHEMA_POLL_INTERVAL_ENV = "MQTRIGGER_SCHEMA_POLL_INTERVAL"

DEFAULT_CONTROL_PLANE_URL = "redis://localhost:6379"


class ConfigModel(BaseModel):
    model_config = ConfigDict(frozen=True)


class MessageQueueConfig(ConfigModel):
    """Everything a backend constructor receives."""

    mq_type: str
    url: str
    secrets: dict[str, bytes] = Field(default_factory=dict)


class TriggerSettings(ConfigModel):
    """Process configuration, read once at the entry point."""

    mq_type: str = ""
    mq_url: str = ""
    secrets_path: str = ""

    control_plane_url: str = DEFAULT_CONTROL_PLANE_URL
    resync_interval: float = Field(default=5.0, gt=0)
    schema_poll_interval: float = Field(default=1.0, gt=0)

    @field_validator("secrets_path")
    @classmethod
    def strip_secrets_path(cls, value: str) -> str:
        return value.strip()

    @property
    def has_secrets(self) -> bool:
        return len(self.secrets_path) > 0

    def mq_config(self, secrets: Mapping[str, bytes] | None = None) -> MessageQueueConfig:
        return MessageQueueConfig(
            mq_type=self.mq_type, url=self.mq_url, secrets=dict(secrets or {})
        )


def resolve_settings(environ: Mapping[str, str] | None = None) -> TriggerSettings:
    """
    Build settings from environment variables.

    Message queue type and URL are taken verbatim, only the secrets path is
    trimmed. Validation of the type is left to the backend registry.
    """
    if environ is None:
        environ = os.environ

    values = {
        "mq_type": environ.get(MQ_TYPE_ENV, ""),
        "mq_url": environ.get(MQ_URL_ENV, ""),
        "secrets_path": environ.get(MQ_SECRETS_ENV, "").strip(),
        "control_plane_url": environ.get(
            CONTROL_PLANE_URL_ENV, DEFAULT_CONTROL_PLANE_URL
        ),
    }
    if RESYNC_INTERVAL_ENV in environ:
        values["resync_interval"] = environ[RESYNC_INTERVAL_ENV]
    if SCHEMA_POLL_INTERVAL_ENV in environ:
        values["schema_poll_interval"] = environ[SCHEMA_POLL_INTERVAL_ENV]

    return TriggerSettings(**values)
