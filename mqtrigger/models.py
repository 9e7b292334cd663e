from pydantic import BaseModel, ConfigDict, Field

DEFAULT_CONTENT_TYPE = "application/json"


class MessageQueueTrigger(BaseModel):
    """Binds a queue topic to a function, as stored in the control plane."""

    name: str
    function_name: str
    mq_type: str
    topic: str
    response_topic: str | None = None
    error_topic: str | None = None
    max_retries: int = Field(default=0, ge=0)
    content_type: str = DEFAULT_CONTENT_TYPE

    model_config = ConfigDict(frozen=True)
