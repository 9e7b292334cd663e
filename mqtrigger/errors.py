class MQTriggerError(Exception):
    pass


class SecretsNotFoundError(MQTriggerError, FileNotFoundError):
    pass


class UnsupportedBackendKindError(MQTriggerError, ValueError):
    def __init__(self, mq_type: str):
        super().__init__(f"no supported message queue type found for {mq_type!r}")
        self.mq_type = mq_type


class StartupError(MQTriggerError):
    """Startup step failed; ``cause`` is the original exception, untouched."""

    def __init__(self, operation: str, cause: BaseException):
        super().__init__(f"{operation}: {cause}")
        self.operation = operation
        self.cause = cause


class FatalStartupError(StartupError):
    pass
