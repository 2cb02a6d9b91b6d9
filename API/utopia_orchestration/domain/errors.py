class OrchestrationError(Exception):
    """Base class for every error raised by an adapter."""


class BackendInvocationError(OrchestrationError):
    """
    The backend rejected an operation: non-zero exit code from the docker
    binary or a non-2xx status from the Engine API.
    """

    def __init__(self, message: str, diagnostic: str = "", code: int | None = None):
        self.diagnostic = diagnostic
        self.code = code
        detail = f"{message}: {diagnostic}" if diagnostic else message
        super().__init__(detail)


class ExecutionTimeoutError(OrchestrationError, TimeoutError):
    """`execute` hit the backend's timeout sentinel."""


class ParseError(OrchestrationError, ValueError):
    """Backend output could not be decoded into the expected shape."""
