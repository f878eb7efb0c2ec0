"""Exceptions raised by the proxy agents."""


class ProxyAgentError(Exception):
    """Base class for everything the agents raise."""


class InvalidRequestTarget(ProxyAgentError, ValueError):
    """The request path could not be resolved into an absolute URI."""

    def __init__(self, target: str, reason: str = ""):
        self.target = target
        message = f"Invalid request target {target!r}"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class ProxyConnectionFailed(ProxyAgentError, ConnectionError):
    """Opening the transport to the proxy (or origin) failed.

    The underlying OSError / TimeoutError is chained as __cause__.
    """

    def __init__(self, host: str, port: int, reason: str = ""):
        self.host = host
        self.port = port
        message = f"Failed to connect to {host}:{port}"
        if reason:
            message += f": {reason}"
        super().__init__(message)
