"""proxyagent - send HTTP requests through a forward proxy."""

from .agent import DirectAgent, FallbackAgent, HttpProxyAgent, create_agent
from .endpoint import ProxyEndpoint
from .errors import InvalidRequestTarget, ProxyAgentError, ProxyConnectionFailed
from .protocol import Agent
from .request import ConnectionContext, PendingRequest
from .rewrite import rewrite
from .transport import Connection, ConnectOptions

__all__ = [
    "Agent",
    "Connection",
    "ConnectionContext",
    "ConnectOptions",
    "DirectAgent",
    "FallbackAgent",
    "HttpProxyAgent",
    "InvalidRequestTarget",
    "PendingRequest",
    "ProxyAgentError",
    "ProxyConnectionFailed",
    "ProxyEndpoint",
    "create_agent",
    "rewrite",
]
