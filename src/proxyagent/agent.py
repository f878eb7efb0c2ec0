"""Agents: strategies for connecting a pending request to the network.

HttpProxyAgent sends plain-HTTP requests through a forward proxy. The proxy
is told where the request really goes via the absolute-form request target,
so there is no CONNECT tunnel involved.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence

import httpx

from .endpoint import ProxyEndpoint
from .errors import ProxyConnectionFailed
from .protocol import Agent
from .request import ConnectionContext, PendingRequest, patch_output_header
from .rewrite import DEFAULT_HOST, rewrite
from .transport import Connection, ConnectOptions, open_connection

Opener = Callable[[str, int, bool, ConnectOptions], Awaitable[Connection]]


def _destination_host(request: PendingRequest, ctx: ConnectionContext) -> str:
    return ctx.host or request.get_header("host") or DEFAULT_HOST


async def _finish_connect(opening: asyncio.Future, request: PendingRequest, log: logging.Logger) -> Connection:
    """Regenerate the request head while the socket connects, then wait for it.

    The head is rebuilt right away so that output queued before the path
    changed goes out consistent with it. Any failure here cancels the open.
    """
    try:
        log.debug("Regenerating stored HTTP header string for request")
        request.serialize_header()
        if patch_output_header(request):
            log.debug("Patched queued output buffer with updated header")
        return await opening
    except BaseException:
        opening.cancel()
        raise


class HttpProxyAgent:
    """Connects requests to an HTTP(S) forward proxy.

    The proxy's own scheme decides whether the connection to it is TLS; the
    destination's scheme only shows up in the rewritten request target.
    """

    def __init__(
        self,
        proxy: str | httpx.URL,
        options: ConnectOptions | None = None,
        *,
        opener: Opener = open_connection,
        logger: logging.Logger | None = None,
    ):
        self.proxy = proxy if isinstance(proxy, httpx.URL) else httpx.URL(proxy)
        self.endpoint = ProxyEndpoint.from_url(self.proxy)
        self.options = options or ConnectOptions()
        self._open = opener
        self.logger = logger or logging.getLogger(__name__)
        self.logger.debug(f"Creating new HttpProxyAgent instance: {self.endpoint}")

    @property
    def secure_proxy(self) -> bool:
        return self.endpoint.secure

    def prepare(self, request: PendingRequest, ctx: ConnectionContext) -> str:
        """Rewrite ``request`` for the proxy without touching the network.

        Returns the absolute request target now stored in ``request.path``.
        """
        endpoint = self.endpoint

        url, headers = rewrite(
            request.path,
            _destination_host(request, ctx),
            ctx.port,
            ctx.secure_endpoint,
            endpoint.username,
            endpoint.password,
        )

        # The proxy needs the absolute URL of the resource
        request.path = url

        # Any head generated so far is stale now
        request.header = None
        for name, value in headers.items():
            request.set_header(name, value)

        return url

    async def connect(self, request: PendingRequest, ctx: ConnectionContext) -> Connection:
        endpoint = self.endpoint
        url = self.prepare(request, ctx)

        self.logger.debug(f"Creating {'TLS' if endpoint.secure else 'TCP'} connection to proxy {endpoint}")
        opening = asyncio.ensure_future(
            self._open(endpoint.host, endpoint.port, endpoint.secure, self.options)
        )

        # Wait for the socket here, so that connection failures are raised
        # by connect() rather than by whatever writes the request later
        connection = await _finish_connect(opening, request, self.logger)
        self.logger.info(f"Connected to proxy {endpoint} for {request.method} {url}")
        return connection

    def __repr__(self) -> str:
        return f"HttpProxyAgent(proxy={str(self.endpoint)!r})"


class DirectAgent:
    """Connects straight to the origin. No rewriting."""

    def __init__(
        self,
        options: ConnectOptions | None = None,
        *,
        opener: Opener = open_connection,
        logger: logging.Logger | None = None,
    ):
        self.options = options or ConnectOptions()
        self._open = opener
        self.logger = logger or logging.getLogger(__name__)

    async def connect(self, request: PendingRequest, ctx: ConnectionContext) -> Connection:
        host = _destination_host(request, ctx)
        self.logger.debug(f"Creating {'TLS' if ctx.secure_endpoint else 'TCP'} connection to {host}:{ctx.port}")
        opening = asyncio.ensure_future(
            self._open(host, ctx.port, ctx.secure_endpoint, self.options)
        )
        connection = await _finish_connect(opening, request, self.logger)
        self.logger.info(f"Connected to {host}:{ctx.port}")
        return connection

    def __repr__(self) -> str:
        return "DirectAgent()"


class FallbackAgent:
    """Tries each agent in turn until one connects.

    Only ProxyConnectionFailed moves on to the next agent; anything else
    (a bad request target, say) is raised immediately. Each attempt starts
    from the request's original path and headers.
    """

    def __init__(self, agents: Sequence[Agent], *, logger: logging.Logger | None = None):
        if not agents:
            raise ValueError("FallbackAgent needs at least one agent")
        self.agents = list(agents)
        self.logger = logger or logging.getLogger(__name__)

    async def connect(self, request: PendingRequest, ctx: ConnectionContext) -> Connection:
        path = request.path
        headers = request.headers.copy()
        last_error: ProxyConnectionFailed | None = None

        for agent in self.agents:
            request.path = path
            request.headers = headers.copy()
            request.header = None
            try:
                return await agent.connect(request, ctx)
            except ProxyConnectionFailed as e:
                self.logger.warning(f"{agent!r} failed to connect, trying next: {e}")
                last_error = e

        raise last_error

    def __repr__(self) -> str:
        return f"FallbackAgent({self.agents!r})"


def create_agent(proxy_url: str | httpx.URL | None = None, options: ConnectOptions | None = None) -> Agent:
    """DirectAgent without a proxy, HttpProxyAgent for http(s) proxies.

    Raises:
        ValueError: For proxy schemes other than http and https
    """
    if not proxy_url:
        return DirectAgent(options)
    return HttpProxyAgent(proxy_url, options)
