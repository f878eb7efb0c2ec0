"""Plain and TLS stream connections on top of asyncio."""

import asyncio
import logging
import ssl
from dataclasses import dataclass

from .errors import ProxyConnectionFailed

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConnectOptions:
    """Transport options, passed through untouched to every connection.

    Attributes:
        timeout: Seconds to wait for the connection (and TLS handshake)
        verify: Verify the peer certificate when connecting over TLS
        ssl_context: Use this context instead of building one from ``verify``
        server_hostname: Override the SNI / certificate hostname
        local_address: Bind the local end of the socket to this address
    """

    timeout: float | None = None
    verify: bool = True
    ssl_context: ssl.SSLContext | None = None
    server_hostname: str | None = None
    local_address: str | None = None

    def create_ssl_context(self) -> ssl.SSLContext:
        if self.ssl_context is not None:
            return self.ssl_context
        context = ssl.create_default_context()
        if not self.verify:
            context.check_hostname = False
            context.verify_mode = ssl.CERT_NONE
        return context


class Connection:
    """A ready, bidirectional byte stream. Owned by whoever received it."""

    def __init__(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter, secure: bool = False):
        self.reader = reader
        self.writer = writer
        self.secure = secure

    @property
    def peername(self):
        return self.writer.get_extra_info("peername")

    async def write(self, data: bytes) -> None:
        self.writer.write(data)
        await self.writer.drain()

    async def read(self, n: int = -1) -> bytes:
        return await self.reader.read(n)

    async def close(self) -> None:
        self.writer.close()
        try:
            await self.writer.wait_closed()
        except (ConnectionError, ssl.SSLError):
            # Peer already went away
            pass

    async def __aenter__(self) -> "Connection":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()


async def open_connection(host: str, port: int, secure: bool, options: ConnectOptions) -> Connection:
    """Open a plain or TLS connection and return once it is established.

    Any failure to connect is raised as ProxyConnectionFailed. Cancellation
    propagates; asyncio closes the half-open socket for us.
    """
    kwargs = {}
    if secure:
        kwargs["ssl"] = options.create_ssl_context()
        if options.server_hostname:
            kwargs["server_hostname"] = options.server_hostname
    if options.local_address:
        kwargs["local_addr"] = (options.local_address, 0)

    logger.debug(f"Opening {'TLS' if secure else 'TCP'} connection to {host}:{port}")
    try:
        async with asyncio.timeout(options.timeout):
            reader, writer = await asyncio.open_connection(host, port, **kwargs)
    except TimeoutError as e:
        raise ProxyConnectionFailed(host, port, f"timed out after {options.timeout}s") from e
    except OSError as e:
        # Covers DNS (socket.gaierror), refused connections and ssl.SSLError
        raise ProxyConnectionFailed(host, port, str(e) or type(e).__name__) from e

    return Connection(reader, writer, secure=secure)
