import asyncio
import socket
from unittest import mock

import pytest

from proxyagent.transport import Connection


class RecordingProxy:
    """A loopback "proxy" that records each request and answers 200 hello."""

    def __init__(self):
        self.requests: list[tuple[str, bytes]] = []
        self.server: asyncio.Server | None = None

    @property
    def port(self) -> int:
        return self.server.sockets[0].getsockname()[1]

    async def handle(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter):
        try:
            head = (await reader.readuntil(b"\r\n\r\n")).decode("latin-1")
        except asyncio.IncompleteReadError:
            # Client connected and hung up without sending anything
            writer.close()
            return
        length = 0
        for line in head.split("\r\n"):
            name, _, value = line.partition(":")
            if name.lower() == "content-length":
                length = int(value.strip())
        body = await reader.readexactly(length) if length else b""
        self.requests.append((head, body))

        writer.write(b"HTTP/1.1 200 OK\r\nContent-Length: 5\r\nConnection: close\r\n\r\nhello")
        await writer.drain()
        writer.close()
        await writer.wait_closed()


@pytest.fixture
async def recording_proxy():
    proxy = RecordingProxy()
    proxy.server = await asyncio.start_server(proxy.handle, "127.0.0.1", 0)
    async with proxy.server:
        yield proxy


@pytest.fixture
def closed_port() -> int:
    """A loopback port nothing listens on."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.bind(("127.0.0.1", 0))
    port = sock.getsockname()[1]
    sock.close()
    return port


@pytest.fixture
def fake_connection() -> mock.Mock:
    connection = mock.Mock(spec=Connection)
    connection.written = []

    async def write(data: bytes):
        connection.written.append(data)

    connection.write.side_effect = write
    return connection


@pytest.fixture
def opener(fake_connection) -> mock.AsyncMock:
    """A transport opener that connects instantly."""
    return mock.AsyncMock(return_value=fake_connection)
