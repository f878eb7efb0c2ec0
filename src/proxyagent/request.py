"""The outgoing request as seen by an agent, and where it is headed.

A PendingRequest serializes its request head lazily: the first write (or
flush) produces the head from the current method, path and headers. Writes
made before a connection exists are queued in ``output_data``, with the head
glued to the front of the first chunk.
"""

import logging
from dataclasses import dataclass, field

import httpx

logger = logging.getLogger(__name__)

HEADER_TERMINATOR = b"\r\n\r\n"


@dataclass
class ConnectionContext:
    """The real origin of one request. Supplied per connect call."""

    host: str | None
    port: int
    secure_endpoint: bool = False


@dataclass
class PendingRequest:
    """One in-flight HTTP/1.1 request that has not been sent yet."""

    method: str = "GET"
    path: str = "/"
    headers: httpx.Headers = field(default_factory=httpx.Headers)
    header: str | None = None  # Serialized request head, once generated
    output_data: list[bytes] = field(default_factory=list)

    def __post_init__(self):
        if not isinstance(self.headers, httpx.Headers):
            self.headers = httpx.Headers(self.headers)

    def get_header(self, name: str) -> str | None:
        return self.headers.get(name)

    def set_header(self, name: str, value: str) -> None:
        if self.header is not None:
            raise RuntimeError("Cannot set headers after the request head was serialized")
        self.headers[name] = value

    def serialize_header(self) -> str:
        """Regenerate the request head from the current path and headers."""
        lines = [f"{self.method} {self.path} HTTP/1.1"]
        for name, value in self.headers.raw:
            lines.append(f"{name.decode('latin-1')}: {value.decode('latin-1')}")
        self.header = "\r\n".join(lines) + "\r\n\r\n"
        return self.header

    def write(self, data: bytes) -> None:
        """Queue body bytes. The first chunk carries the request head."""
        if self.header is None:
            self.serialize_header()
        if not self.output_data:
            self.output_data.append(self.header.encode("latin-1") + data)
        else:
            self.output_data.append(data)

    async def flush(self, connection) -> None:
        """Write the head and anything queued to ``connection``."""
        if not self.output_data:
            self.write(b"")
        for chunk in self.output_data:
            await connection.write(chunk)
        self.output_data.clear()


def patch_output_header(request: PendingRequest) -> bool:
    """Swap a stale head in the first queued chunk for the current one.

    Writes made before the path was rewritten leave the old head in
    ``output_data[0]``. Everything up to and including the first blank line
    is replaced with ``request.header``; body bytes after it are kept. A chunk
    with no blank line at all is taken to be head only and replaced whole,
    rather than keeping whatever follows its first few bytes.
    Returns True when a chunk was patched.
    """
    if not request.output_data or request.header is None:
        return False

    first = request.output_data[0]
    end = first.find(HEADER_TERMINATOR)
    # Without a terminator the chunk holds nothing but (part of) a head
    body = first[end + len(HEADER_TERMINATOR):] if end != -1 else b""

    request.output_data[0] = request.header.encode("latin-1") + body
    logger.debug(f"Patched queued output with regenerated head ({len(body)} body bytes kept)")
    return True
