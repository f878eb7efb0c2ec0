"""A minimal HTTP/1.1 exchange over an agent's connection.

One request per connection, ``Connection: close``. The request head goes out
exactly as the agent left it on the PendingRequest; h11 tracks the exchange
and frames the response. Enough for the CLI and for end-to-end checks
against a proxy; not a general purpose HTTP client.
"""

import logging
from dataclasses import dataclass, field

import h11
import httpx

from .errors import InvalidRequestTarget, ProxyAgentError
from .protocol import Agent
from .request import ConnectionContext, PendingRequest
from .transport import Connection

logger = logging.getLogger(__name__)

READ_SIZE = 64 * 1024


@dataclass
class Response:
    status_code: int
    reason: str
    headers: httpx.Headers
    content: bytes
    trailers: httpx.Headers = field(default_factory=httpx.Headers)

    @property
    def text(self) -> str:
        return self.content.decode("utf-8", errors="replace")


def build_request(
    method: str,
    url: str | httpx.URL,
    headers: dict[str, str] | None = None,
    content: bytes = b"",
) -> tuple[PendingRequest, ConnectionContext]:
    """Turn a URL into an origin-form request plus its destination."""
    try:
        url = httpx.URL(url)
    except httpx.InvalidURL as e:
        raise InvalidRequestTarget(str(url), str(e)) from e
    if url.scheme not in ("http", "https"):
        raise InvalidRequestTarget(str(url), "only http and https URLs can be fetched")

    secure = url.scheme == "https"
    request_headers = httpx.Headers({"Host": url.netloc.decode("ascii")})
    if headers:
        request_headers.update(headers)
    request_headers["Connection"] = "close"
    if content or method.upper() in ("POST", "PUT", "PATCH"):
        request_headers["Content-Length"] = str(len(content))

    request = PendingRequest(
        method=method.upper(),
        path=url.raw_path.decode("ascii"),
        headers=request_headers,
    )
    ctx = ConnectionContext(
        host=url.host,
        port=url.port or (443 if secure else 80),
        secure_endpoint=secure,
    )
    return request, ctx


def track_request(state: h11.Connection, request: PendingRequest, content: bytes = b"") -> None:
    """Tell h11 what was sent so it expects the matching response.

    The bytes h11 would produce are dropped: the wire copy is the one the
    agent prepared on ``request``.
    """
    state.send(h11.Request(method=request.method, target=request.path, headers=request.headers.raw))
    if content:
        state.send(h11.Data(data=content))
    state.send(h11.EndOfMessage())


async def receive_response(state: h11.Connection, connection: Connection) -> Response:
    """Read one final response. Interim 1xx responses are skipped."""
    head: h11.Response | None = None
    body: list[bytes] = []

    while True:
        try:
            event = state.next_event()
        except h11.RemoteProtocolError as e:
            raise ProxyAgentError(f"Malformed response: {e}") from e

        if event is h11.NEED_DATA:
            state.receive_data(await connection.read(READ_SIZE))
        elif isinstance(event, h11.InformationalResponse):
            logger.debug(f"Skipping interim response {event.status_code}")
        elif isinstance(event, h11.Response):
            head = event
        elif isinstance(event, h11.Data):
            body.append(bytes(event.data))
        elif isinstance(event, h11.EndOfMessage):
            return Response(
                status_code=head.status_code,
                reason=head.reason.decode("latin-1"),
                headers=httpx.Headers(list(head.headers)),
                content=b"".join(body),
                trailers=httpx.Headers(list(event.headers)),
            )
        else:
            # ConnectionClosed before the message ended
            raise ProxyAgentError(f"Connection closed mid-response: {event!r}")


async def fetch(
    agent: Agent,
    method: str,
    url: str | httpx.URL,
    headers: dict[str, str] | None = None,
    content: bytes = b"",
) -> Response:
    """Send one request through ``agent`` and read the whole response."""
    request, ctx = build_request(method, url, headers, content)

    connection = await agent.connect(request, ctx)
    state = h11.Connection(our_role=h11.CLIENT)
    try:
        async with connection:
            track_request(state, request, content)
            if content:
                request.write(content)
            await request.flush(connection)
            logger.debug(f"Sent {request.method} {request.path}, waiting for response")
            response = await receive_response(state, connection)
    except OSError as e:
        raise ProxyAgentError(f"Connection lost during {request.method} {url}: {e}") from e
    except h11.LocalProtocolError as e:
        raise ProxyAgentError(f"Cannot send {request.method} {url}: {e}") from e

    logger.info(f"{request.method} {url} -> {response.status_code} ({len(response.content)} bytes)")
    return response
