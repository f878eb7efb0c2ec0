"""The Agent protocol - the contract every connection strategy fulfills."""

from typing import Protocol

from .request import ConnectionContext, PendingRequest
from .transport import Connection


class Agent(Protocol):
    """A strategy for getting a request onto the wire.

    Agents decide where the bytes of a request go: straight to the origin,
    to a forward proxy, or to the first of several that answers. They may
    adjust the request (its path, its headers) so that it makes sense to
    whatever sits at the other end of the connection they return.
    """

    async def connect(
        self,
        request: PendingRequest,
        ctx: ConnectionContext,
    ) -> Connection:
        """Open a ready connection for ``request``.

        Args:
            request: The pending request (mutable)
            ctx: Where the request is really going

        Returns:
            A connected transport, owned by the caller from here on

        Raises:
            ProxyConnectionFailed: The connection could not be established
        """
        ...
