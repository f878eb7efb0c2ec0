"""Request target rewriting for forward proxies.

A proxy expects the request line to carry the absolute form of the target
(``GET http://example.com:8080/path HTTP/1.1``), not the origin form
(``GET /path HTTP/1.1``). This module computes that absolute form, plus the
headers the proxy needs. No I/O happens here.
"""

import base64
import ipaddress

import httpx

from .errors import InvalidRequestTarget

DEFAULT_HOST = "localhost"


def basic_proxy_authorization(username: str, password: str) -> str:
    """Build a Proxy-Authorization value for Basic auth."""
    auth = f"{username}:{password}"
    return "Basic " + base64.b64encode(auth.encode("utf-8")).decode("ascii")


def authority_host(host: str) -> str:
    """Bracket IPv6 literals so they can sit in front of a port."""
    try:
        if ipaddress.ip_address(host).version == 6:
            return f"[{host}]"
    except ValueError:
        pass
    return host


def absolute_target(path: str, host: str | None, port: int, secure_endpoint: bool) -> str:
    """Resolve ``path`` against the origin described by host/port/scheme.

    An absolute ``path`` wins over the origin, per URI reference resolution.
    """
    scheme = "https" if secure_endpoint else "http"
    base = f"{scheme}://{authority_host(host or DEFAULT_HOST)}:{port}"
    try:
        return str(httpx.URL(base).join(path))
    except (httpx.InvalidURL, ValueError, TypeError) as e:
        raise InvalidRequestTarget(path, f"{e} (resolving against {base})") from e


def rewrite(
    path: str,
    host: str | None,
    port: int,
    secure_endpoint: bool,
    username: str = "",
    password: str = "",
) -> tuple[str, dict[str, str]]:
    """Compute the absolute request target and the headers to add.

    Returns:
        (absolute_uri, header_additions). header_additions carries
        Proxy-Authorization when either credential is non-empty.
    """
    url = absolute_target(path, host, port, secure_endpoint)

    headers: dict[str, str] = {}
    if username or password:
        headers["Proxy-Authorization"] = basic_proxy_authorization(username, password)

    return url, headers
