"""Environment configuration for the proxyagent CLI."""

import os

from .transport import ConnectOptions

# Proxy to use when none is given on the command line
PROXY_URL = os.environ.get("PROXY_URL") or os.environ.get("HTTP_PROXY") or os.environ.get("http_proxy")

# Seconds to wait for the connection to the proxy (or origin)
CONNECT_TIMEOUT = float(os.environ.get("PROXY_CONNECT_TIMEOUT", "10"))

# Set to 0/false/no to skip certificate checks on https proxies
VERIFY = os.environ.get("PROXY_VERIFY", "1").lower() not in ("0", "false", "no")

LOG_LEVEL = os.environ.get("PROXY_LOG_LEVEL", "WARNING").upper()


def default_options(timeout: float | None = None, verify: bool | None = None) -> ConnectOptions:
    """ConnectOptions from the environment, with per-call overrides."""
    return ConnectOptions(
        timeout=CONNECT_TIMEOUT if timeout is None else timeout,
        verify=VERIFY if verify is None else verify,
    )
