"""Builder for the shared httpx.AsyncClient.

Centralizes base URL, default timeout and common headers so the request
executor and the credential source behave the same way. Tests substitute a
client backed by httpx.MockTransport.
"""

from typing import Optional

import httpx

from dramagate.infrastructure.config.settings import GatewaySettings

# Connection pool large enough for a full fan-out of episode batches
MAX_CONNECTIONS = 32
MAX_KEEPALIVE_CONNECTIONS = 16


def build_async_client(
    settings: GatewaySettings,
    *,
    extra_headers: Optional[dict] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> httpx.AsyncClient:
    """Creates an `httpx.AsyncClient` pointed at the upstream base URL.

    Per-request timeouts are supplied by each UpstreamRequestSpec; the client
    default only applies to calls that do not set one.
    """
    headers = {"User-Agent": settings.user_agent, "Accept-Encoding": "gzip"}
    if extra_headers:
        headers.update(extra_headers)
    return httpx.AsyncClient(
        base_url=settings.upstream_base_url,
        timeout=httpx.Timeout(settings.catalog_timeout_seconds),
        limits=httpx.Limits(max_connections=MAX_CONNECTIONS, max_keepalive_connections=MAX_KEEPALIVE_CONNECTIONS),
        headers=headers,
        transport=transport,
    )
