"""httpx implementation of the RequestExecutor port.

Performs exactly one call per `execute` and maps transport failures and
error statuses onto the UpstreamError hierarchy. Retries live in the
RetryCoordinator, not here.
"""

import logging
import time
from typing import Mapping

import httpx

from dramagate.domain.exceptions import (
    UpstreamConnectionError, UpstreamHttpError, UpstreamProtocolError, UpstreamTimeout,
)
from dramagate.domain.interfaces.request_executor import RequestExecutor
from dramagate.domain.models.upstream import UpstreamRequestSpec, UpstreamResponse

logger = logging.getLogger(__name__)

# Upper bound on how much of an error body is carried into exception messages
ERROR_DETAIL_CHARS = 200


class HttpxRequestExecutor(RequestExecutor):
    """Executes UpstreamRequestSpecs on a shared httpx.AsyncClient."""

    def __init__(self, client: httpx.AsyncClient):
        self._client = client

    async def execute(self, spec: UpstreamRequestSpec, headers: Mapping[str, str]) -> UpstreamResponse:
        start_time = time.perf_counter()
        try:
            resp = await self._client.request(
                spec.method,
                spec.target_path,
                json=spec.payload if spec.method.upper() != "GET" else None,
                headers=dict(headers),
                timeout=spec.timeout_seconds,
            )
        except httpx.TimeoutException as e:
            raise UpstreamTimeout(f"{spec.target_path} timed out after {spec.timeout_seconds:.0f}s") from e
        except httpx.TransportError as e:
            raise UpstreamConnectionError(f"{spec.target_path}: {type(e).__name__}: {e}") from e
        except httpx.HTTPError as e:
            raise UpstreamProtocolError(f"{spec.target_path}: {type(e).__name__}: {e}") from e

        elapsed_ms = (time.perf_counter() - start_time) * 1000
        if resp.status_code >= 400:
            raise UpstreamHttpError(resp.status_code, resp.text[:ERROR_DETAIL_CHARS] or None)

        try:
            body = resp.json()
        except ValueError:
            logger.debug(f"{spec.target_path} returned a non-JSON body ({len(resp.text)} chars).")
            body = None
        return UpstreamResponse(status_code=resp.status_code, body=body, text=resp.text, elapsed_ms=elapsed_ms)
