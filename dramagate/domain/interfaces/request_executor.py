"""Interface for issuing a single upstream call.

Implementations are stateless with respect to retries and credentials:
they perform exactly one call and translate transport failures into the
domain's UpstreamError hierarchy.
"""

import abc
from typing import Mapping

from dramagate.domain.models.upstream import UpstreamRequestSpec, UpstreamResponse


class RequestExecutor(abc.ABC):
    """Abstract Base Class for executing one upstream request."""

    @abc.abstractmethod
    async def execute(self, spec: UpstreamRequestSpec, headers: Mapping[str, str]) -> UpstreamResponse:
        """Performs the call described by `spec` with the spec's timeout.

        Args:
            spec: Path, payload, method and timeout of the call.
            headers: Fully built request headers (credential included).

        Returns:
            The upstream response. The body may be None if it was not JSON.

        Raises:
            UpstreamTimeout: If the call timed out.
            UpstreamConnectionError: If the upstream could not be reached.
            UpstreamHttpError: If the upstream answered with status >= 400.
        """
        pass
