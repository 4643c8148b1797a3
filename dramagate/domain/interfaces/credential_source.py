"""Interface for the external credential source.

The credential source is the upstream-adjacent service that mints a fresh
secret/device-id pair on request.
"""

import abc

from dramagate.domain.models.credentials import Credential


class CredentialSource(abc.ABC):
    """Abstract Base Class for fetching a new credential."""

    @abc.abstractmethod
    async def fetch(self) -> Credential:
        """Fetches a brand new credential.

        Returns:
            A valid Credential (both fields non-empty).

        Raises:
            CredentialSourceError: If the source is unreachable or returns an
                unusable payload.
        """
        pass
