"""HTTP credential source.

The token service answers `GET` with `{"data": {"token": ..., "deviceId": ...}}`.
"""

import logging

import httpx

from dramagate.domain.exceptions import CredentialSourceError
from dramagate.domain.interfaces.credential_source import CredentialSource
from dramagate.domain.models.credentials import Credential

logger = logging.getLogger(__name__)


class HttpCredentialSource(CredentialSource):
    """Fetches credentials from the token service over HTTP."""

    def __init__(self, client: httpx.AsyncClient, url: str, timeout_seconds: float = 10.0):
        self._client = client
        self._url = url
        self._timeout_seconds = timeout_seconds

    async def fetch(self) -> Credential:
        try:
            resp = await self._client.get(self._url, timeout=self._timeout_seconds)
            resp.raise_for_status()
            payload = resp.json()
        except httpx.HTTPStatusError as e:
            raise CredentialSourceError(f"Token service returned {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise CredentialSourceError(f"Token service unreachable: {type(e).__name__}: {e}") from e
        except ValueError as e:
            raise CredentialSourceError("Token service returned a non-JSON body") from e

        data = payload.get("data") if isinstance(payload, dict) else None
        if not isinstance(data, dict) or not data.get("token") or not data.get("deviceId"):
            raise CredentialSourceError("Token service response is missing token or deviceId")

        logger.debug("Fetched new credential from token service.")
        return Credential(secret=str(data["token"]), device_id=str(data["deviceId"]))
