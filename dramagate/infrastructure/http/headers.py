"""Upstream request headers.

The upstream expects the headers of its Android client; the credential goes
into `tn` (bearer secret) and `device-id`.
"""

from typing import Dict

from dramagate.domain.models.credentials import Credential
from dramagate.infrastructure.config.settings import GatewaySettings

CLIENT_VERSION = "430"
CLIENT_VERSION_NAME = "4.3.0"
CHANNEL_ID = "DRA1000042"
PACKAGE_NAME = "com.storymatrix.drama"


class UpstreamHeaderFactory:
    """Builds the full header set for a credential."""

    def __init__(self, settings: GatewaySettings):
        self._static: Dict[str, str] = {
            "User-Agent": settings.user_agent,
            "Accept-Encoding": "gzip",
            "version": CLIENT_VERSION,
            "vn": CLIENT_VERSION_NAME,
            "cid": CHANNEL_ID,
            "package-name": PACKAGE_NAME,
            "apn": "1",
            "language": settings.upstream_language,
            "current-language": settings.upstream_language,
            "p": "43",
            "time-zone": settings.upstream_time_zone,
            "Content-Type": "application/json; charset=UTF-8",
        }

    def __call__(self, credential: Credential) -> Dict[str, str]:
        headers = dict(self._static)
        headers["tn"] = f"Bearer {credential.secret}"
        headers["device-id"] = credential.device_id
        return headers
