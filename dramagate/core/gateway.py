"""Gateway facade exposed to the CLI (or any other front end).

The three content operations never raise for "no results"; they return
empty lists. They raise UpstreamUnavailable only when the first required
upstream call failed on every attempt, and CredentialUnavailable is folded
into that condition by the RetryCoordinator.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import httpx

from dramagate.core.services.catalog_service import CatalogService
from dramagate.core.services.credential_provider import CredentialProvider
from dramagate.core.services.episode_aggregator import EpisodeAggregator
from dramagate.domain.models.catalog import CatalogEntry, Episode

logger = logging.getLogger(__name__)


class ContentGateway:
    """Single entry point for catalog, search and episode lookups."""

    def __init__(
        self,
        catalog_service: CatalogService,
        episode_aggregator: EpisodeAggregator,
        credential_provider: CredentialProvider,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        """Initializes the gateway.

        Args:
            catalog_service: Handles listing and search.
            episode_aggregator: Reconstructs episode lists.
            credential_provider: Queried for the health report.
            http_client: Shared client closed by `aclose()`, if the gateway owns one.
        """
        self.catalog_service = catalog_service
        self.episode_aggregator = episode_aggregator
        self.credential_provider = credential_provider
        self._http_client = http_client

    async def get_catalog_page(self, page_number: int) -> List[CatalogEntry]:
        return await self.catalog_service.get_catalog_page(page_number)

    async def search(self, keyword: str) -> List[CatalogEntry]:
        return await self.catalog_service.search(keyword)

    async def get_episodes(self, title_id: str) -> List[Episode]:
        title_id = str(title_id or "").strip()
        if not title_id:
            raise ValueError("title_id is required")
        return await self.episode_aggregator.fetch_all_episodes(title_id)

    def health(self) -> Dict[str, Any]:
        """Reports gateway status and the age of the cached credential. No I/O."""
        age = self.credential_provider.credential_age_seconds()
        return {
            "status": "OK",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "credential_cached": age is not None,
            "credential_age_seconds": None if age is None else round(age, 1),
        }

    async def aclose(self) -> None:
        if self._http_client is not None:
            await self._http_client.aclose()

    async def __aenter__(self) -> "ContentGateway":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()
