"""Catalog listing and search.

Both endpoints return shape-unstable payloads, so every response goes
through the CatalogExtractor. "Nothing found" is an empty list; only a
call whose every attempt failed raises UpstreamUnavailable.
"""

import logging
from typing import List, Optional

from dramagate.core.services.catalog_extractor import CatalogExtractor
from dramagate.core.services.upstream_endpoints import CATALOG_PATH, SEARCH_PATH, catalog_payload, search_payload
from dramagate.domain.exceptions import UnexpectedResponseShape, UpstreamUnavailable
from dramagate.domain.models.catalog import CatalogEntry
from dramagate.domain.models.common import CACHED_CREDENTIAL
from dramagate.domain.models.upstream import UpstreamRequestSpec
from dramagate.infrastructure.resilience.retry_coordinator import RetryCoordinator

logger = logging.getLogger(__name__)

DEFAULT_CATALOG_TIMEOUT_MS = 15_000
DEFAULT_PAGE_SIZE = 20
DEFAULT_CHANNEL_ID = 43


class CatalogService:
    """Fetches catalog pages and search suggestions."""

    def __init__(
        self,
        retry_coordinator: RetryCoordinator,
        extractor: Optional[CatalogExtractor] = None,
        timeout_ms: int = DEFAULT_CATALOG_TIMEOUT_MS,
        page_size: int = DEFAULT_PAGE_SIZE,
        channel_id: int = DEFAULT_CHANNEL_ID,
    ):
        self.retry_coordinator = retry_coordinator
        self.extractor = extractor or CatalogExtractor()
        self.timeout_ms = timeout_ms
        self.page_size = page_size
        self.channel_id = channel_id

    async def get_catalog_page(self, page_number: int) -> List[CatalogEntry]:
        """Returns the entries of the latest-titles listing on `page_number` (1-based)."""
        if page_number < 1:
            raise ValueError(f"page_number must be >= 1, got {page_number}")
        spec = UpstreamRequestSpec(
            target_path=CATALOG_PATH,
            payload=catalog_payload(page_number, self.page_size, self.channel_id),
            timeout_ms=self.timeout_ms,
        )
        return await self._fetch_entries(spec, operation=f"catalog page {page_number}")

    async def search(self, keyword: str) -> List[CatalogEntry]:
        """Returns the titles suggested for `keyword`. A blank keyword yields no results."""
        keyword = (keyword or "").strip()
        if not keyword:
            return []
        spec = UpstreamRequestSpec(target_path=SEARCH_PATH, payload=search_payload(keyword), timeout_ms=self.timeout_ms)
        return await self._fetch_entries(spec, operation=f"search '{keyword}'")

    async def _fetch_entries(self, spec: UpstreamRequestSpec, operation: str) -> List[CatalogEntry]:
        outcome = await self.retry_coordinator.execute(
            lambda: spec, credential_policy=CACHED_CREDENTIAL, endpoint_name=spec.target_path,
        )
        if not outcome.ok:
            raise UpstreamUnavailable(operation, outcome.error)

        body = outcome.value.body
        if body is None:
            logger.warning(f"{operation}: upstream returned a non-JSON body; treating as no results")
            return []
        try:
            entries = self.extractor.extract_entries(body)
        except UnexpectedResponseShape as e:
            logger.warning(f"{operation}: {e}; treating as no results")
            return []
        logger.info(f"{operation}: {len(entries)} entries")
        return entries
