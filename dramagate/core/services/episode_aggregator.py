"""Reconstructs the complete, ordered episode list of a title.

The batch chapter-load endpoint returns one page ("batch") of chapters per
call plus the declared total. Aggregation runs as:

1. Discover: fetch batch 1; it reveals the batch size and the total.
2. Plan:     start indices of the remaining batches.
3. Fetch:    all remaining batches concurrently; a failed batch is logged
             and skipped, partial coverage beats no coverage. A batch that
             answers without any chapters counts as failed.
4. Merge:    discovery batch first, then batches in planned order.
5. Normalize: pick a playable URL per chapter, drop chapters without one.
6. Order:    stable sort by episode number, first duplicate wins.
"""

import asyncio
import logging
from typing import Any, Iterable, List, Mapping, Optional, Tuple

from dramagate.core.services.upstream_endpoints import BATCH_LOAD_PATH, batch_load_payload
from dramagate.domain.events.api_events import BatchFetchFailed, EpisodesAggregated
from dramagate.domain.events.dispatcher import EventDispatcher
from dramagate.domain.exceptions import UpstreamUnavailable
from dramagate.domain.models.catalog import Episode
from dramagate.domain.models.common import BatchIndex, EpisodeNumber, StreamUrl, FRESH_CREDENTIAL
from dramagate.domain.models.upstream import RetryOutcome, UpstreamRequestSpec, UpstreamResponse
from dramagate.infrastructure.resilience.retry_coordinator import RetryCoordinator

logger = logging.getLogger(__name__)

DEFAULT_BATCH_TIMEOUT_MS = 20_000
DISCOVERY_INDEX = BatchIndex(1)
EMPTY_BATCH_ERROR = "EmptyBatch"

RawChapter = Mapping[str, Any]


def plan_batch_indices(batch_size: int, declared_total: int) -> List[BatchIndex]:
    """Start indices of the batches still missing after the discovery batch.

    >>> plan_batch_indices(20, 45)
    [21, 41]
    """
    if batch_size <= 0 or declared_total <= batch_size:
        return []
    return [BatchIndex(i) for i in range(batch_size + 1, declared_total + 1, batch_size)]


def read_batch(body: Any) -> Tuple[List[RawChapter], Optional[int]]:
    """Pulls `(chapterList, chapterCount)` out of a batch response body.

    Missing or malformed pieces degrade to an empty list / None.
    """
    data = body.get("data") if isinstance(body, Mapping) else None
    if not isinstance(data, Mapping):
        return [], None
    chapters = data.get("chapterList")
    chapters = [c for c in chapters if isinstance(c, Mapping)] if isinstance(chapters, list) else []
    try:
        declared_total = int(data["chapterCount"]) if data.get("chapterCount") is not None else None
    except (TypeError, ValueError):
        declared_total = None
    return chapters, declared_total


def select_stream_url(chapter: RawChapter) -> Optional[StreamUrl]:
    """Chooses the playable URL of a chapter.

    Uses the first CDN entry that lists any video paths; within it prefers
    the path flagged `isDefault == 1`, otherwise the first path.
    """
    cdn_list = chapter.get("cdnList")
    if not isinstance(cdn_list, list):
        return None
    for cdn in cdn_list:
        videos = cdn.get("videoPathList") if isinstance(cdn, Mapping) else None
        videos = [v for v in videos if isinstance(v, Mapping)] if isinstance(videos, list) else []
        if not videos:
            continue
        default = next((v for v in videos if v.get("isDefault") == 1), None)
        url = (default or {}).get("videoPath") or videos[0].get("videoPath")
        return StreamUrl(str(url)) if url else None
    return None


def normalize_chapters(chapters: Iterable[RawChapter]) -> List[Episode]:
    """Maps raw chapters to Episodes sorted by number, dropping unplayable ones.

    The sort is stable, so for duplicate numbers the chapter merged first is kept.
    """
    episodes: List[Episode] = []
    for chapter in chapters:
        url = select_stream_url(chapter)
        if not url:
            logger.debug(f"Dropping chapter {chapter.get('chapterId')!r}: no playable video path")
            continue
        try:
            number = EpisodeNumber(int(chapter.get("chapterId")))
        except (TypeError, ValueError):
            logger.warning(f"Dropping chapter with non-numeric id {chapter.get('chapterId')!r}")
            continue
        title = str(chapter.get("chapterName") or f"Episode {number}")
        episodes.append(Episode(number=number, title=title, stream_url=url))

    episodes.sort(key=lambda e: e.number)
    unique: List[Episode] = []
    for episode in episodes:
        if unique and unique[-1].number == episode.number:
            logger.debug(f"Duplicate episode number {episode.number}; keeping the first")
            continue
        unique.append(episode)
    return unique


class EpisodeAggregator:
    """Fetches every batch of a title through the RetryCoordinator and merges them."""

    def __init__(
        self,
        retry_coordinator: RetryCoordinator,
        batch_timeout_ms: int = DEFAULT_BATCH_TIMEOUT_MS,
        dispatcher: Optional[EventDispatcher] = None,
    ):
        self.retry_coordinator = retry_coordinator
        self.batch_timeout_ms = batch_timeout_ms
        self.dispatcher = dispatcher or EventDispatcher()

    async def fetch_all_episodes(self, title_id: str) -> List[Episode]:
        """Returns the ordered, de-duplicated episodes of `title_id`.

        Args:
            title_id: Upstream identifier of the title.

        Returns:
            Episodes sorted ascending by number. Empty if the title has none.

        Raises:
            UpstreamUnavailable: If every attempt of the discovery batch failed.
        """
        # 1. Discover
        outcome = await self._fetch_batch(title_id, DISCOVERY_INDEX)
        if not outcome.ok:
            raise UpstreamUnavailable(f"episodes of {title_id}", outcome.error)
        first_batch, declared_total = read_batch(outcome.value.body)
        if not first_batch:
            logger.info(f"No episodes available for title {title_id}")
            return []

        # 2. Plan
        batch_size = len(first_batch)
        if declared_total is None:
            logger.warning(f"Title {title_id}: response has no usable chapterCount; using the first batch only")
            declared_total = batch_size
        indices = plan_batch_indices(batch_size, declared_total)
        logger.debug(f"Title {title_id}: {declared_total} declared, batch size {batch_size}, {len(indices)} more batches")

        # 3. Fetch concurrently; 4. merge in planned order
        results = await asyncio.gather(
            *(self._fetch_batch(title_id, index) for index in indices), return_exceptions=True
        )
        chapters: List[RawChapter] = list(first_batch)
        failed = 0
        for index, result in zip(indices, results):
            if isinstance(result, BaseException) and not isinstance(result, Exception):
                raise result
            if isinstance(result, RetryOutcome) and result.ok:
                batch, _ = read_batch(result.value.body)
                if batch:
                    chapters.extend(batch)
                    continue
                # Planned batches lie inside the declared total, so each must carry chapters
                error_type, error_message = EMPTY_BATCH_ERROR, "response carried no chapters"
            else:
                error = result if isinstance(result, Exception) else result.error
                error_type, error_message = type(error).__name__, str(error)
            failed += 1
            logger.warning(f"Batch {index} of title {title_id} failed: {error_message}")
            self.dispatcher.dispatch(BatchFetchFailed(
                title_id=title_id, batch_index=index, error_type=error_type, error_message=error_message,
            ))

        # 5. Normalize and 6. order
        episodes = normalize_chapters(chapters)
        self.dispatcher.dispatch(EpisodesAggregated(
            title_id=title_id, declared_total=declared_total, batches_planned=len(indices) + 1,
            batches_failed=failed, episodes_returned=len(episodes), partial=failed > 0,
        ))
        return episodes

    async def _fetch_batch(self, title_id: str, index: BatchIndex) -> RetryOutcome[UpstreamResponse]:
        def build_spec() -> UpstreamRequestSpec:
            return UpstreamRequestSpec(
                target_path=BATCH_LOAD_PATH,
                payload=batch_load_payload(title_id, index),
                timeout_ms=self.batch_timeout_ms,
            )

        return await self.retry_coordinator.execute(
            build_spec, credential_policy=FRESH_CREDENTIAL, endpoint_name=f"batch-load[{index}]",
        )
