"""Domain models for catalog browsing and episode listings.

CatalogEntry is extracted from heterogeneous upstream shapes; Episode is
derived by the aggregator's normalization step and always carries a
playable URL.
"""

from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List, Mapping, Optional

from .common import EntryId, EpisodeNumber, StreamUrl

# Field holding the identifier in every upstream catalog record.
ENTRY_ID_FIELD = "bookId"


@dataclass(frozen=True)
class CatalogEntry:
    """A title as listed by the catalog or search endpoints."""
    id: EntryId
    name: str = ""
    cover_url: Optional[str] = None
    introduction: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    chapter_count: Optional[int] = None
    play_count: Optional[str] = None

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "CatalogEntry":
        """Builds an entry from a raw upstream record carrying `bookId`."""
        return cls(
            id=EntryId(str(record[ENTRY_ID_FIELD])),
            name=str(record.get("bookName") or ""),
            cover_url=record.get("coverWap") or record.get("cover") or None,
            introduction=record.get("introduction") or None,
            tags=_extract_tags(record),
            chapter_count=_optional_int(record.get("chapterCount")),
            play_count=str(record["playCount"]) if record.get("playCount") else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class Episode:
    """A single playable episode of a title."""
    number: EpisodeNumber
    title: str
    stream_url: StreamUrl

    def __post_init__(self) -> None:
        if not self.stream_url:
            raise ValueError("Episode requires a non-empty stream_url")

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _extract_tags(record: Mapping[str, Any]) -> List[str]:
    tags = record.get("tags")
    if isinstance(tags, list) and tags:
        return [str(t) for t in tags if t]
    tag_objects = record.get("tagV3s")
    if isinstance(tag_objects, list):
        return [
            str(t["tagName"]) for t in tag_objects
            if isinstance(t, Mapping) and t.get("tagName")
        ]
    return []


def _optional_int(value: Any) -> Optional[int]:
    try:
        return int(value) if value is not None else None
    except (TypeError, ValueError):
        return None
