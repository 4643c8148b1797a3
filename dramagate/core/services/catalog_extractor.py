"""Extracts catalog entries from shape-unstable upstream payloads.

The catalog and search endpoints change their response layout from release
to release. Each known layout is an ExtractionStrategy (a predicate plus an
extractor) in an ordered table; every matching strategy contributes items.
When nothing matches, a heuristic scan looks for the first array of records
that all carry an identifier. Results are de-duplicated by id, first
occurrence wins.

Adding a layout means appending a strategy to KNOWN_SHAPES; the extraction
loop itself never changes.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Iterable, List, Mapping, Optional, Sequence

from dramagate.domain.exceptions import UnexpectedResponseShape
from dramagate.domain.models.catalog import CatalogEntry, ENTRY_ID_FIELD

logger = logging.getLogger(__name__)

Predicate = Callable[[Any], bool]
Extractor = Callable[[Any], Iterable[Any]]


@dataclass(frozen=True)
class ExtractionStrategy:
    """One known payload layout."""
    name: str
    matches: Predicate
    extract: Extractor


# --- Path helpers ---

def _get(node: Any, *path: str) -> Any:
    """Walks nested mappings, returning None as soon as a step is missing."""
    for key in path:
        if not isinstance(node, Mapping):
            return None
        node = node.get(key)
    return node


def _list_at(*path: str) -> ExtractionStrategy:
    name = ".".join(path)
    return ExtractionStrategy(
        name=name,
        matches=lambda payload: isinstance(_get(payload, *path), list),
        extract=lambda payload: _get(payload, *path),
    )


def _column_books(payload: Any) -> Iterable[Any]:
    for column in _get(payload, "data", "columnVoList") or []:
        books = _get(column, "bookList")
        if isinstance(books, list):
            yield from books


KNOWN_SHAPES: Sequence[ExtractionStrategy] = (
    ExtractionStrategy(
        name="top-level array",
        matches=lambda payload: isinstance(payload, list),
        extract=lambda payload: payload,
    ),
    _list_at("data"),
    _list_at("data", "list"),
    _list_at("data", "suggestList"),
    ExtractionStrategy(
        name="data.columnVoList[].bookList",
        matches=lambda payload: isinstance(_get(payload, "data", "columnVoList"), list),
        extract=_column_books,
    ),
    _list_at("data", "recommendList", "records"),
)


def has_identifier(item: Any, id_field: str = ENTRY_ID_FIELD) -> bool:
    """True for mappings whose identifier field is present and non-empty."""
    if not isinstance(item, Mapping):
        return False
    value = item.get(id_field)
    return value is not None and str(value).strip() != ""


class CatalogExtractor:
    """Applies the strategy table to a raw payload. Stateless."""

    def __init__(self, strategies: Sequence[ExtractionStrategy] = KNOWN_SHAPES, id_field: str = ENTRY_ID_FIELD):
        self.strategies = tuple(strategies)
        self.id_field = id_field

    def extract_entries(self, raw_payload: Any) -> List[CatalogEntry]:
        """Returns the de-duplicated catalog entries found in `raw_payload`.

        Args:
            raw_payload: Decoded JSON from a catalog or search endpoint.

        Returns:
            Entries in discovery order; an empty list when nothing usable was found.

        Raises:
            UnexpectedResponseShape: If the payload is neither an object nor an array.
        """
        if not isinstance(raw_payload, (Mapping, list)):
            raise UnexpectedResponseShape(
                f"Expected a JSON object or array, got {type(raw_payload).__name__}"
            )

        records: List[Mapping[str, Any]] = []
        matched: List[str] = []
        for strategy in self.strategies:
            if not strategy.matches(raw_payload):
                continue
            matched.append(strategy.name)
            records.extend(item for item in strategy.extract(raw_payload) if has_identifier(item, self.id_field))

        if not matched:
            fallback = self._heuristic_scan(raw_payload)
            if fallback is None:
                keys = sorted(raw_payload)[:10] if isinstance(raw_payload, Mapping) else []
                logger.warning(f"No known catalog layout in payload with keys {keys}")
                return []
            logger.info(f"Catalog entries found by heuristic scan under '{fallback[0]}'")
            records = fallback[1]
        else:
            logger.debug(f"Catalog layouts matched: {matched}")

        return self._dedupe(records)

    def _heuristic_scan(self, payload: Mapping[str, Any]) -> Optional[tuple]:
        """Finds the first non-empty array whose elements all carry the identifier.

        Scans the payload's own keys, then those of `data` when it is an object.
        """
        if not isinstance(payload, Mapping):
            return None
        containers = [("", payload)]
        data = payload.get("data")
        if isinstance(data, Mapping):
            containers.append(("data.", data))
        for prefix, container in containers:
            for key, value in container.items():
                if isinstance(value, list) and value and all(has_identifier(v, self.id_field) for v in value):
                    return f"{prefix}{key}", value
        return None

    def _dedupe(self, records: Iterable[Mapping[str, Any]]) -> List[CatalogEntry]:
        seen = set()
        entries: List[CatalogEntry] = []
        for record in records:
            entry_id = str(record[self.id_field])
            if entry_id in seen:
                continue
            seen.add(entry_id)
            entries.append(CatalogEntry.from_record(record))
        return entries


_default_extractor = CatalogExtractor()


def extract_entries(raw_payload: Any) -> List[CatalogEntry]:
    """Module-level shortcut using the default strategy table."""
    return _default_extractor.extract_entries(raw_payload)
