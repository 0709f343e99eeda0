"""Destination filtering, sorting and progress statistics.

These are pure functions over plain destination records in their wire
format (camelCase keys, as produced by ``DestinationOut`` with
``by_alias=True`` or decoded from an API response). The API service and
the client mirror store both call them, so a filtered view computed
locally always agrees with what the server returns for the same filters.
"""

import unicodedata
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Iterable, Mapping

Record = Mapping[str, Any]

STATUS_ALL = "all"
SORT_NEWEST = "newest"
SORT_OLDEST = "oldest"
SORT_ALPHABETICAL = "alphabetical"


@dataclass(frozen=True)
class DestinationFilter:
    """Search, status, country and sort selections.

    Empty values disable the corresponding filter. An unknown sort key
    falls back to newest first.
    """

    search: str = ""
    status: str = STATUS_ALL
    country: str = ""
    sort: str = SORT_NEWEST


def matches_search(record: Record, query: str) -> bool:
    """Case-insensitive substring match on title, country or description."""
    if not query:
        return True
    needle = query.casefold()
    return any(
        needle in (record.get(field) or "").casefold()
        for field in ("title", "country", "description")
    )


def matches(record: Record, criteria: DestinationFilter) -> bool:
    """Return True if ``record`` passes every filter in ``criteria``."""
    if criteria.status and criteria.status != STATUS_ALL:
        if record.get("status") != criteria.status:
            return False
    if criteria.country and record.get("country") != criteria.country:
        return False
    return matches_search(record, criteria.search)


def is_visible(record: Record, owner_id: str | None) -> bool:
    """Ownership scope of a listing.

    Everything is visible without an owner (admin view), otherwise the
    owner's records plus admin-created ones.
    """
    if owner_id is None:
        return True
    return record.get("userId") == owner_id or bool(record.get("isAdminCreated"))


def collation_key(text: str) -> tuple:
    """Locale-style ordering key: accents and case only break ties."""
    folded = unicodedata.normalize("NFKD", text.casefold())
    base = "".join(ch for ch in folded if not unicodedata.combining(ch))
    return (base, folded, text)


def _timestamp(value: datetime | str | None) -> datetime:
    if value is None:
        return datetime.min.replace(tzinfo=timezone.utc)
    if isinstance(value, str):
        value = datetime.fromisoformat(value)
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value


def sort_destinations(records: Iterable[Record], sort: str = SORT_NEWEST) -> list:
    """Sort records by creation time or title.

    Ties are broken by id, so ``newest`` and ``oldest`` are exact
    reverses of each other.
    """
    if sort == SORT_ALPHABETICAL:
        return sorted(
            records,
            key=lambda r: (collation_key(r.get("title") or ""), r.get("id") or ""),
        )
    return sorted(
        records,
        key=lambda r: (_timestamp(r.get("createdAt")), r.get("id") or ""),
        reverse=sort != SORT_OLDEST,
    )


def filter_destinations(records: Iterable[Record], criteria: DestinationFilter) -> list:
    """Filter, then sort."""
    return sort_destinations(
        (record for record in records if matches(record, criteria)), criteria.sort
    )


def percent(part: int, whole: int) -> int:
    """``part / whole * 100`` rounded half up; 0 when ``whole`` is 0."""
    if whole <= 0:
        return 0
    return (200 * part + whole) // (2 * whole)


def compute_stats(records: Iterable[Record]) -> dict:
    """Progress statistics over one user's destinations."""
    records = list(records)
    total = len(records)
    visited = sum(1 for record in records if record.get("status") == "visited")
    return {
        "total": total,
        "visited": visited,
        "toVisit": total - visited,
        "countries": len({record.get("country") for record in records}),
        "progress": percent(visited, total),
    }


EMPTY_STATS = compute_stats([])
