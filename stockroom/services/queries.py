"""Read-only views over the item collection.

Both filters work on whatever snapshot the caller passes in and are
recomputed on every call.
"""

from __future__ import annotations

from typing import Iterable

from sqlalchemy.orm import Session

from ..core.enums import ItemStatus
from ..crud.items import list_items
from ..models.item import Item


def _haystack(item: Item) -> tuple[str, ...]:
    return (
        item.name or "",
        item.id or "",
        item.description or "",
        item.category_name,
        item.location_id or "",
    )


def search_items(items: Iterable[Item], query: str | None) -> list[Item]:
    """Case-insensitive substring match across name, id, description, category and location."""

    items = list(items)
    needle = (query or "").strip().lower()
    if not needle:
        return items
    return [item for item in items if any(needle in value.lower() for value in _haystack(item))]


def filter_items_by_status(items: Iterable[Item], status: ItemStatus | str | None) -> list[Item]:
    items = list(items)
    if not status:
        return items
    wanted = ItemStatus(status).value
    return [item for item in items if item.status == wanted]


def list_item_view(
    db: Session,
    query: str | None = None,
    status: ItemStatus | str | None = None,
    location_id: str | None = None,
) -> list[Item]:
    items = list_items(db, location_id=location_id)
    return filter_items_by_status(search_items(items, query), status)
