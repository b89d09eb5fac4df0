"""
Public Query Engine

Read-only filtering and pagination over the record store for the public
catalog (home, search, category and tag archives).

Filters are intersected:
- search: case-insensitive substring of the name or of any tag
- category_id: exact id equality
- tag: exact member of the tag list
"""
import math
from typing import Any, Optional, Sequence

from app.models import Category, Item
from app.schemas.category import Category as CategorySchema
from app.schemas.item import Item as ItemSchema, ItemPage, ItemWithCategory, PageMeta
from app.services.record_store import RecordStore

DEFAULT_LIMIT = 9


def coerce_page(value: Any) -> int:
    """Turn any page input into a page number >= 1. Never raises."""
    try:
        page = int(value)
    except (TypeError, ValueError):
        return 1
    return page if page >= 1 else 1


def coerce_limit(value: Any, default: int = DEFAULT_LIMIT) -> int:
    try:
        limit = int(value)
    except (TypeError, ValueError):
        return default
    return limit if limit >= 1 else default


def matches_search(item: Item, term: str) -> bool:
    needle = term.lower()
    if needle in (item.name or "").lower():
        return True
    return any(needle in tag.lower() for tag in item.tags or [])


def matches_tag(item: Item, tag: str) -> bool:
    return tag in (item.tags or [])


def paginate(total_items: int, page: int, limit: int) -> tuple[int, PageMeta]:
    """Compute the window offset and page metadata."""
    offset = (page - 1) * limit
    meta = PageMeta(
        current_page=page,
        total_pages=math.ceil(total_items / limit),
        total_items=total_items,
        has_next=offset + limit < total_items,
        has_prev=offset > 0,
    )
    return offset, meta


def enrich_items(items: Sequence[Item], categories: Sequence[Category]) -> list[ItemWithCategory]:
    """Attach the category object and the thumbnail (first image) to each item."""
    by_id = {category.id: category for category in categories}
    enriched = []
    for item in items:
        category = by_id.get(item.category_id) if item.category_id else None
        enriched.append(ItemWithCategory(
            **ItemSchema.model_validate(item).model_dump(),
            category=CategorySchema.model_validate(category) if category else None,
            thumbnail=item.images[0] if item.images else None,
        ))
    return enriched


def filter_items(
    store: RecordStore,
    search: Optional[str] = None,
    category_id: Optional[str] = None,
    tag: Optional[str] = None,
) -> list[Item]:
    """All items matching the given filters, in stable name order."""
    filters = {"category_id": category_id} if category_id else {}
    items = store.list(Item, **filters)

    term = (search or "").strip()
    if term:
        items = [item for item in items if matches_search(item, term)]
    if tag:
        items = [item for item in items if matches_tag(item, tag)]
    return items


def get_public_items(
    store: RecordStore,
    page: Any = 1,
    limit: Any = DEFAULT_LIMIT,
    search: Optional[str] = None,
    category_id: Optional[str] = None,
    tag: Optional[str] = None,
) -> ItemPage:
    """
    Get one page of public items plus pagination metadata.

    Reads the store on every call; there is no caching layer.
    """
    page = coerce_page(page)
    limit = coerce_limit(limit)

    items = filter_items(store, search=search, category_id=category_id, tag=tag)
    offset, meta = paginate(len(items), page, limit)
    window = items[offset:offset + limit]

    categories = store.list(Category)
    return ItemPage(data=enrich_items(window, categories), meta=meta)
