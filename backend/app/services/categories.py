"""Category Service"""
import logging
from typing import Optional

from app.config import get_settings
from app.models import Category
from app.services.normalizer import slugify, unique_slug
from app.services.record_store import RecordStore

logger = logging.getLogger(__name__)


def category_slug(store: RecordStore, name: str, category_id: Optional[str] = None) -> str:
    return unique_slug(
        slugify(name),
        lambda candidate: store.slug_taken(Category, candidate, exclude_id=category_id),
        fallback="category",
    )


def create_category(store: RecordStore, name: str, icon: Optional[str] = None) -> Category:
    """Create a new category."""
    name = name.strip()
    category = store.insert(
        Category,
        name=name,
        slug=category_slug(store, name),
        icon=icon or get_settings().default_category_icon,
    )
    logger.info(f"Created category {category.id} ({category.slug})")
    return category


def update_category(
    store: RecordStore,
    category_id: str,
    name: str,
    icon: Optional[str] = None,
) -> Optional[Category]:
    """Rename a category (re-deriving its slug) and optionally change its icon."""
    category = store.get(Category, category_id)
    if category is None:
        return None

    name = name.strip() or category.name
    return store.update(Category, category_id, {
        "name": name,
        "slug": category_slug(store, name, category_id=category_id),
        "icon": icon or category.icon,
    })


def delete_category(store: RecordStore, category_id: str) -> bool:
    """Delete a category. Items referencing it keep existing with no category."""
    deleted = store.delete(Category, category_id)
    if deleted:
        logger.info(f"Deleted category {category_id}")
    return deleted
