"""
Public catalog endpoints: listings, search, archives, item pages and downloads.

Nothing here mutates the store.
"""
from pathlib import Path
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import FileResponse, RedirectResponse

from app.config import get_settings
from app.dependencies import get_asset_store, get_record_store
from app.models import Category, Item
from app.schemas.category import Category as CategorySchema
from app.schemas.item import ItemPage, ItemWithCategory
from app.services.asset_store import AssetStore
from app.services.catalog_query import enrich_items, get_public_items
from app.services.record_store import RecordStore
from app.services.screenshots import is_html_file

router = APIRouter(tags=["catalog"])


class CategoryArchive(ItemPage):
    category: CategorySchema


class TagArchive(ItemPage):
    tag: str


def _page_size(limit: Optional[str]) -> str | int:
    return limit if limit is not None else get_settings().items_per_page


@router.get("/items", response_model=ItemPage)
def list_items(
    page: Optional[str] = None,
    limit: Optional[str] = None,
    search: Optional[str] = None,
    category_id: Optional[str] = Query(None, alias="categoryId"),
    tag: Optional[str] = None,
    store: RecordStore = Depends(get_record_store),
):
    """List items with optional search, category and tag filters."""
    # page/limit are taken as strings: bad values fall back to defaults instead of a 422
    return get_public_items(
        store,
        page=page,
        limit=_page_size(limit),
        search=search,
        category_id=category_id,
        tag=tag,
    )


@router.get("/search/{query}", response_model=ItemPage)
def search_items(
    query: str,
    page: Optional[str] = None,
    limit: Optional[str] = None,
    store: RecordStore = Depends(get_record_store),
):
    """Search items by name or tag."""
    return get_public_items(store, page=page, limit=_page_size(limit), search=query)


@router.get("/categories", response_model=list[CategorySchema])
def list_categories(store: RecordStore = Depends(get_record_store)):
    return store.list(Category)


@router.get("/categories/{slug}", response_model=CategoryArchive)
def category_archive(
    slug: str,
    page: Optional[str] = None,
    limit: Optional[str] = None,
    store: RecordStore = Depends(get_record_store),
):
    """Items in a category, looked up by category slug."""
    category = store.get_by_slug(Category, slug)
    if not category:
        raise HTTPException(status_code=404, detail="Category not found")

    result = get_public_items(store, page=page, limit=_page_size(limit), category_id=category.id)
    return CategoryArchive(category=CategorySchema.model_validate(category), **result.model_dump())


@router.get("/tags/{tag}", response_model=TagArchive)
def tag_archive(
    tag: str,
    page: Optional[str] = None,
    limit: Optional[str] = None,
    store: RecordStore = Depends(get_record_store),
):
    result = get_public_items(store, page=page, limit=_page_size(limit), tag=tag)
    return TagArchive(tag=tag, **result.model_dump())


@router.get("/items/{slug}", response_model=ItemWithCategory)
def get_item(slug: str, store: RecordStore = Depends(get_record_store)):
    """Get a single item by slug, with its category."""
    item = store.get_by_slug(Item, slug)
    if not item:
        raise HTTPException(status_code=404, detail=f"Item '{slug}' not found")

    categories = [store.get(Category, item.category_id)] if item.category_id else []
    return enrich_items([item], [c for c in categories if c is not None])[0]


@router.get("/items/{slug}/download")
def download_item(
    slug: str,
    store: RecordStore = Depends(get_record_store),
    asset_store: AssetStore = Depends(get_asset_store),
):
    """
    Download an item's product file.

    The file is served as <slug><original extension>; the opaque storage
    name is never exposed.
    """
    item = store.get_by_slug(Item, slug)
    if not item or not item.file_path:
        raise HTTPException(status_code=404, detail="File not found")

    full_path = asset_store.resolve_file(item.file_path)
    if full_path is None:
        raise HTTPException(status_code=404, detail="File not found")

    return FileResponse(full_path, filename=f"{item.slug}{Path(item.file_path).suffix}")


@router.get("/items/{slug}/preview")
def preview_item(
    slug: str,
    store: RecordStore = Depends(get_record_store),
    asset_store: AssetStore = Depends(get_asset_store),
):
    """Serve an HTML product file inline; anything else goes back to the item."""
    item = store.get_by_slug(Item, slug)
    full_path = asset_store.resolve_file(item.file_path) if item and is_html_file(item.file_path) else None
    if full_path is None:
        return RedirectResponse(url=f"{get_settings().api_prefix}/items/{slug}", status_code=303)

    return FileResponse(full_path, media_type="text/html")
