"""
Item Service

Single entry point for admin item workflows. Composes slug/tag
normalisation, the asset store, asset reconciliation and the record store
so that an item's record and its files stay consistent:

- create_item: skeleton record so the editor always works on an existing id
- upsert_item: metadata + image set + product file in one operation
- attach_screenshot: adopt a server-generated image like an upload
- delete_item: remove every asset, then the record

If anything fails after uploads were adopted, the uploads are removed
before the error propagates, so retries do not accumulate orphans. Old
assets already deleted by reconciliation cannot be restored.
"""
import logging
from typing import Any, Optional

from app.models import Category, Item
from app.schemas.item import ItemForm
from app.services.asset_store import AssetStore, StagedUpload, UploadManifest
from app.services.normalizer import dedupe, normalize_tags, slugify, unique_slug
from app.services.reconciliation import reconcile_assets
from app.services.record_store import RecordStore

logger = logging.getLogger(__name__)


def item_slug(store: RecordStore, name: str, item_id: Optional[str] = None) -> str:
    """Slug for an item name, suffixed when another item already owns it."""
    return unique_slug(
        slugify(name),
        lambda candidate: store.slug_taken(Item, candidate, exclude_id=item_id),
        fallback="item",
    )


def create_item(store: RecordStore, name: str) -> Item:
    """Create a near-empty item from a name."""
    name = name.strip()
    item = store.insert(
        Item,
        name=name,
        slug=item_slug(store, name),
        category_id=None,
        tags=[],
        title=name,
        content="",
        images=[],
        file_path=None,
        external_link=None,
    )
    logger.info(f"Created item {item.id} ({item.slug})")
    return item


def _resolve_category_id(store: RecordStore, category_id: Optional[str]) -> Optional[str]:
    if not category_id:
        return None
    return category_id if store.get(Category, category_id) is not None else None


def _commit_assets(
    store: RecordStore,
    asset_store: AssetStore,
    item: Item,
    values: dict[str, Any],
    requested_keep: list[str],
    uploads: UploadManifest,
) -> Item:
    """Adopt uploads, reconcile assets and write the record, rolling back uploads on failure."""
    old_images = list(item.images or [])
    old_file_path = item.file_path

    try:
        newly_uploaded = [asset_store.store(upload) for upload in uploads.new_images]
        new_product_file = asset_store.store(uploads.product_file) if uploads.product_file else None

        plan = reconcile_assets(
            asset_store,
            old_images=old_images,
            requested_keep=requested_keep,
            newly_uploaded=newly_uploaded,
            old_file_path=old_file_path,
            new_product_file=new_product_file,
        )
        removed = [*plan.removed_images, *([plan.removed_file] if plan.removed_file else [])]
        if removed:
            logger.info(f"Item {item.id}: removed {removed}")
        if plan.failed_deletions:
            logger.warning(f"Item {item.id}: could not delete {plan.failed_deletions}")

        values = {**values, "images": plan.final_images, "file_path": plan.final_file_path}
        updated = store.update(Item, item.id, values)
    except Exception:
        logger.error(f"Update of item {item.id} failed, removing {len(uploads.all())} upload(s)")
        asset_store.rollback_staged(uploads)
        raise

    if updated is None:
        # Deleted concurrently between read and write
        asset_store.rollback_staged(uploads)
    return updated


def upsert_item(
    store: RecordStore,
    asset_store: AssetStore,
    item_id: str,
    form: ItemForm,
    uploads: Optional[UploadManifest] = None,
) -> Optional[Item]:
    """
    Apply an editor submission to an existing item.

    Args:
        store: Record store
        asset_store: Asset store holding the item's files
        item_id: Item to update
        form: Normalised form fields
        uploads: Files staged for this request

    Returns:
        The updated item, or None if no such item exists
    """
    uploads = uploads or UploadManifest()

    item = store.get(Item, item_id)
    if item is None:
        asset_store.rollback_staged(uploads)
        return None

    name = (form.name or "").strip() or item.name
    old_images = list(item.images or [])
    # Only paths already on the record can be kept
    requested_keep = [path for path in dedupe(form.existing_images) if path in old_images]

    values = {
        "name": name,
        "slug": item_slug(store, name, item_id=item_id),
        "category_id": _resolve_category_id(store, form.category_id),
        "tags": dedupe(normalize_tags(form.tags)),
        "title": form.title or name,
        "content": form.content or "",
        "external_link": form.external_link.strip() if form.external_link and form.external_link.strip() else None,
    }

    updated = _commit_assets(store, asset_store, item, values, requested_keep, uploads)
    if updated is not None:
        logger.info(f"Updated item {item_id} ({updated.slug})")
    return updated


def attach_screenshot(
    store: RecordStore,
    asset_store: AssetStore,
    item_id: str,
    screenshot: StagedUpload,
) -> Optional[Item]:
    """Append a generated image to an item, keeping all its current assets."""
    uploads = UploadManifest(new_images=[screenshot])

    item = store.get(Item, item_id)
    if item is None:
        asset_store.rollback_staged(uploads)
        return None

    return _commit_assets(store, asset_store, item, {}, list(item.images or []), uploads)


def delete_item(store: RecordStore, asset_store: AssetStore, item_id: str) -> bool:
    """
    Delete an item together with all of its files.

    Missing items are a no-op. File deletions are best effort; the record
    is removed even if some file could not be.
    """
    item = store.get(Item, item_id)
    if item is None:
        return False

    failed = asset_store.delete_images(item.images or [])
    if item.file_path and not asset_store.discard_file(item.file_path):
        failed.append(item.file_path)
    if failed:
        logger.warning(f"Item {item_id}: could not delete {failed}")

    store.delete(Item, item_id)
    logger.info(f"Deleted item {item_id}")
    return True
