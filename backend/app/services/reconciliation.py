"""
Asset Reconciliation

Diffs an item's stored assets against a new submission and removes the
files that are no longer referenced. Nothing here touches the record
store: the caller commits the returned plan, and rolls back the newly
adopted uploads if that commit fails.
"""
import logging
from dataclasses import dataclass, field
from typing import Optional, Sequence

from app.services.asset_store import AssetStore
from app.services.normalizer import dedupe

logger = logging.getLogger(__name__)


@dataclass
class AssetPlan:
    """Result of reconciling one submission."""
    final_images: list[str]
    final_file_path: Optional[str]
    removed_images: list[str] = field(default_factory=list)
    removed_file: Optional[str] = None
    failed_deletions: list[str] = field(default_factory=list)


def images_to_remove(old_images: Sequence[str], requested_keep: Sequence[str]) -> list[str]:
    """Old images the submission did not keep, by exact path equality."""
    keep = set(requested_keep)
    return dedupe(path for path in old_images if path not in keep)


def reconcile_assets(
    asset_store: AssetStore,
    old_images: Sequence[str],
    requested_keep: Sequence[str],
    newly_uploaded: Sequence[str],
    old_file_path: Optional[str] = None,
    new_product_file: Optional[str] = None,
) -> AssetPlan:
    """
    Compute and apply the asset diff for an item update.

    Args:
        asset_store: Store used for physical deletions
        old_images: Images currently on the record
        requested_keep: Subset of old_images the submission retains
        newly_uploaded: Logical paths of images adopted in this operation
        old_file_path: Product file currently on the record
        new_product_file: Logical path of a replacement product file

    Returns:
        AssetPlan with the images and file path to persist
    """
    to_remove = images_to_remove(old_images, requested_keep)

    # Best-effort: a failure is logged by the store and does not stop the others
    failed = asset_store.delete_images(to_remove)

    final_images = dedupe([*requested_keep, *newly_uploaded])

    final_file_path = old_file_path
    removed_file = None
    if new_product_file:
        if old_file_path and old_file_path != new_product_file:
            if asset_store.discard_file(old_file_path):
                removed_file = old_file_path
            else:
                failed.append(old_file_path)
        final_file_path = new_product_file

    if to_remove or removed_file:
        logger.info(
            f"Reconciled assets: kept {len(requested_keep)}, added {len(newly_uploaded)}, "
            f"removed {len(to_remove) + (1 if removed_file else 0)}"
        )

    return AssetPlan(
        final_images=final_images,
        final_file_path=final_file_path,
        removed_images=[path for path in to_remove if path not in failed],
        removed_file=removed_file,
        failed_deletions=failed,
    )
