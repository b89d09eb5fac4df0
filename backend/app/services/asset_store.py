"""
Asset Store

Filesystem-backed storage for item images and downloadable product files.

Records reference assets by logical path:
- /uploads/images/<uuid>.<ext>
- /uploads/files/<uuid>.<ext>

Physical files live under the public asset root. Lookups always go by
basename inside the expected subtree, so a record can never point the
store outside of it.
"""
import logging
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Optional

from app.config import get_settings
from app.exceptions import AssetStoreError

logger = logging.getLogger(__name__)

IMAGES = "images"
FILES = "files"

# Upload manifest field names
FIELD_NEW_IMAGES = "newImages"
FIELD_PRODUCT_FILE = "productFile"

SUBTREE_BY_FIELD = {
    FIELD_NEW_IMAGES: IMAGES,
    FIELD_PRODUCT_FILE: FILES,
}


@dataclass
class StagedUpload:
    """A file already written to disk by the upload handler."""
    field: str  # 'newImages' or 'productFile'
    original_name: str
    stored_path: Path


@dataclass
class UploadManifest:
    """Uploads of one request, grouped by form field."""
    new_images: list[StagedUpload] = field(default_factory=list)
    product_file: Optional[StagedUpload] = None

    def all(self) -> list[StagedUpload]:
        staged = list(self.new_images)
        if self.product_file is not None:
            staged.append(self.product_file)
        return staged

    def __bool__(self) -> bool:
        return bool(self.new_images) or self.product_file is not None


class AssetStore:
    """Persist and delete image and product file assets."""

    def __init__(self, public_dir: Optional[Path] = None):
        self.public_dir = Path(public_dir or get_settings().public_dir)
        self.uploads_dir = self.public_dir / "uploads"

    def subtree_dir(self, subtree: str) -> Path:
        return self.uploads_dir / subtree

    def ensure_directories(self):
        for subtree in (IMAGES, FILES):
            self.subtree_dir(subtree).mkdir(parents=True, exist_ok=True)

    def logical_path(self, subtree: str, filename: str) -> str:
        """Get the path persisted on a record for a stored file."""
        return f"/uploads/{subtree}/{filename}"

    def full_path(self, subtree: str, asset_path: str) -> Path:
        """Get the filesystem path for a logical path, looked up by basename."""
        return self.subtree_dir(subtree) / Path(asset_path).name

    def allocate(self, subtree: str, extension: str = "") -> Path:
        """Reserve an opaque, never user-supplied, filename in a subtree."""
        directory = self.subtree_dir(subtree)
        directory.mkdir(parents=True, exist_ok=True)
        return directory / f"{uuid.uuid4()}{extension.lower()}"

    def store(self, upload: StagedUpload) -> str:
        """
        Adopt a staged upload and return its logical asset path.

        The upload handler has already written the file under a random name;
        this only checks it landed in the right subtree and builds the path
        that goes on the record.
        """
        subtree = SUBTREE_BY_FIELD.get(upload.field)
        if subtree is None:
            raise AssetStoreError(f"Invalid upload field: {upload.field}")

        stored = Path(upload.stored_path)
        expected = self.full_path(subtree, stored.name)
        if stored.resolve() != expected.resolve() or not expected.is_file():
            raise AssetStoreError(
                f"Upload '{upload.original_name}' was not stored",
                details=str(stored),
            )
        return self.logical_path(subtree, stored.name)

    def _delete(self, subtree: str, asset_path: Optional[str]) -> bool:
        """
        Remove a physical file.

        Returns True if a file was removed, False if there was nothing to
        remove. Any other I/O failure is logged and raised.
        """
        if not asset_path:
            return False

        target = self.full_path(subtree, asset_path)
        try:
            target.unlink()
        except FileNotFoundError:
            return False
        except OSError as e:
            logger.error(f"Failed to delete file {target}: {e}")
            raise AssetStoreError(f"Failed to delete {asset_path}", details=str(e)) from e

        logger.info(f"Deleted asset {asset_path}")
        return True

    def delete_image(self, asset_path: Optional[str]) -> bool:
        return self._delete(IMAGES, asset_path)

    def delete_file(self, asset_path: Optional[str]) -> bool:
        return self._delete(FILES, asset_path)

    def delete_images(self, asset_paths: Iterable[str]) -> list[str]:
        """
        Best-effort removal of several images.

        Each deletion is independent; returns the paths that could not be
        removed.
        """
        failed = []
        for asset_path in asset_paths:
            try:
                self.delete_image(asset_path)
            except AssetStoreError:
                failed.append(asset_path)
        return failed

    def discard_file(self, asset_path: Optional[str]) -> bool:
        """Best-effort removal of a product file. Returns False on failure."""
        try:
            self.delete_file(asset_path)
        except AssetStoreError:
            return False
        return True

    def rollback_staged(self, uploads: UploadManifest | Iterable[StagedUpload]):
        """
        Remove just-uploaded files whose record write never happened.

        Failures are ignored one by one so a single stuck file does not
        block cleanup of the rest.
        """
        staged = uploads.all() if isinstance(uploads, UploadManifest) else list(uploads)
        for upload in staged:
            try:
                Path(upload.stored_path).unlink()
            except FileNotFoundError:
                continue
            except OSError as e:
                logger.warning(f"Could not roll back upload {upload.stored_path}: {e}")
        if staged:
            logger.info(f"Rolled back {len(staged)} staged upload(s)")

    def resolve_file(self, asset_path: str) -> Optional[Path]:
        """Get the on-disk product file for a logical path, if it exists."""
        target = self.full_path(FILES, asset_path)
        return target if target.is_file() else None
