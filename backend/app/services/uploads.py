"""
Upload staging for the admin item editor.

Writes multipart uploads to disk under opaque UUID names and produces the
UploadManifest the item service consumes. Field names, counts, the size
ceiling and image decodability are checked here, before anything reaches
the item service.
"""
import logging
from pathlib import Path
from typing import Optional, Sequence

from fastapi import UploadFile
from PIL import Image, UnidentifiedImageError

from app.config import get_settings
from app.exceptions import UploadRejectedError
from app.services.asset_store import (
    AssetStore,
    StagedUpload,
    UploadManifest,
    FIELD_NEW_IMAGES,
    FIELD_PRODUCT_FILE,
    SUBTREE_BY_FIELD,
)

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024


def _is_valid_image(path: Path) -> bool:
    """Check that Pillow can identify the file as an image."""
    try:
        with Image.open(path) as img:
            img.verify()
        return True
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, SyntaxError):
        return False


def _has_content(upload: Optional[UploadFile]) -> bool:
    # Browsers send an empty part for file inputs left blank
    return upload is not None and bool(upload.filename)


def _write_upload(asset_store: AssetStore, field: str, upload: UploadFile, max_size: int) -> StagedUpload:
    subtree = SUBTREE_BY_FIELD[field]
    original_name = Path(upload.filename).name
    target = asset_store.allocate(subtree, Path(original_name).suffix)
    staged = StagedUpload(field=field, original_name=original_name, stored_path=target)

    written = 0
    try:
        with open(target, "wb") as out:
            while True:
                chunk = upload.file.read(CHUNK_SIZE)
                if not chunk:
                    break
                written += len(chunk)
                if written > max_size:
                    raise UploadRejectedError(
                        f"File '{original_name}' exceeds the {max_size // (1024 * 1024)}MB upload limit"
                    )
                out.write(chunk)
    except (UploadRejectedError, OSError):
        asset_store.rollback_staged([staged])
        raise

    return staged


def stage_uploads(
    asset_store: AssetStore,
    new_images: Sequence[UploadFile] = (),
    product_file: Optional[UploadFile] = None,
    max_images: Optional[int] = None,
    max_size: Optional[int] = None,
) -> UploadManifest:
    """
    Persist uploaded files and return their manifest.

    On any violation every file staged so far is removed and
    UploadRejectedError is raised.
    """
    settings = get_settings()
    max_images = settings.max_new_images if max_images is None else max_images
    max_size = settings.max_upload_size if max_size is None else max_size

    images = [upload for upload in new_images if _has_content(upload)]
    if len(images) > max_images:
        raise UploadRejectedError(f"At most {max_images} new images can be uploaded at once")

    manifest = UploadManifest()
    try:
        for upload in images:
            staged = _write_upload(asset_store, FIELD_NEW_IMAGES, upload, max_size)
            manifest.new_images.append(staged)
            if not _is_valid_image(staged.stored_path):
                raise UploadRejectedError(f"File '{staged.original_name}' is not a valid image")

        if _has_content(product_file):
            manifest.product_file = _write_upload(asset_store, FIELD_PRODUCT_FILE, product_file, max_size)
    except UploadRejectedError:
        asset_store.rollback_staged(manifest)
        raise
    except OSError as e:
        asset_store.rollback_staged(manifest)
        raise UploadRejectedError("Could not store upload", details=str(e)) from e
    except Exception:
        asset_store.rollback_staged(manifest)
        raise

    if manifest:
        logger.info(
            f"Staged {len(manifest.new_images)} image(s)"
            f"{' and a product file' if manifest.product_file else ''}"
        )
    return manifest

