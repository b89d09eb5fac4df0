"""
Screenshot generation for HTML product files.

Renders an item's HTML file in headless Chromium and writes a PNG into
the images directory under an opaque name. The result is staged exactly
like an uploaded image, so the item service can adopt or roll it back.
"""
import logging
from pathlib import Path

from playwright.async_api import async_playwright, Error as PlaywrightError

from app.config import get_settings
from app.exceptions import AssetStoreError
from app.models import Item
from app.services.asset_store import AssetStore, StagedUpload, FIELD_NEW_IMAGES, IMAGES

logger = logging.getLogger(__name__)


def is_html_file(file_path: str | None) -> bool:
    return bool(file_path) and file_path.lower().endswith((".html", ".htm"))


async def capture_screenshot(asset_store: AssetStore, item: Item) -> StagedUpload:
    """
    Screenshot an item's HTML product file.

    Raises:
        AssetStoreError: If the item has no HTML file or rendering fails
    """
    if not is_html_file(item.file_path):
        raise AssetStoreError(f"Item '{item.slug}' has no HTML file to capture")

    source = asset_store.resolve_file(item.file_path)
    if source is None:
        raise AssetStoreError(f"Product file for '{item.slug}' is missing", details=item.file_path)

    settings = get_settings()
    target = asset_store.allocate(IMAGES, ".png")
    staged = StagedUpload(field=FIELD_NEW_IMAGES, original_name=f"{item.slug}.png", stored_path=target)

    try:
        async with async_playwright() as p:
            browser = await p.chromium.launch(headless=True)
            try:
                page = await browser.new_page(
                    viewport={"width": settings.screenshot_width, "height": settings.screenshot_height}
                )
                await page.goto(Path(source).resolve().as_uri(), wait_until="networkidle",
                                timeout=settings.screenshot_timeout_ms)
                await page.screenshot(path=str(target))
            finally:
                await browser.close()
    except PlaywrightError as e:
        asset_store.rollback_staged([staged])
        logger.error(f"Screenshot of {item.slug} failed: {e}")
        raise AssetStoreError(f"Screenshot of '{item.slug}' failed", details=str(e)) from e

    logger.info(f"Captured screenshot for {item.slug}")
    return staged
