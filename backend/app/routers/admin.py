"""Admin API endpoints for managing catalog items and categories."""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Response, UploadFile, status
from pydantic import BaseModel
from starlette.concurrency import run_in_threadpool

from app.config import get_settings
from app.dependencies import get_asset_store, get_record_store, require_admin
from app.exceptions import AssetStoreError, CatalogError, UploadRejectedError
from app.models import Category, Item
from app.schemas.category import Category as CategorySchema, CategoryCreate, CategoryUpdate
from app.schemas.item import Dashboard, Item as ItemSchema, ItemCreate, ItemForm
from app.services import auth
from app.services.asset_store import AssetStore
from app.services.categories import create_category, delete_category, update_category
from app.services.items import attach_screenshot, create_item, delete_item, upsert_item
from app.services.record_store import RecordStore
from app.services.screenshots import capture_screenshot
from app.services.uploads import stage_uploads

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])


# ============== Schemas ==============

class AdminLogin(BaseModel):
    username: str
    password: str


# ============== Session ==============

@router.post("/login")
def login(data: AdminLogin, response: Response):
    """Open an admin session and set the session cookie."""
    session = auth.login(data.username, data.password)
    if session is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Access Denied")

    settings = get_settings()
    response.set_cookie(
        settings.session_cookie_name,
        auth.encode_session(session),
        max_age=settings.session_expire_minutes * 60,
        httponly=True,
        samesite="lax",
    )
    return {"message": "Logged in", "username": session.username}


@router.post("/logout")
def logout(response: Response):
    """Close the admin session."""
    response.delete_cookie(get_settings().session_cookie_name)
    return {"message": "Logged out"}


@router.get("/dashboard", response_model=Dashboard)
def dashboard(
    store: RecordStore = Depends(get_record_store),
    session: auth.AdminSession = Depends(require_admin),
):
    """All items and categories for the admin overview."""
    return Dashboard(
        items=[ItemSchema.model_validate(item) for item in store.list(Item)],
        categories=[CategorySchema.model_validate(c) for c in store.list(Category)],
    )


# ============== Items ==============

def _split_tags(values: list[str]) -> list[str]:
    """Flatten one or many submitted tag fields into single tokens."""
    return [token for value in values for token in value.split(",")]


@router.post("/items", response_model=ItemSchema, status_code=status.HTTP_201_CREATED)
def add_item(
    data: ItemCreate,
    store: RecordStore = Depends(get_record_store),
    session: auth.AdminSession = Depends(require_admin),
):
    """Create a blank item the editor can then update."""
    try:
        return create_item(store, data.name)
    except CatalogError as e:
        raise HTTPException(status_code=500, detail=e.message)


@router.get("/items/{item_id}", response_model=ItemSchema)
def get_item(
    item_id: str,
    store: RecordStore = Depends(get_record_store),
    session: auth.AdminSession = Depends(require_admin),
):
    item = store.get(Item, item_id)
    if not item:
        raise HTTPException(status_code=404, detail="Item not found")
    return item


@router.post("/items/{item_id}/upsert", response_model=ItemSchema)
def upsert(
    item_id: str,
    name: str = Form(...),
    category_id: Optional[str] = Form(None, alias="categoryId"),
    tags: list[str] = Form(default=[]),
    title: Optional[str] = Form(None),
    content: Optional[str] = Form(None),
    existing_images: list[str] = Form(default=[], alias="existingImages"),
    external_link: Optional[str] = Form(None, alias="externalLink"),
    new_images: list[UploadFile] = File(default=[], alias="newImages"),
    product_file: Optional[UploadFile] = File(None, alias="productFile"),
    store: RecordStore = Depends(get_record_store),
    asset_store: AssetStore = Depends(get_asset_store),
    session: auth.AdminSession = Depends(require_admin),
):
    """
    Save the item editor: metadata, content, images and product file.

    Multi-value fields (existingImages, tags, newImages) are lists here no
    matter how many values were submitted.
    """
    if store.get(Item, item_id) is None:
        raise HTTPException(status_code=404, detail="Item not found")

    try:
        uploads = stage_uploads(asset_store, new_images, product_file)
    except UploadRejectedError as e:
        raise HTTPException(status_code=422, detail=e.message)

    form = ItemForm(
        name=name,
        category_id=category_id,
        tags=_split_tags(tags),
        title=title,
        content=content,
        existing_images=existing_images,
        external_link=external_link,
    )

    try:
        item = upsert_item(store, asset_store, item_id, form, uploads)
    except CatalogError as e:
        logger.error(f"Upsert of item {item_id} failed: {e}")
        raise HTTPException(status_code=500, detail=e.message)

    if item is None:
        raise HTTPException(status_code=404, detail="Item not found")
    return item


@router.post("/items/{item_id}/screenshot", response_model=ItemSchema)
async def generate_screenshot(
    item_id: str,
    store: RecordStore = Depends(get_record_store),
    asset_store: AssetStore = Depends(get_asset_store),
    session: auth.AdminSession = Depends(require_admin),
):
    """Render the item's HTML file and add the result to its images."""
    item = await run_in_threadpool(store.get, Item, item_id)
    if not item:
        raise HTTPException(status_code=404, detail="Item not found")

    try:
        screenshot = await capture_screenshot(asset_store, item)
    except AssetStoreError as e:
        raise HTTPException(status_code=400, detail=e.message)

    try:
        updated = await run_in_threadpool(attach_screenshot, store, asset_store, item_id, screenshot)
    except CatalogError as e:
        raise HTTPException(status_code=500, detail=e.message)

    if updated is None:
        raise HTTPException(status_code=404, detail="Item not found")
    return updated


@router.delete("/items/{item_id}")
def remove_item(
    item_id: str,
    store: RecordStore = Depends(get_record_store),
    asset_store: AssetStore = Depends(get_asset_store),
    session: auth.AdminSession = Depends(require_admin),
):
    """Delete an item and all of its files. Unknown ids are a no-op."""
    try:
        deleted = delete_item(store, asset_store, item_id)
    except CatalogError as e:
        raise HTTPException(status_code=500, detail=e.message)
    return {"message": "Item deleted" if deleted else "Nothing to delete", "deleted": deleted}


# ============== Categories ==============

@router.get("/categories", response_model=list[CategorySchema])
def list_categories(
    store: RecordStore = Depends(get_record_store),
    session: auth.AdminSession = Depends(require_admin),
):
    return store.list(Category)


@router.post("/categories", response_model=CategorySchema, status_code=status.HTTP_201_CREATED)
def add_category(
    data: CategoryCreate,
    store: RecordStore = Depends(get_record_store),
    session: auth.AdminSession = Depends(require_admin),
):
    if not data.name.strip():
        raise HTTPException(status_code=422, detail="Category name is required")
    try:
        return create_category(store, data.name, data.icon)
    except CatalogError as e:
        raise HTTPException(status_code=500, detail=e.message)


@router.get("/categories/{category_id}", response_model=CategorySchema)
def get_category(
    category_id: str,
    store: RecordStore = Depends(get_record_store),
    session: auth.AdminSession = Depends(require_admin),
):
    category = store.get(Category, category_id)
    if not category:
        raise HTTPException(status_code=404, detail="Category not found")
    return category


@router.put("/categories/{category_id}", response_model=CategorySchema)
def edit_category(
    category_id: str,
    data: CategoryUpdate,
    store: RecordStore = Depends(get_record_store),
    session: auth.AdminSession = Depends(require_admin),
):
    try:
        category = update_category(store, category_id, data.name, data.icon)
    except CatalogError as e:
        raise HTTPException(status_code=500, detail=e.message)
    if category is None:
        raise HTTPException(status_code=404, detail="Category not found")
    return category


@router.delete("/categories/{category_id}")
def remove_category(
    category_id: str,
    store: RecordStore = Depends(get_record_store),
    session: auth.AdminSession = Depends(require_admin),
):
    """Delete a category; its items stay, uncategorised."""
    try:
        deleted = delete_category(store, category_id)
    except CatalogError as e:
        raise HTTPException(status_code=500, detail=e.message)
    return {"message": "Category deleted" if deleted else "Nothing to delete", "deleted": deleted}
