from app.schemas.category import Category, CategoryCreate, CategoryUpdate
from app.schemas.item import (
    Item,
    ItemCreate,
    ItemForm,
    ItemWithCategory,
    ItemPage,
    PageMeta,
    Dashboard,
)

__all__ = [
    "Category", "CategoryCreate", "CategoryUpdate",
    "Item", "ItemCreate", "ItemForm", "ItemWithCategory",
    "ItemPage", "PageMeta", "Dashboard",
]
