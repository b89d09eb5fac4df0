from app.models.category import Category
from app.models.item import Item

__all__ = [
    "Category",
    "Item",
]
