from pydantic import BaseModel, field_validator

from app.schemas.category import Category


class ItemCreate(BaseModel):
    name: str

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("name must not be empty")
        return v.strip()


class ItemForm(BaseModel):
    """Admin editor submission, already normalised at the HTTP boundary.

    Multi-value fields are always lists, whatever number of values the
    browser sent.
    """
    name: str
    category_id: str | None = None
    tags: list[str] | str | None = None
    title: str | None = None
    content: str | None = None
    existing_images: list[str] = []
    external_link: str | None = None


class Item(BaseModel):
    id: str
    name: str
    slug: str
    category_id: str | None = None
    tags: list[str] = []
    title: str | None = None
    content: str | None = None
    images: list[str] = []
    file_path: str | None = None
    external_link: str | None = None

    class Config:
        from_attributes = True


class ItemWithCategory(Item):
    """Item enriched for public listings."""
    category: Category | None = None
    thumbnail: str | None = None


class PageMeta(BaseModel):
    current_page: int
    total_pages: int
    total_items: int
    has_next: bool
    has_prev: bool


class ItemPage(BaseModel):
    data: list[ItemWithCategory]
    meta: PageMeta


class Dashboard(BaseModel):
    items: list[Item]
    categories: list[Category]
