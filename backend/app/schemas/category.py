from pydantic import BaseModel


class CategoryBase(BaseModel):
    name: str
    icon: str | None = None


class CategoryCreate(CategoryBase):
    pass


class CategoryUpdate(CategoryBase):
    pass


class Category(BaseModel):
    id: str
    name: str
    slug: str
    icon: str

    class Config:
        from_attributes = True
