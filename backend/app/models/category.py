import uuid
from sqlalchemy import Column, String
from sqlalchemy.orm import relationship
from app.database import Base

DEFAULT_ICON = "fa-solid fa-folder"


class Category(Base):
    __tablename__ = "categories"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(255), nullable=False)
    slug = Column(String(255), nullable=False, index=True)
    icon = Column(String(100), nullable=False, default=DEFAULT_ICON)  # e.g. 'fa-solid fa-folder'

    # Non-owning: deleting a category only clears items.category_id
    items = relationship("Item", back_populates="category", passive_deletes=True)
