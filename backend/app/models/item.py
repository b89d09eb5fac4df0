import uuid
from sqlalchemy import Column, String, Text, ForeignKey
from sqlalchemy.orm import relationship
from app.database import Base
from app.models.types import JSONList


class Item(Base):
    __tablename__ = "items"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(255), nullable=False, index=True)
    slug = Column(String(255), nullable=False, index=True)
    category_id = Column(
        String(36),
        ForeignKey("categories.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    tags = Column(JSONList, nullable=False, default=list)
    title = Column(String(255))
    content = Column(Text, default="")  # Markdown source
    images = Column(JSONList, nullable=False, default=list)  # First image is the thumbnail
    file_path = Column(String(500))  # '/uploads/files/<uuid>.<ext>'
    external_link = Column(String(1000))

    category = relationship("Category", back_populates="items")
