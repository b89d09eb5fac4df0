"""
Record Store

One contract over both record kinds (Category, Item) backed by SQLAlchemy.

Read failures on an unreadable or corrupt database never reach callers:
the store logs, makes sure the schema exists again and answers as if it
were empty. Write failures roll back the session and raise
RecordStoreError.
"""
import logging
from typing import Any, Optional, Type, TypeVar

from sqlalchemy import update as sql_update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.database import Base
from app.exceptions import RecordStoreError
from app.models import Category, Item

logger = logging.getLogger(__name__)

Record = TypeVar("Record", Category, Item)


class RecordStore:
    """Create, read, update, delete and query Categories and Items."""

    def __init__(self, db: Session):
        self.db = db

    # ============== Reads ==============

    def list(self, kind: Type[Record], **filters: Any) -> list[Record]:
        """List records of a kind, optionally filtered by exact column values."""
        try:
            query = self.db.query(kind)
            for column, value in filters.items():
                query = query.filter(getattr(kind, column) == value)
            return query.order_by(kind.name, kind.id).all()
        except SQLAlchemyError as e:
            self._recover(kind, e)
            return []

    def get(self, kind: Type[Record], record_id: Optional[str]) -> Optional[Record]:
        if not record_id:
            return None
        try:
            return self.db.get(kind, record_id)
        except SQLAlchemyError as e:
            self._recover(kind, e)
            return None

    def get_by_slug(self, kind: Type[Record], slug: Optional[str]) -> Optional[Record]:
        if not slug:
            return None
        try:
            return (
                self.db.query(kind)
                .filter(kind.slug == slug)
                .order_by(kind.id)
                .first()
            )
        except SQLAlchemyError as e:
            self._recover(kind, e)
            return None

    def slug_taken(self, kind: Type[Record], slug: str, exclude_id: Optional[str] = None) -> bool:
        """Check whether another record of this kind owns a slug."""
        try:
            query = self.db.query(kind.id).filter(kind.slug == slug)
            if exclude_id:
                query = query.filter(kind.id != exclude_id)
            return query.first() is not None
        except SQLAlchemyError as e:
            self._recover(kind, e)
            return False

    def _recover(self, kind: type, error: Exception):
        """Fall back to an empty but valid schema after a failed read."""
        logger.error(
            f"Record store read failed for {kind.__tablename__}, serving empty results: {error}",
            exc_info=True,
        )
        self.db.rollback()
        try:
            Base.metadata.create_all(bind=self.db.get_bind())
        except SQLAlchemyError as e:
            logger.error(f"Could not restore record store schema: {e}")

    # ============== Writes ==============

    def insert(self, kind: Type[Record], **values: Any) -> Record:
        record = kind(**values)
        try:
            self.db.add(record)
            self.db.commit()
            self.db.refresh(record)
        except SQLAlchemyError as e:
            self.db.rollback()
            raise RecordStoreError(f"Could not create {kind.__tablename__} record", details=str(e)) from e
        return record

    def update(self, kind: Type[Record], record_id: str, values: dict[str, Any]) -> Optional[Record]:
        """Apply a partial update. Returns None if the record does not exist."""
        record = self.get(kind, record_id)
        if record is None:
            return None

        for column, value in values.items():
            if column == "id" or not hasattr(kind, column):
                raise RecordStoreError(f"Cannot update {kind.__tablename__}.{column}")
            setattr(record, column, value)

        try:
            self.db.commit()
            self.db.refresh(record)
        except SQLAlchemyError as e:
            self.db.rollback()
            raise RecordStoreError(f"Could not update {kind.__tablename__} {record_id}", details=str(e)) from e
        return record

    def delete(self, kind: Type[Record], record_id: str) -> bool:
        """Delete a record. Returns False if it did not exist."""
        record = self.get(kind, record_id)
        if record is None:
            return False

        try:
            if kind is Category:
                # Items keep existing with no category
                self.db.execute(
                    sql_update(Item)
                    .where(Item.category_id == record_id)
                    .values(category_id=None)
                )
            self.db.delete(record)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise RecordStoreError(f"Could not delete {kind.__tablename__} {record_id}", details=str(e)) from e
        return True
