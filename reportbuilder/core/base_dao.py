"""Generic base DAO for config database records."""

from abc import ABC
from typing import Generic, Optional, Type, TypeVar

from sqlalchemy.orm import Session

from reportbuilder.core.database import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseDAO(Generic[ModelType], ABC):
    """Common CRUD operations over one model."""

    def __init__(self, model: Type[ModelType], db: Session):
        self.model = model
        self.db = db

    def get_by_id(self, id: int) -> Optional[ModelType]:
        return self.db.get(self.model, id)

    def create(self, **data) -> ModelType:
        db_obj = self.model(**data)
        self.db.add(db_obj)
        self.db.commit()
        self.db.refresh(db_obj)
        return db_obj

    def update(self, db_obj: ModelType, **data) -> ModelType:
        for field, value in data.items():
            if hasattr(db_obj, field):
                setattr(db_obj, field, value)
        self.db.commit()
        self.db.refresh(db_obj)
        return db_obj

    def soft_delete(self, id: int) -> bool:
        """Soft delete record (set is_active = False)."""
        db_obj = self.get_by_id(id)
        if db_obj is not None and hasattr(db_obj, "is_active"):
            db_obj.is_active = False
            self.db.commit()
            return True
        return False
