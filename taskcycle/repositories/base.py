from abc import ABC
from typing import TypeVar, Generic, Optional, Dict, Any
from sqlalchemy.orm import Session
from sqlalchemy import select
import uuid

ModelType = TypeVar("ModelType")


class BaseRepository(ABC, Generic[ModelType]):
    """Base repository with owner-scoped CRUD operations."""

    id_prefix = "obj"

    def __init__(self, db: Session, model: type[ModelType], user_id: str):
        self.db = db
        self.model = model
        self.user_id = user_id

    def _gen_id(self) -> str:
        """Generate unique ID with prefix."""
        return f"{self.id_prefix}_{uuid.uuid4()}"

    def _scoped(self):
        return select(self.model).where(self.model.user_id == self.user_id)

    def get(self, id: str) -> Optional[ModelType]:
        """Get a single record by ID."""
        return self.db.execute(
            self._scoped().where(self.model.id == id)
        ).scalar_one_or_none()

    def create(self, obj_data: Dict[str, Any]) -> ModelType:
        """Create a new record owned by the repository's user."""
        db_obj = self.model(id=self._gen_id(), user_id=self.user_id, **obj_data)
        self.db.add(db_obj)
        self.db.flush()
        self.db.refresh(db_obj)
        return db_obj

    def update(self, db_obj: ModelType, obj_data: Dict[str, Any]) -> ModelType:
        """Update an existing record."""
        for field, value in obj_data.items():
            if hasattr(db_obj, field):
                setattr(db_obj, field, value)

        self.db.flush()
        self.db.refresh(db_obj)
        return db_obj

    def delete(self, id: str) -> bool:
        """Delete a record by ID."""
        db_obj = self.get(id)
        if db_obj:
            self.db.delete(db_obj)
            self.db.flush()
            return True
        return False
