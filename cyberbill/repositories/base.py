from typing import Any, Dict, Generic, List, Optional, Type, TypeVar, Union
import math

from sqlalchemy.orm import Session, Query
from sqlalchemy import or_, desc, asc
from pydantic import BaseModel

ModelType = TypeVar("ModelType")


class CRUDBase(Generic[ModelType]):
    def __init__(self, model: Type[ModelType]):
        """
        CRUD object with default methods to Create, Read, Update, Delete (CRUD)
        over owner-scoped records.

        Writes only flush; the calling service decides when to commit so that
        several writes can share one transaction.
        """
        self.model = model

    def owned(self, db: Session, owner_id: int) -> Query:
        """Base query restricted to one owner's records"""
        return db.query(self.model).filter(self.model.user_id == owner_id)

    def get(self, db: Session, id: Any, owner_id: int) -> Optional[ModelType]:
        """Get a single record by ID"""
        return self.owned(db, owner_id).filter(self.model.id == id).first()

    def get_for_update(self, db: Session, id: Any, owner_id: int) -> Optional[ModelType]:
        """Get a single record and lock its row until the transaction ends"""
        return (
            self.owned(db, owner_id)
            .filter(self.model.id == id)
            .with_for_update()
            .populate_existing()
            .first()
        )

    def get_multi(
        self,
        db: Session,
        owner_id: int,
        *,
        skip: int = 0,
        limit: int = 100,
        filters: Optional[Dict[str, Any]] = None,
        search_term: Optional[str] = None,
        search_fields: Optional[List[str]] = None,
        sort_by: Optional[str] = None,
        sort_order: str = "desc"
    ) -> Dict[str, Any]:
        """
        Get multiple records with pagination, filtering, search and sorting.
        Defaults to newest first.
        """
        query = self.owned(db, owner_id)

        if filters:
            for field, value in filters.items():
                if hasattr(self.model, field) and value is not None:
                    if isinstance(value, list):
                        query = query.filter(getattr(self.model, field).in_(value))
                    else:
                        query = query.filter(getattr(self.model, field) == value)

        if search_term and search_fields:
            search_conditions = [
                getattr(self.model, field).ilike(f"%{search_term}%")
                for field in search_fields
                if hasattr(self.model, field)
            ]
            if search_conditions:
                query = query.filter(or_(*search_conditions))

        order = desc if sort_order.lower() == "desc" else asc
        if sort_by and hasattr(self.model, sort_by):
            query = query.order_by(order(getattr(self.model, sort_by)), order(self.model.id))
        else:
            query = query.order_by(order(self.model.created_at), order(self.model.id))

        total = query.count()
        items = query.offset(skip).limit(limit).all()

        return paginate(items, total, skip, limit)

    def create(self, db: Session, *, owner_id: int, obj_in: Union[BaseModel, Dict[str, Any]], **extra) -> ModelType:
        """Create a new record"""
        obj_in_data = obj_in.dict() if isinstance(obj_in, BaseModel) else dict(obj_in)
        db_obj = self.model(user_id=owner_id, **obj_in_data, **extra)
        db.add(db_obj)
        db.flush()
        return db_obj

    def update(
        self,
        db: Session,
        *,
        db_obj: ModelType,
        obj_in: Union[BaseModel, Dict[str, Any]]
    ) -> ModelType:
        """Update an existing record"""
        obj_data = obj_in.dict(exclude_unset=True) if isinstance(obj_in, BaseModel) else obj_in
        db_obj.update_from_dict(obj_data)
        db.add(db_obj)
        db.flush()
        return db_obj

    def delete(self, db: Session, *, db_obj: ModelType) -> ModelType:
        """Delete a record"""
        db.delete(db_obj)
        db.flush()
        return db_obj

    def exists(self, db: Session, id: Any, owner_id: int) -> bool:
        """Check if record exists by ID"""
        return self.owned(db, owner_id).filter(self.model.id == id).first() is not None


def paginate(items: List[Any], total: int, skip: int, limit: int) -> Dict[str, Any]:
    total_pages = math.ceil(total / limit) if limit > 0 else 1
    current_page = (skip // limit) + 1 if limit > 0 else 1

    return {
        "items": items,
        "total": total,
        "page": current_page,
        "pages": total_pages,
        "per_page": limit,
        "has_next": current_page < total_pages,
        "has_prev": current_page > 1
    }
