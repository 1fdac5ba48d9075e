"""
Base SQLAlchemy model with common fields and utilities.
"""
from typing import Any, Dict

from sqlalchemy import Column, Integer, DateTime, ForeignKey, Numeric
from sqlalchemy.orm import declared_attr
from sqlalchemy.sql import func

from ..config.database import Base

# Currency columns keep two fractional digits
Money = Numeric(12, 2, asdecimal=True)


class BaseModel(Base):
    """
    Abstract base model with common fields and methods for all models.
    """
    __abstract__ = True

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def update_from_dict(self, data: Dict[str, Any]):
        """Update model instance from dictionary."""
        for key, value in data.items():
            if hasattr(self, key) and key not in ['id', 'user_id', 'created_at']:
                setattr(self, key, value)

    def __repr__(self):
        return f"<{self.__class__.__name__}(id={self.id})>"


class OwnedMixin:
    """Mixin for records owned by an authenticated account."""

    @declared_attr
    def user_id(cls):
        return Column(Integer, ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True)
