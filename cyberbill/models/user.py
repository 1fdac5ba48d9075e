"""
User model for the admin accounts that own every ledger record.
"""
from sqlalchemy import Column, String, Boolean, DateTime

from .base import BaseModel


class User(BaseModel):
    """Authenticated account; its id is the owner of customers, products and bills."""
    __tablename__ = 'users'

    email = Column(String(255), unique=True, nullable=False, index=True)
    full_name = Column(String(200), nullable=True)
    hashed_password = Column(String(255), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    last_login = Column(DateTime(timezone=True), nullable=True)

