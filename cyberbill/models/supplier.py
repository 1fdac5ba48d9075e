"""
Supplier model.
"""
from sqlalchemy import Column, String, Text, UniqueConstraint
from sqlalchemy.orm import relationship

from .base import BaseModel, OwnedMixin


class Supplier(OwnedMixin, BaseModel):
    __tablename__ = 'suppliers'
    __table_args__ = (
        UniqueConstraint('user_id', 'supplier_id', name='uq_suppliers_owner_code'),
    )

    supplier_id = Column(String(20), nullable=False, index=True)
    name = Column(String(200), nullable=False, index=True)
    phone = Column(String(20), nullable=False)
    email = Column(String(255), nullable=True)
    company = Column(String(200), nullable=True)
    address = Column(Text, nullable=True)
    gst_number = Column(String(20), nullable=True)

    products = relationship("Product", back_populates="supplier")
