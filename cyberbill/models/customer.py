"""
Customer model with running balance and portal credentials.
"""
from decimal import Decimal

from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey, UniqueConstraint, CheckConstraint
from sqlalchemy.orm import relationship

from .base import BaseModel, OwnedMixin, Money


class Customer(OwnedMixin, BaseModel):
    """
    Customer record. `total_due` is the unpaid balance across all bills and is
    only moved by the sale and payment orchestrators.
    """
    __tablename__ = 'customers'
    __table_args__ = (
        UniqueConstraint('user_id', 'customer_id', name='uq_customers_owner_code'),
        CheckConstraint('total_due >= 0', name='ck_customers_total_due_nonneg'),
    )

    customer_id = Column(String(20), nullable=False, index=True)
    name = Column(String(200), nullable=False, index=True)
    phone = Column(String(20), nullable=False)
    email = Column(String(255), nullable=True)
    address = Column(Text, nullable=True)
    total_due = Column(Money, default=Decimal("0"), nullable=False)

    bills = relationship("Bill", back_populates="customer")
    credential = relationship("CustomerCredential", back_populates="customer", uselist=False,
                              cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Customer(id={self.id}, customer_id={self.customer_id})>"


class CustomerCredential(BaseModel):
    """Customer portal login; the password is only ever stored hashed."""
    __tablename__ = 'customer_credentials'

    customer_id = Column(Integer, ForeignKey('customers.id', ondelete='CASCADE'), unique=True, nullable=False)
    username = Column(String(100), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    last_login = Column(DateTime(timezone=True), nullable=True)

    customer = relationship("Customer", back_populates="credential")
