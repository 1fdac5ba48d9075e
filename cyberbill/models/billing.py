"""
Bill, bill item and payment models.
"""
from decimal import Decimal
import enum

from sqlalchemy import (
    Column, Integer, String, Text, DateTime, ForeignKey, Enum, UniqueConstraint, CheckConstraint, Index
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .base import BaseModel, OwnedMixin, Money


class BillStatus(str, enum.Enum):
    """Bill payment status."""
    UNPAID = "unpaid"
    PARTIAL = "partial"
    PAID = "paid"


class PaymentMode(str, enum.Enum):
    """Accepted payment modes."""
    CASH = "cash"
    CARD = "card"
    UPI = "upi"
    BANK_TRANSFER = "bank_transfer"
    CHEQUE = "cheque"


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


class Bill(OwnedMixin, BaseModel):
    """
    A sale. Amounts are fixed at creation; only `status` changes afterwards,
    guarded by the `version` counter.
    """
    __tablename__ = 'bills'
    __table_args__ = (
        UniqueConstraint('user_id', 'bill_number', name='uq_bills_owner_number'),
        Index('ix_bills_owner_date', 'user_id', 'bill_date'),
    )

    bill_number = Column(String(20), nullable=False, index=True)
    customer_id = Column(Integer, ForeignKey('customers.id', ondelete='RESTRICT'), nullable=True, index=True)
    subtotal = Column(Money, default=Decimal("0"), nullable=False)
    discount_amount = Column(Money, default=Decimal("0"), nullable=False)
    tax_amount = Column(Money, default=Decimal("0"), nullable=False)
    total_amount = Column(Money, default=Decimal("0"), nullable=False)
    status = Column(
        Enum(BillStatus, values_callable=_enum_values, native_enum=False, length=20),
        default=BillStatus.UNPAID,
        nullable=False,
        index=True
    )
    bill_date = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    notes = Column(Text, nullable=True)
    version = Column(Integer, nullable=False, default=1)

    customer = relationship("Customer", back_populates="bills")
    items = relationship("BillItem", back_populates="bill", cascade="all, delete-orphan", order_by="BillItem.id")
    payments = relationship("Payment", back_populates="bill", order_by="Payment.id")

    __mapper_args__ = {"version_id_col": version}

    @property
    def is_walk_in(self) -> bool:
        return self.customer_id is None


class BillItem(BaseModel):
    """Line of a bill with the product name and price captured at sale time."""
    __tablename__ = 'bill_items'
    __table_args__ = (
        CheckConstraint('quantity > 0', name='ck_bill_items_quantity_pos'),
        CheckConstraint('unit_price >= 0', name='ck_bill_items_price_nonneg'),
    )

    bill_id = Column(Integer, ForeignKey('bills.id', ondelete='CASCADE'), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey('products.id', ondelete='RESTRICT'), nullable=True, index=True)
    product_name = Column(String(200), nullable=False)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Money, nullable=False)
    total_price = Column(Money, nullable=False)

    bill = relationship("Bill", back_populates="items")


class Payment(OwnedMixin, BaseModel):
    __tablename__ = 'payments'
    __table_args__ = (
        CheckConstraint('amount > 0', name='ck_payments_amount_pos'),
    )

    bill_id = Column(Integer, ForeignKey('bills.id', ondelete='RESTRICT'), nullable=False, index=True)
    amount = Column(Money, nullable=False)
    payment_mode = Column(
        Enum(PaymentMode, values_callable=_enum_values, native_enum=False, length=20),
        default=PaymentMode.CASH,
        nullable=False
    )
    reference_number = Column(String(100), nullable=True)
    notes = Column(Text, nullable=True)
    payment_date = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    bill = relationship("Bill", back_populates="payments")
