"""
Product model with stock and reorder threshold.
"""
from decimal import Decimal

from sqlalchemy import Column, Integer, String, ForeignKey, UniqueConstraint, CheckConstraint
from sqlalchemy.ext.hybrid import hybrid_property
from sqlalchemy.orm import relationship

from .base import BaseModel, OwnedMixin, Money


class Product(OwnedMixin, BaseModel):
    __tablename__ = 'products'
    __table_args__ = (
        UniqueConstraint('user_id', 'product_id', name='uq_products_owner_code'),
        CheckConstraint('stock >= 0', name='ck_products_stock_nonneg'),
        CheckConstraint('price >= 0', name='ck_products_price_nonneg'),
        CheckConstraint('reorder_level >= 0', name='ck_products_reorder_nonneg'),
    )

    product_id = Column(String(20), nullable=False, index=True)
    product_code = Column(String(50), nullable=True)
    name = Column(String(200), nullable=False, index=True)
    category = Column(String(100), nullable=False)
    price = Column(Money, default=Decimal("0"), nullable=False)
    stock = Column(Integer, default=0, nullable=False)
    reorder_level = Column(Integer, default=10, nullable=False)
    unit = Column(String(20), nullable=True, default="pcs")
    supplier_id = Column(Integer, ForeignKey('suppliers.id', ondelete='SET NULL'), nullable=True, index=True)

    supplier = relationship("Supplier", back_populates="products")

    @hybrid_property
    def is_low_stock(self):
        """At or below the reorder level."""
        return self.stock <= self.reorder_level

    @property
    def shortfall(self) -> int:
        """Units needed to climb back above the reorder level."""
        return max(0, self.reorder_level - self.stock + 1)
