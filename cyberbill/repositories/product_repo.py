from typing import Dict, Iterable, List

from sqlalchemy import asc
from sqlalchemy.orm import Session

from ..models.product import Product
from ..models.billing import BillItem
from .base import CRUDBase


class ProductRepository(CRUDBase[Product]):
    search_fields = ["name", "category", "product_code", "product_id"]

    def __init__(self):
        super().__init__(Product)

    def lock_many(self, db: Session, owner_id: int, product_ids: Iterable[int]) -> Dict[int, Product]:
        """Load and lock products in id order so concurrent sales lock in the same order"""
        ids = sorted(set(product_ids))
        if not ids:
            return {}
        products = (
            self.owned(db, owner_id)
            .filter(Product.id.in_(ids))
            .order_by(asc(Product.id))
            .with_for_update()
            .populate_existing()
            .all()
        )
        return {product.id: product for product in products}

    def decrement_stock(self, db: Session, product_id: int, quantity: int) -> bool:
        """Take `quantity` units out of stock; False when not enough is left"""
        updated = (
            db.query(Product)
            .filter(Product.id == product_id, Product.stock >= quantity)
            .update({Product.stock: Product.stock - quantity}, synchronize_session=False)
        )
        return updated == 1

    def get_low_stock(self, db: Session, owner_id: int) -> List[Product]:
        return (
            self.owned(db, owner_id)
            .filter(Product.stock <= Product.reorder_level)
            .order_by(asc(Product.stock), asc(Product.name), asc(Product.id))
            .all()
        )

    def is_billed(self, db: Session, product_id: int) -> bool:
        return db.query(BillItem.id).filter(BillItem.product_id == product_id).first() is not None
