from sqlalchemy.orm import Session

from ..models.supplier import Supplier
from ..models.product import Product
from .base import CRUDBase


class SupplierRepository(CRUDBase[Supplier]):
    search_fields = ["name", "phone", "email", "company", "supplier_id", "gst_number"]

    def __init__(self):
        super().__init__(Supplier)

    def detach_products(self, db: Session, supplier_id: int) -> int:
        """Clear the supplier reference on every product that points at it"""
        return (
            db.query(Product)
            .filter(Product.supplier_id == supplier_id)
            .update({Product.supplier_id: None}, synchronize_session=False)
        )
