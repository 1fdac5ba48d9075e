from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from ..config.database import unit_of_work
from ..config.logging import get_logger
from ..core.exceptions import DeleteRestrictedError, NotFoundError, ValidationError
from ..models.ledger import EntityKind
from ..models.product import Product
from ..repositories.product_repo import ProductRepository
from ..repositories.supplier_repo import SupplierRepository
from ..schemas.product import ProductCreate, ProductUpdate
from .id_generator import id_generator

logger = get_logger("services.inventory")


class InventoryService:
    """Product catalogue and stock levels"""

    def __init__(self):
        self.product_repo = ProductRepository()
        self.supplier_repo = SupplierRepository()

    def create_product(self, db: Session, owner_id: int, product_data: ProductCreate) -> Product:
        """Create a new product with the next PROD code"""
        with unit_of_work(db, "create_product"):
            self._check_supplier(db, owner_id, product_data.supplier_id)
            code = id_generator.next_id(db, owner_id, EntityKind.PRODUCT)
            product = self.product_repo.create(db, owner_id=owner_id, obj_in=product_data, product_id=code)

        db.refresh(product)
        logger.info(f"Created product {product.product_id} ({product.name}) stock {product.stock}")
        return product

    def get_product(self, db: Session, owner_id: int, product_id: int) -> Product:
        product = self.product_repo.get(db, product_id, owner_id)
        if not product:
            raise NotFoundError("Product", product_id)
        return product

    def get_products(
        self,
        db: Session,
        owner_id: int,
        *,
        skip: int = 0,
        limit: int = 100,
        search: Optional[str] = None,
        category: Optional[str] = None,
        supplier_id: Optional[int] = None,
        sort_by: Optional[str] = None,
        sort_order: str = "desc"
    ) -> Dict[str, Any]:
        return self.product_repo.get_multi(
            db, owner_id,
            skip=skip,
            limit=limit,
            filters={"category": category, "supplier_id": supplier_id},
            search_term=search,
            search_fields=self.product_repo.search_fields,
            sort_by=sort_by,
            sort_order=sort_order
        )

    def update_product(
        self, db: Session, owner_id: int, product_id: int, product_data: ProductUpdate
    ) -> Product:
        """Partial update; stock may be corrected but never below zero"""
        update_data = product_data.dict(exclude_unset=True)
        stock = update_data.get("stock")
        if "stock" in update_data and (stock is None or stock < 0):
            raise ValidationError("Stock cannot be negative", field="stock")

        with unit_of_work(db, "update_product"):
            product = self.get_product(db, owner_id, product_id)
            if "supplier_id" in update_data:
                self._check_supplier(db, owner_id, update_data["supplier_id"])
            self.product_repo.update(db, db_obj=product, obj_in=update_data)

        db.refresh(product)
        return product

    def delete_product(self, db: Session, owner_id: int, product_id: int) -> None:
        """Delete a product that no bill refers to"""
        with unit_of_work(db, "delete_product"):
            product = self.get_product(db, owner_id, product_id)
            if self.product_repo.is_billed(db, product.id):
                raise DeleteRestrictedError("Product", product.product_id, "product appears on bills")
            self.product_repo.delete(db, db_obj=product)

        logger.info(f"Deleted product {product_id} for owner {owner_id}")

    def list_low_stock(self, db: Session, owner_id: int) -> List[Product]:
        """
        Products at or below their reorder level, lowest stock first.

        Read only; a product is reported exactly when stock <= reorder_level.
        """
        products = self.product_repo.get_low_stock(db, owner_id)
        if products:
            logger.info(f"{len(products)} products at or below reorder level for owner {owner_id}")
        return products

    def _check_supplier(self, db: Session, owner_id: int, supplier_id: Optional[int]) -> None:
        if supplier_id is not None and not self.supplier_repo.exists(db, supplier_id, owner_id):
            raise NotFoundError("Supplier", supplier_id)
