from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from ..config.database import unit_of_work
from ..config.logging import get_logger
from ..core.exceptions import NotFoundError
from ..models.ledger import EntityKind
from ..models.supplier import Supplier
from ..repositories.supplier_repo import SupplierRepository
from ..schemas.supplier import SupplierCreate, SupplierUpdate
from .id_generator import id_generator

logger = get_logger("services.suppliers")


class SupplierService:
    def __init__(self):
        self.supplier_repo = SupplierRepository()

    def create_supplier(self, db: Session, owner_id: int, supplier_data: SupplierCreate) -> Supplier:
        with unit_of_work(db, "create_supplier"):
            code = id_generator.next_id(db, owner_id, EntityKind.SUPPLIER)
            supplier = self.supplier_repo.create(db, owner_id=owner_id, obj_in=supplier_data, supplier_id=code)

        db.refresh(supplier)
        logger.info(f"Created supplier {supplier.supplier_id} for owner {owner_id}")
        return supplier

    def get_supplier(self, db: Session, owner_id: int, supplier_id: int) -> Supplier:
        supplier = self.supplier_repo.get(db, supplier_id, owner_id)
        if not supplier:
            raise NotFoundError("Supplier", supplier_id)
        return supplier

    def get_suppliers(
        self,
        db: Session,
        owner_id: int,
        *,
        skip: int = 0,
        limit: int = 100,
        search: Optional[str] = None,
        sort_by: Optional[str] = None,
        sort_order: str = "desc"
    ) -> Dict[str, Any]:
        return self.supplier_repo.get_multi(
            db, owner_id,
            skip=skip,
            limit=limit,
            search_term=search,
            search_fields=self.supplier_repo.search_fields,
            sort_by=sort_by,
            sort_order=sort_order
        )

    def update_supplier(
        self, db: Session, owner_id: int, supplier_id: int, supplier_data: SupplierUpdate
    ) -> Supplier:
        with unit_of_work(db, "update_supplier"):
            supplier = self.get_supplier(db, owner_id, supplier_id)
            self.supplier_repo.update(db, db_obj=supplier, obj_in=supplier_data)

        db.refresh(supplier)
        return supplier

    def delete_supplier(self, db: Session, owner_id: int, supplier_id: int) -> int:
        """Delete a supplier; its products stay, without a supplier. Returns how many were detached."""
        with unit_of_work(db, "delete_supplier"):
            supplier = self.get_supplier(db, owner_id, supplier_id)
            detached = self.supplier_repo.detach_products(db, supplier.id)
            db.expire(supplier, ["products"])
            self.supplier_repo.delete(db, db_obj=supplier)

        logger.info(f"Deleted supplier {supplier_id}, detached {detached} products")
        return detached
