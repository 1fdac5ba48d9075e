# cyberbill/api/v1/endpoints/suppliers.py
from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ....config.database import get_db
from ....core.dependencies import PaginationParams, get_current_user, pagination_params
from ....models.user import User
from ....schemas.common import MessageResponse, Page
from ....schemas.supplier import Supplier, SupplierCreate, SupplierUpdate
from ....services.supplier_service import SupplierService

router = APIRouter()


@router.get("/", response_model=Page[Supplier])
def get_suppliers(
    search: Optional[str] = Query(None),
    pagination: PaginationParams = Depends(pagination_params),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Get suppliers with search and pagination"""
    return SupplierService().get_suppliers(
        db, current_user.id,
        skip=pagination.skip,
        limit=pagination.limit,
        search=search,
        sort_by=pagination.sort_by,
        sort_order=pagination.sort_order
    )


@router.post("/", response_model=Supplier, status_code=status.HTTP_201_CREATED)
def create_supplier(
    supplier: SupplierCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return SupplierService().create_supplier(db, current_user.id, supplier)


@router.get("/{supplier_id}", response_model=Supplier)
def get_supplier(
    supplier_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return SupplierService().get_supplier(db, current_user.id, supplier_id)


@router.put("/{supplier_id}", response_model=Supplier)
def update_supplier(
    supplier_id: int,
    supplier: SupplierUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return SupplierService().update_supplier(db, current_user.id, supplier_id, supplier)


@router.delete("/{supplier_id}", response_model=MessageResponse)
def delete_supplier(
    supplier_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Delete supplier; its products are kept without a supplier"""
    detached = SupplierService().delete_supplier(db, current_user.id, supplier_id)
    return {"message": f"Supplier deleted, {detached} products detached"}
