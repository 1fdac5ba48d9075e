# cyberbill/api/v1/endpoints/products.py
from typing import List, Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ....config.database import get_db
from ....core.dependencies import PaginationParams, get_current_user, pagination_params
from ....models.user import User
from ....schemas.common import MessageResponse, Page
from ....schemas.product import LowStockProduct, Product, ProductCreate, ProductUpdate
from ....services.inventory_service import InventoryService

router = APIRouter()


@router.get("/", response_model=Page[Product])
def get_products(
    search: Optional[str] = Query(None, description="Name, category, code or PROD id"),
    category: Optional[str] = Query(None),
    supplier_id: Optional[int] = Query(None),
    pagination: PaginationParams = Depends(pagination_params),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    Get products with optional filtering
    """
    return InventoryService().get_products(
        db, current_user.id,
        skip=pagination.skip,
        limit=pagination.limit,
        search=search,
        category=category,
        supplier_id=supplier_id,
        sort_by=pagination.sort_by,
        sort_order=pagination.sort_order
    )


@router.get("/low-stock", response_model=List[LowStockProduct])
def get_low_stock_products(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Products at or below their reorder level, lowest stock first"""
    return InventoryService().list_low_stock(db, current_user.id)


@router.post("/", response_model=Product, status_code=status.HTTP_201_CREATED)
def create_product(
    product: ProductCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Create new product"""
    return InventoryService().create_product(db, current_user.id, product)


@router.get("/{product_id}", response_model=Product)
def get_product(
    product_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return InventoryService().get_product(db, current_user.id, product_id)


@router.put("/{product_id}", response_model=Product)
def update_product(
    product_id: int,
    product: ProductUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Update product details or correct stock"""
    return InventoryService().update_product(db, current_user.id, product_id, product)


@router.delete("/{product_id}", response_model=MessageResponse)
def delete_product(
    product_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    InventoryService().delete_product(db, current_user.id, product_id)
    return {"message": "Product deleted successfully"}
