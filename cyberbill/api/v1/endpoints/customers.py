# cyberbill/api/v1/endpoints/customers.py
from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ....config.database import get_db
from ....core.dependencies import PaginationParams, get_current_user, pagination_params
from ....models.user import User
from ....schemas.common import MessageResponse, Page
from ....schemas.customer import (
    Customer,
    CustomerCreate,
    CustomerUpdate,
    CustomerCredentialCreate,
    CustomerCredentialOut
)
from ....services.customer_service import CustomerService

router = APIRouter()


@router.get("/", response_model=Page[Customer])
def get_customers(
    search: Optional[str] = Query(None, description="Name, phone, email or CUST code"),
    pagination: PaginationParams = Depends(pagination_params),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    Get customers, newest first unless a sort field is given
    """
    return CustomerService().get_customers(
        db, current_user.id,
        skip=pagination.skip,
        limit=pagination.limit,
        search=search,
        sort_by=pagination.sort_by,
        sort_order=pagination.sort_order
    )


@router.post("/", response_model=Customer, status_code=status.HTTP_201_CREATED)
def create_customer(
    customer: CustomerCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Create new customer"""
    return CustomerService().create_customer(db, current_user.id, customer)


@router.get("/{customer_id}", response_model=Customer)
def get_customer(
    customer_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Get customer by ID"""
    return CustomerService().get_customer(db, current_user.id, customer_id)


@router.put("/{customer_id}", response_model=Customer)
def update_customer(
    customer_id: int,
    customer: CustomerUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Update customer"""
    return CustomerService().update_customer(db, current_user.id, customer_id, customer)


@router.delete("/{customer_id}", response_model=MessageResponse)
def delete_customer(
    customer_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Delete customer; refused while the customer has bills"""
    CustomerService().delete_customer(db, current_user.id, customer_id)
    return {"message": "Customer deleted successfully"}


@router.put("/{customer_id}/credentials", response_model=CustomerCredentialOut)
def set_customer_credentials(
    customer_id: int,
    credentials: CustomerCredentialCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Create or replace the customer's portal login"""
    return CustomerService().set_credentials(db, current_user.id, customer_id, credentials)


@router.get("/{customer_id}/credentials", response_model=CustomerCredentialOut)
def get_customer_credentials(
    customer_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return CustomerService().get_credentials(db, current_user.id, customer_id)
