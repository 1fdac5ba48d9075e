# cyberbill/api/v1/endpoints/sales.py
from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ....config.database import get_db
from ....core.dependencies import (
    PaginationParams, get_current_user, get_idempotency_key, pagination_params
)
from ....models.billing import BillStatus
from ....models.user import User
from ....schemas.billing import BillOut, BillSummary, BillTotalsPreview, PaymentCreate, PaymentOut, SaleDraft
from ....schemas.common import Page
from ....services.payment_service import PaymentService, to_payment_out
from ....services.sales_service import SalesService

router = APIRouter()


@router.post("/", response_model=BillOut, status_code=status.HTTP_201_CREATED)
def create_sale(
    draft: SaleDraft,
    idempotency_key: Optional[str] = Depends(get_idempotency_key),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    Commit a sale: checks stock, writes the bill and its items, takes the
    quantities out of stock and adds the total to the customer's balance.
    Send an Idempotency-Key header to make retries safe.
    """
    service = SalesService()
    bill = service.create_sale(db, current_user.id, draft, idempotency_key=idempotency_key)
    return service.get_bill(db, current_user.id, bill.id)


@router.post("/preview", response_model=BillTotalsPreview)
def preview_sale(
    draft: SaleDraft,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Totals for a draft at current prices; nothing is written"""
    totals = SalesService().preview_totals(db, current_user.id, draft)
    return BillTotalsPreview(
        subtotal=totals.subtotal,
        discount_amount=totals.discount_amount,
        tax_amount=totals.tax_amount,
        total=totals.total
    )


@router.get("/", response_model=Page[BillSummary])
def get_bills(
    bill_status: Optional[BillStatus] = Query(None, alias="status"),
    customer_id: Optional[int] = Query(None),
    pending_only: bool = Query(False, description="Only unpaid and partially paid bills"),
    search: Optional[str] = Query(None, description="Bill number"),
    pagination: PaginationParams = Depends(pagination_params),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Bills newest first with paid and pending amounts"""
    return SalesService().list_bills(
        db, current_user.id,
        status=bill_status,
        customer_id=customer_id,
        pending_only=pending_only,
        search=search,
        skip=pagination.skip,
        limit=pagination.limit
    )


@router.get("/{bill_id}", response_model=BillOut)
def get_bill(
    bill_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return SalesService().get_bill(db, current_user.id, bill_id)


@router.post("/{bill_id}/payments", response_model=PaymentOut, status_code=status.HTTP_201_CREATED)
def pay_bill(
    bill_id: int,
    payment: PaymentCreate,
    idempotency_key: Optional[str] = Depends(get_idempotency_key),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Record a payment against this bill"""
    recorded = PaymentService().record_payment(
        db, current_user.id, bill_id, payment, idempotency_key=idempotency_key
    )
    return to_payment_out(recorded)
