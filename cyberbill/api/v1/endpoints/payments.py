# cyberbill/api/v1/endpoints/payments.py
from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ....config.database import get_db
from ....core.dependencies import (
    PaginationParams, get_current_user, get_idempotency_key, pagination_params
)
from ....models.user import User
from ....schemas.billing import PaymentOut, PaymentRequest
from ....schemas.common import Page
from ....services.payment_service import PaymentService, to_payment_out

router = APIRouter()


@router.post("/", response_model=PaymentOut, status_code=status.HTTP_201_CREATED)
def record_payment(
    payment: PaymentRequest,
    idempotency_key: Optional[str] = Depends(get_idempotency_key),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    Record a payment. The bill becomes partial or paid and the customer's
    balance goes down by the amount, never below zero.
    """
    recorded = PaymentService().record_payment(
        db, current_user.id, payment.bill_id, payment, idempotency_key=idempotency_key
    )
    return to_payment_out(recorded)


@router.get("/", response_model=Page[PaymentOut])
def get_payments(
    bill_id: Optional[int] = Query(None),
    pagination: PaginationParams = Depends(pagination_params),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Payments newest first, optionally for one bill"""
    return PaymentService().list_payments(
        db, current_user.id,
        bill_id=bill_id,
        skip=pagination.skip,
        limit=pagination.limit
    )


@router.get("/{payment_id}", response_model=PaymentOut)
def get_payment(
    payment_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return to_payment_out(PaymentService().get_payment(db, current_user.id, payment_id))
