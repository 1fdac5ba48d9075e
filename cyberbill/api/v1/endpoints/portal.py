# cyberbill/api/v1/endpoints/portal.py
from typing import List
from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from ....config.database import get_db
from ....core.dependencies import get_current_customer
from ....models.customer import Customer as CustomerModel
from ....schemas.auth import PortalLogin, Token
from ....schemas.billing import BillOut, PaymentOut
from ....schemas.customer import Customer
from ....services.payment_service import to_payment_out
from ....services.portal_service import PortalService

router = APIRouter()


@router.post("/login", response_model=Token)
def portal_login(credentials: PortalLogin, request: Request, db: Session = Depends(get_db)):
    """Customer login; returns a token that only opens the portal endpoints"""
    client_host = request.client.host if request.client else None
    return PortalService().login(db, credentials.username, credentials.password, ip_address=client_host)


@router.get("/me", response_model=Customer)
def portal_me(customer: CustomerModel = Depends(get_current_customer)):
    return customer


@router.get("/bills", response_model=List[BillOut])
def portal_bills(
    db: Session = Depends(get_db),
    customer: CustomerModel = Depends(get_current_customer)
):
    """The logged-in customer's bills, newest first"""
    return PortalService().get_bills(db, customer)


@router.get("/payments", response_model=List[PaymentOut])
def portal_payments(
    db: Session = Depends(get_db),
    customer: CustomerModel = Depends(get_current_customer)
):
    return [to_payment_out(payment) for payment in PortalService().get_payments(db, customer)]
