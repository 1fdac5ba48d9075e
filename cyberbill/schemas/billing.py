from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime
from decimal import Decimal

from ..models.billing import BillStatus, PaymentMode


class SaleLine(BaseModel):
    product_id: int
    quantity: int


class SaleDraft(BaseModel):
    """A bill being assembled by the caller, committed by create_sale."""
    customer_id: Optional[int] = None
    lines: List[SaleLine]
    discount_pct: Optional[Decimal] = None
    tax_pct: Optional[Decimal] = None
    notes: Optional[str] = Field(None, max_length=1000)


class BillTotalsPreview(BaseModel):
    subtotal: Decimal
    discount_amount: Decimal
    tax_amount: Decimal
    total: Decimal


class BillItemOut(BaseModel):
    id: int
    product_id: Optional[int] = None
    product_name: str
    quantity: int
    unit_price: Decimal
    total_price: Decimal

    class Config:
        from_attributes = True


class BillSummary(BaseModel):
    id: int
    bill_number: str
    customer_id: Optional[int] = None
    customer_name: Optional[str] = None
    subtotal: Decimal
    discount_amount: Decimal
    tax_amount: Decimal
    total_amount: Decimal
    paid_amount: Decimal
    pending_amount: Decimal
    status: BillStatus
    bill_date: datetime
    notes: Optional[str] = None


class BillOut(BillSummary):
    items: List[BillItemOut] = []


class PaymentCreate(BaseModel):
    amount: Decimal = Field(..., max_digits=12, decimal_places=2)
    payment_mode: PaymentMode = PaymentMode.CASH
    reference_number: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = Field(None, max_length=1000)


class PaymentRequest(PaymentCreate):
    bill_id: int


class PaymentOut(BaseModel):
    id: int
    bill_id: int
    bill_number: Optional[str] = None
    amount: Decimal
    payment_mode: PaymentMode
    reference_number: Optional[str] = None
    notes: Optional[str] = None
    payment_date: datetime
