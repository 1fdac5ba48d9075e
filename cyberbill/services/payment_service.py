from decimal import Decimal
from typing import Any, Dict, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.orm.attributes import flag_modified

from ..config.database import unit_of_work
from ..config.logging import get_logger, log_performance
from ..config.settings import get_settings
from ..core.exceptions import ConflictError, NotFoundError, OverpaymentError, ValidationError
from ..models.billing import Bill, BillStatus, Payment
from ..repositories.bill_repo import BillRepository
from ..repositories.customer_repo import CustomerRepository
from ..repositories.ledger_repo import IdempotencyRepository
from ..repositories.payment_repo import PaymentRepository
from ..schemas.billing import PaymentCreate, PaymentOut
from ..utils.formatting import format_currency
from .bill_calculator import ZERO, to_decimal

logger = get_logger("services.payments")

RECORD_PAYMENT = "record_payment"


def derive_status(total_amount: Decimal, paid_amount: Decimal) -> BillStatus:
    if paid_amount <= ZERO:
        return BillStatus.UNPAID
    if paid_amount >= total_amount:
        return BillStatus.PAID
    return BillStatus.PARTIAL


def to_payment_out(payment: Payment) -> PaymentOut:
    return PaymentOut(
        id=payment.id,
        bill_id=payment.bill_id,
        bill_number=payment.bill.bill_number if payment.bill is not None else None,
        amount=payment.amount,
        payment_mode=payment.payment_mode,
        reference_number=payment.reference_number,
        notes=payment.notes,
        payment_date=payment.payment_date,
    )


class PaymentService:
    """Applies payments against bills and keeps customer balances in step."""

    def __init__(self):
        self.bill_repo = BillRepository()
        self.payment_repo = PaymentRepository()
        self.customer_repo = CustomerRepository()
        self.idempotency_repo = IdempotencyRepository()

    @log_performance("services.payments")
    def record_payment(
        self,
        db: Session,
        owner_id: int,
        bill_id: int,
        payment_in: PaymentCreate,
        idempotency_key: Optional[str] = None
    ) -> Payment:
        """
        Record a payment and move the bill to partial or paid.

        Every payment rewrites the bill row under its version counter. Of two
        payments racing on one bill, the one that flushes second fails with
        ConflictError instead of slipping past the overpayment check.
        """
        amount = to_decimal(payment_in.amount, "amount")
        if amount <= ZERO:
            raise ValidationError("Payment amount must be greater than 0", field="amount")

        if idempotency_key:
            replayed = self._replay(db, owner_id, idempotency_key, bill_id, amount)
            if replayed is not None:
                return replayed

        try:
            with unit_of_work(db, RECORD_PAYMENT):
                payment = self._apply_payment(db, owner_id, bill_id, amount, payment_in)
                if idempotency_key:
                    self.idempotency_repo.record(db, owner_id, idempotency_key, RECORD_PAYMENT, payment.id)
        except IntegrityError as e:
            if idempotency_key:
                replayed = self._replay(db, owner_id, idempotency_key, bill_id, amount)
                if replayed is not None:
                    return replayed
            logger.warning(f"Payment rejected by a store constraint: {e.orig}")
            raise ConflictError("Payment could not be recorded because of a concurrent change, retry the request", "Payment")

        db.refresh(payment)
        logger.info(
            f"Recorded {format_currency(payment.amount)} against {payment.bill.bill_number} "
            f"({payment.payment_mode.value}), bill is now {payment.bill.status.value}",
            extra={"owner_id": owner_id, "bill_number": payment.bill.bill_number}
        )
        return payment

    def _apply_payment(
        self,
        db: Session,
        owner_id: int,
        bill_id: int,
        amount: Decimal,
        payment_in: PaymentCreate
    ) -> Payment:
        bill: Bill = self.bill_repo.get_for_update(db, bill_id, owner_id)
        if bill is None:
            raise NotFoundError("Bill", bill_id)

        paid_so_far = self.bill_repo.paid_total(db, bill.id)
        pending = bill.total_amount - paid_so_far
        if pending < ZERO:
            pending = ZERO

        if amount > pending and not get_settings().ALLOW_OVERPAYMENT:
            raise OverpaymentError(bill.bill_number, amount, pending)

        payment = Payment(
            user_id=owner_id,
            bill_id=bill.id,
            amount=amount,
            payment_mode=payment_in.payment_mode,
            reference_number=payment_in.reference_number,
            notes=payment_in.notes,
        )
        db.add(payment)

        # Versioned update even when the status stays the same
        bill.status = derive_status(bill.total_amount, paid_so_far + amount)
        flag_modified(bill, "status")
        db.flush()

        if bill.customer_id is not None:
            self.customer_repo.settle_due(db, bill.customer_id, amount)

        return payment

    def _replay(self, db: Session, owner_id: int, key: str, bill_id: int, amount: Decimal) -> Optional[Payment]:
        entry = self.idempotency_repo.find(db, owner_id, key)
        if entry is None:
            return None
        if entry.operation != RECORD_PAYMENT:
            raise ConflictError(f"Idempotency key '{key}' was already used for {entry.operation}")
        payment = self.payment_repo.get(db, entry.resource_id, owner_id)
        if payment is not None and (payment.bill_id != bill_id or payment.amount != amount):
            raise ConflictError(
                f"Idempotency key '{key}' was already used for a different payment", "Payment"
            )
        logger.info(f"Replayed payment {entry.resource_id} for key {key}")
        return payment

    def get_payment(self, db: Session, owner_id: int, payment_id: int) -> Payment:
        payment = self.payment_repo.get(db, payment_id, owner_id)
        if payment is None:
            raise NotFoundError("Payment", payment_id)
        return payment

    def list_payments(
        self,
        db: Session,
        owner_id: int,
        *,
        bill_id: Optional[int] = None,
        skip: int = 0,
        limit: int = 100
    ) -> Dict[str, Any]:
        if bill_id is not None and not self.bill_repo.exists(db, bill_id, owner_id):
            raise NotFoundError("Bill", bill_id)
        page = self.payment_repo.list_payments(db, owner_id, bill_id=bill_id, skip=skip, limit=limit)
        page["items"] = [to_payment_out(payment) for payment in page["items"]]
        return page
