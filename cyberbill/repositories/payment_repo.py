from typing import Any, Dict, List, Optional

from sqlalchemy import desc
from sqlalchemy.orm import Session, joinedload

from ..models.billing import Bill, Payment
from .base import CRUDBase, paginate


class PaymentRepository(CRUDBase[Payment]):
    def __init__(self):
        super().__init__(Payment)

    def list_payments(
        self,
        db: Session,
        owner_id: int,
        *,
        bill_id: Optional[int] = None,
        skip: int = 0,
        limit: int = 100
    ) -> Dict[str, Any]:
        """Payments newest first"""
        query = self.owned(db, owner_id).options(joinedload(Payment.bill))
        if bill_id is not None:
            query = query.filter(Payment.bill_id == bill_id)

        total = query.count()
        items = (
            query.order_by(desc(Payment.payment_date), desc(Payment.id))
            .offset(skip)
            .limit(limit)
            .all()
        )
        return paginate(items, total, skip, limit)

    def for_customer(self, db: Session, customer_id: int) -> List[Payment]:
        return (
            db.query(Payment)
            .join(Bill, Payment.bill_id == Bill.id)
            .options(joinedload(Payment.bill))
            .filter(Bill.customer_id == customer_id)
            .order_by(desc(Payment.payment_date), desc(Payment.id))
            .all()
        )
