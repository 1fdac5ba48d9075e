from decimal import Decimal
from typing import Any, Dict, Iterable, Optional

from sqlalchemy import func, desc
from sqlalchemy.orm import Session, selectinload, joinedload

from ..models.billing import Bill, BillStatus, Payment
from .base import CRUDBase, paginate

CENT = Decimal("0.01")


class BillRepository(CRUDBase[Bill]):
    def __init__(self):
        super().__init__(Bill)

    def get_with_items(self, db: Session, bill_id: int, owner_id: int) -> Optional[Bill]:
        return (
            self.owned(db, owner_id)
            .options(selectinload(Bill.items), joinedload(Bill.customer))
            .filter(Bill.id == bill_id)
            .first()
        )

    def list_bills(
        self,
        db: Session,
        owner_id: int,
        *,
        status: Optional[BillStatus] = None,
        customer_id: Optional[int] = None,
        pending_only: bool = False,
        search_term: Optional[str] = None,
        skip: int = 0,
        limit: int = 100
    ) -> Dict[str, Any]:
        """Bills newest first"""
        query = self.owned(db, owner_id).options(joinedload(Bill.customer))

        if status is not None:
            query = query.filter(Bill.status == status)
        if customer_id is not None:
            query = query.filter(Bill.customer_id == customer_id)
        if pending_only:
            query = query.filter(Bill.status != BillStatus.PAID)
        if search_term:
            query = query.filter(Bill.bill_number.ilike(f"%{search_term}%"))

        total = query.count()
        items = (
            query.order_by(desc(Bill.bill_date), desc(Bill.id))
            .offset(skip)
            .limit(limit)
            .all()
        )
        return paginate(items, total, skip, limit)

    def paid_total(self, db: Session, bill_id: int) -> Decimal:
        total = (
            db.query(func.coalesce(func.sum(Payment.amount), 0))
            .filter(Payment.bill_id == bill_id)
            .scalar()
        )
        return Decimal(str(total or 0)).quantize(CENT)

    def paid_totals(self, db: Session, bill_ids: Iterable[int]) -> Dict[int, Decimal]:
        ids = list(bill_ids)
        if not ids:
            return {}
        rows = (
            db.query(Payment.bill_id, func.sum(Payment.amount))
            .filter(Payment.bill_id.in_(ids))
            .group_by(Payment.bill_id)
            .all()
        )
        return {bill_id: Decimal(str(amount or 0)).quantize(CENT) for bill_id, amount in rows}
