from collections import OrderedDict
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..config.database import unit_of_work
from ..config.logging import get_logger, log_performance
from ..config.settings import get_settings
from ..core.exceptions import (
    ConflictError, InsufficientStockError, NotFoundError, ValidationError
)
from ..models.billing import Bill, BillItem, BillStatus
from ..models.ledger import EntityKind
from ..models.product import Product
from ..repositories.bill_repo import BillRepository
from ..repositories.customer_repo import CustomerRepository
from ..repositories.ledger_repo import IdempotencyRepository
from ..repositories.product_repo import ProductRepository
from ..schemas.billing import BillItemOut, BillOut, BillSummary, SaleDraft
from ..utils.formatting import format_currency
from .bill_calculator import (
    BillTotals, LineItem, ZERO, compute_totals, quantize_money, validate_percentage
)
from .id_generator import IdGenerator, id_generator

logger = get_logger("services.sales")

CREATE_SALE = "create_sale"


def build_bill_summary(bill: Bill, paid_amount: Decimal) -> Dict[str, Any]:
    pending = bill.total_amount - paid_amount
    return {
        "id": bill.id,
        "bill_number": bill.bill_number,
        "customer_id": bill.customer_id,
        "customer_name": bill.customer.name if bill.customer is not None else None,
        "subtotal": bill.subtotal,
        "discount_amount": bill.discount_amount,
        "tax_amount": bill.tax_amount,
        "total_amount": bill.total_amount,
        "paid_amount": quantize_money(paid_amount),
        "pending_amount": quantize_money(pending if pending > ZERO else ZERO),
        "status": bill.status,
        "bill_date": bill.bill_date,
        "notes": bill.notes,
    }


def build_bill_out(bill: Bill, paid_amount: Decimal) -> BillOut:
    return BillOut(
        **build_bill_summary(bill, paid_amount),
        items=[BillItemOut.model_validate(item) for item in bill.items],
    )


class SalesService:
    """
    Turns a sale draft into a bill.

    Stock check, bill and item inserts, stock decrements and the customer
    balance update share one transaction: either all of them are committed or
    none are.
    """

    def __init__(self, generator: IdGenerator = None):
        self.bill_repo = BillRepository()
        self.product_repo = ProductRepository()
        self.customer_repo = CustomerRepository()
        self.idempotency_repo = IdempotencyRepository()
        self.id_generator = generator or id_generator

    @log_performance("services.sales")
    def create_sale(
        self,
        db: Session,
        owner_id: int,
        draft: SaleDraft,
        idempotency_key: Optional[str] = None
    ) -> Bill:
        if idempotency_key:
            replayed = self._replay(db, owner_id, idempotency_key, draft)
            if replayed is not None:
                logger.info(f"Replayed sale {replayed.bill_number} for key {idempotency_key}")
                return replayed

        try:
            with unit_of_work(db, CREATE_SALE):
                bill = self._apply_sale(db, owner_id, draft)
                if idempotency_key:
                    self.idempotency_repo.record(db, owner_id, idempotency_key, CREATE_SALE, bill.id)
        except IntegrityError as e:
            if idempotency_key:
                replayed = self._replay(db, owner_id, idempotency_key, draft)
                if replayed is not None:
                    return replayed
            logger.warning(f"Sale rejected by a store constraint: {e.orig}")
            raise ConflictError("Sale could not be recorded because of a concurrent change, retry the request", "Bill")

        bill = self.bill_repo.get_with_items(db, bill.id, owner_id)
        logger.info(
            f"Created bill {bill.bill_number} total {format_currency(bill.total_amount)} "
            f"({len(bill.items)} items, customer {bill.customer_id or 'walk-in'})",
            extra={"owner_id": owner_id, "bill_number": bill.bill_number}
        )
        return bill

    def preview_totals(self, db: Session, owner_id: int, draft: SaleDraft) -> BillTotals:
        """Totals the draft would produce at current prices, without writing anything"""
        discount_pct, tax_pct = self._rates(draft)
        requested = self._requested_quantities(draft)
        products = {
            product.id: product
            for product in self.product_repo.owned(db, owner_id).filter(Product.id.in_(list(requested))).all()
        }
        for product_id in requested:
            if product_id not in products:
                raise NotFoundError("Product", product_id)
        lines = [LineItem(line.quantity, products[line.product_id].price) for line in draft.lines]
        return compute_totals(lines, discount_pct, tax_pct).rounded()

    def _apply_sale(self, db: Session, owner_id: int, draft: SaleDraft) -> Bill:
        discount_pct, tax_pct = self._rates(draft)
        requested = self._requested_quantities(draft)

        products = self.product_repo.lock_many(db, owner_id, requested.keys())
        for product_id in requested:
            if product_id not in products:
                raise NotFoundError("Product", product_id)

        customer = None
        if draft.customer_id is not None:
            customer = self.customer_repo.get_for_update(db, draft.customer_id, owner_id)
            if customer is None:
                raise NotFoundError("Customer", draft.customer_id)

        for product_id, quantity in requested.items():
            product = products[product_id]
            if quantity > product.stock:
                raise InsufficientStockError(product.name, product.stock, quantity)

        line_items = [LineItem(line.quantity, products[line.product_id].price) for line in draft.lines]
        totals = compute_totals(line_items, discount_pct, tax_pct).rounded()

        bill = Bill(
            user_id=owner_id,
            bill_number=self.id_generator.next_id(db, owner_id, EntityKind.BILL),
            customer_id=customer.id if customer is not None else None,
            subtotal=totals.subtotal,
            discount_amount=totals.discount_amount,
            tax_amount=totals.tax_amount,
            total_amount=totals.total,
            status=BillStatus.UNPAID,
            notes=draft.notes,
        )
        for line, item in zip(draft.lines, line_items):
            product = products[line.product_id]
            bill.items.append(BillItem(
                product_id=product.id,
                product_name=product.name,
                quantity=item.quantity,
                unit_price=item.unit_price,
                total_price=quantize_money(item.total_price),
            ))
        db.add(bill)
        db.flush()

        for product_id, quantity in requested.items():
            if not self.product_repo.decrement_stock(db, product_id, quantity):
                available = db.query(Product.stock).filter(Product.id == product_id).scalar() or 0
                raise InsufficientStockError(products[product_id].name, available, quantity)

        if customer is not None:
            self.customer_repo.add_due(db, customer.id, totals.total)

        return bill

    def _rates(self, draft: SaleDraft):
        settings = get_settings()
        discount_pct = draft.discount_pct if draft.discount_pct is not None else settings.DEFAULT_DISCOUNT_RATE
        tax_pct = draft.tax_pct if draft.tax_pct is not None else settings.DEFAULT_TAX_RATE
        return (
            validate_percentage(discount_pct, "discount_pct"),
            validate_percentage(tax_pct, "tax_pct"),
        )

    @staticmethod
    def _requested_quantities(draft: SaleDraft) -> "OrderedDict[int, int]":
        """Total quantity per product; a product may appear on several lines"""
        if not draft.lines:
            raise ValidationError("A bill needs at least one line item", field="lines")

        requested: "OrderedDict[int, int]" = OrderedDict()
        for index, line in enumerate(draft.lines):
            if line.quantity <= 0:
                raise ValidationError(
                    f"Line {index + 1}: quantity must be greater than 0", field="quantity"
                )
            requested[line.product_id] = requested.get(line.product_id, 0) + line.quantity
        return requested

    def _replay(self, db: Session, owner_id: int, key: str, draft: SaleDraft) -> Optional[Bill]:
        entry = self.idempotency_repo.find(db, owner_id, key)
        if entry is None:
            return None
        if entry.operation != CREATE_SALE:
            raise ConflictError(f"Idempotency key '{key}' was already used for {entry.operation}")
        bill = self.bill_repo.get_with_items(db, entry.resource_id, owner_id)
        if bill is not None and not self._same_sale(bill, draft):
            raise ConflictError(f"Idempotency key '{key}' was already used for a different sale", "Bill")
        return bill

    def _same_sale(self, bill: Bill, draft: SaleDraft) -> bool:
        billed: Dict[int, int] = {}
        for item in bill.items:
            billed[item.product_id] = billed.get(item.product_id, 0) + item.quantity
        return bill.customer_id == draft.customer_id and billed == dict(self._requested_quantities(draft))

    # Queries

    def get_bill(self, db: Session, owner_id: int, bill_id: int) -> BillOut:
        bill = self.bill_repo.get_with_items(db, bill_id, owner_id)
        if bill is None:
            raise NotFoundError("Bill", bill_id)
        return build_bill_out(bill, self.bill_repo.paid_total(db, bill.id))

    def list_bills(
        self,
        db: Session,
        owner_id: int,
        *,
        status: Optional[BillStatus] = None,
        customer_id: Optional[int] = None,
        pending_only: bool = False,
        search: Optional[str] = None,
        skip: int = 0,
        limit: int = 100
    ) -> Dict[str, Any]:
        page = self.bill_repo.list_bills(
            db, owner_id,
            status=status,
            customer_id=customer_id,
            pending_only=pending_only,
            search_term=search,
            skip=skip,
            limit=limit
        )
        bills: List[Bill] = page["items"]
        paid = self.bill_repo.paid_totals(db, [bill.id for bill in bills])
        page["items"] = [
            BillSummary(**build_bill_summary(bill, paid.get(bill.id, ZERO)))
            for bill in bills
        ]
        return page
