from decimal import Decimal

import pytest

from cyberbill.core.exceptions import ConflictError, InsufficientStockError, NotFoundError, ValidationError
from cyberbill.models import Bill, BillItem, BillStatus, Customer, IdSequence, Product
from cyberbill.schemas.billing import PaymentCreate, SaleDraft, SaleLine
from cyberbill.services.payment_service import PaymentService
from cyberbill.services.sales_service import SalesService


def draft(lines, customer_id=None, discount_pct=0, tax_pct=18):
    return SaleDraft(
        customer_id=customer_id,
        lines=[SaleLine(product_id=product_id, quantity=quantity) for product_id, quantity in lines],
        discount_pct=discount_pct,
        tax_pct=tax_pct,
    )


def stock_of(db, product_id):
    return db.query(Product.stock).filter(Product.id == product_id).scalar()


def due_of(db, customer_id):
    return db.query(Customer.total_due).filter(Customer.id == customer_id).scalar()


def test_sale_records_bill_and_moves_stock_and_balance(db, owner, make_product, make_customer):
    product = make_product(price="50.00", stock=10)
    customer = make_customer()

    bill = SalesService().create_sale(db, owner.id, draft([(product.id, 3)], customer_id=customer.id))

    assert bill.bill_number == "BILL0001"
    assert bill.status == BillStatus.UNPAID
    assert bill.subtotal == Decimal("150.00")
    assert bill.tax_amount == Decimal("27.00")
    assert bill.total_amount == Decimal("177.00")
    assert [(item.product_name, item.quantity, item.total_price) for item in bill.items] == [
        (product.name, 3, Decimal("150.00"))
    ]
    assert stock_of(db, product.id) == 7
    assert due_of(db, customer.id) == Decimal("177.00")


def test_default_rates_come_from_settings(db, owner, make_product):
    product = make_product(price="100.00", stock=5)

    bill = SalesService().create_sale(
        db, owner.id, SaleDraft(lines=[SaleLine(product_id=product.id, quantity=1)])
    )

    assert bill.discount_amount == Decimal("0.00")
    assert bill.tax_amount == Decimal("18.00")
    assert bill.total_amount == Decimal("118.00")


def test_walk_in_sale_touches_no_customer(db, owner, make_product, make_customer):
    product = make_product(stock=4)
    customer = make_customer(total_due="25.00")

    bill = SalesService().create_sale(db, owner.id, draft([(product.id, 4)]))

    assert bill.customer_id is None
    assert bill.is_walk_in
    assert stock_of(db, product.id) == 0
    assert due_of(db, customer.id) == Decimal("25.00")


def test_insufficient_stock_leaves_everything_unchanged(db, owner, make_product, make_customer):
    plenty = make_product(stock=100)
    scarce = make_product(stock=2)
    customer = make_customer()

    with pytest.raises(InsufficientStockError) as exc_info:
        SalesService().create_sale(
            db, owner.id, draft([(plenty.id, 5), (scarce.id, 3)], customer_id=customer.id)
        )

    assert exc_info.value.status_code == 409
    assert exc_info.value.details == {"product": scarce.name, "available": 2, "requested": 3}
    assert stock_of(db, plenty.id) == 100
    assert stock_of(db, scarce.id) == 2
    assert due_of(db, customer.id) == Decimal("0.00")
    assert db.query(Bill).count() == 0
    assert db.query(BillItem).count() == 0


def test_rejected_sale_does_not_consume_a_bill_number(db, owner, make_product):
    product = make_product(stock=1)
    service = SalesService()

    with pytest.raises(InsufficientStockError):
        service.create_sale(db, owner.id, draft([(product.id, 2)]))
    bill = service.create_sale(db, owner.id, draft([(product.id, 1)]))

    assert bill.bill_number == "BILL0001"
    last_value = (
        db.query(IdSequence.last_value)
        .filter(IdSequence.user_id == owner.id, IdSequence.kind == "bill")
        .scalar()
    )
    assert last_value == 1


def test_repeated_product_lines_are_checked_together(db, owner, make_product):
    product = make_product(stock=5)

    with pytest.raises(InsufficientStockError):
        SalesService().create_sale(db, owner.id, draft([(product.id, 3), (product.id, 3)]))
    assert stock_of(db, product.id) == 5

    bill = SalesService().create_sale(db, owner.id, draft([(product.id, 2), (product.id, 3)]))
    assert len(bill.items) == 2
    assert stock_of(db, product.id) == 0


def test_stock_reaching_exactly_zero_is_allowed(db, owner, make_product):
    product = make_product(stock=3)

    SalesService().create_sale(db, owner.id, draft([(product.id, 3)]))

    assert stock_of(db, product.id) == 0


@pytest.mark.parametrize("lines", [[], [(1, 0)], [(1, -2)]])
def test_invalid_drafts_are_rejected(db, owner, make_product, lines):
    make_product(stock=10)

    with pytest.raises(ValidationError):
        SalesService().create_sale(db, owner.id, draft(lines))
    assert db.query(Bill).count() == 0


def test_out_of_range_rates_are_rejected(db, owner, make_product):
    product = make_product(stock=10)

    with pytest.raises(ValidationError):
        SalesService().create_sale(db, owner.id, draft([(product.id, 1)], discount_pct=120))
    assert stock_of(db, product.id) == 10


def test_unknown_product_or_customer(db, owner, make_product):
    product = make_product(stock=10)

    with pytest.raises(NotFoundError):
        SalesService().create_sale(db, owner.id, draft([(product.id + 100, 1)]))
    with pytest.raises(NotFoundError):
        SalesService().create_sale(db, owner.id, draft([(product.id, 1)], customer_id=999))
    assert stock_of(db, product.id) == 10


def test_products_of_another_owner_are_invisible(db, owner, other_owner, make_product):
    foreign = make_product(stock=10, owner_id=other_owner.id)

    with pytest.raises(NotFoundError):
        SalesService().create_sale(db, owner.id, draft([(foreign.id, 1)]))
    assert stock_of(db, foreign.id) == 10


def test_idempotency_key_replays_the_same_bill(db, owner, make_product, make_customer):
    product = make_product(stock=10)
    customer = make_customer()
    service = SalesService()
    sale = draft([(product.id, 2)], customer_id=customer.id)

    first = service.create_sale(db, owner.id, sale, idempotency_key="sale-1")
    second = service.create_sale(db, owner.id, sale, idempotency_key="sale-1")

    assert first.id == second.id
    assert db.query(Bill).count() == 1
    assert stock_of(db, product.id) == 8
    assert due_of(db, customer.id) == first.total_amount


def test_idempotency_key_reused_for_another_operation(db, owner, make_product):
    product = make_product(stock=10)
    bill = SalesService().create_sale(db, owner.id, draft([(product.id, 1)]))
    PaymentService().record_payment(
        db, owner.id, bill.id, PaymentCreate(amount=Decimal("10.00")), idempotency_key="shared"
    )

    with pytest.raises(ConflictError):
        SalesService().create_sale(db, owner.id, draft([(product.id, 1)]), idempotency_key="shared")


def test_idempotency_key_reused_for_a_different_sale(db, owner, make_product):
    product = make_product(stock=10)
    service = SalesService()
    service.create_sale(db, owner.id, draft([(product.id, 2)]), idempotency_key="sale-2")

    with pytest.raises(ConflictError):
        service.create_sale(db, owner.id, draft([(product.id, 3)]), idempotency_key="sale-2")
    assert db.query(Bill).count() == 1
    assert stock_of(db, product.id) == 8


def test_bill_queries_report_paid_and_pending(db, owner, make_product, make_customer):
    product = make_product(price="50.00", stock=10)
    customer = make_customer()
    service = SalesService()
    bill = service.create_sale(db, owner.id, draft([(product.id, 3)], customer_id=customer.id))
    PaymentService().record_payment(db, owner.id, bill.id, PaymentCreate(amount=Decimal("100")))

    detail = service.get_bill(db, owner.id, bill.id)
    assert detail.paid_amount == Decimal("100.00")
    assert detail.pending_amount == Decimal("77.00")
    assert detail.customer_name == customer.name
    assert len(detail.items) == 1

    page = service.list_bills(db, owner.id, pending_only=True)
    assert page["total"] == 1
    assert page["items"][0].status == BillStatus.PARTIAL

    assert service.list_bills(db, owner.id, status=BillStatus.PAID)["total"] == 0


def test_bill_of_another_owner_is_not_found(db, owner, other_owner, make_product):
    product = make_product(stock=10)
    bill = SalesService().create_sale(db, owner.id, draft([(product.id, 1)]))

    with pytest.raises(NotFoundError):
        SalesService().get_bill(db, other_owner.id, bill.id)
