import random
from decimal import Decimal

import pytest

from cyberbill.core.exceptions import DeleteRestrictedError, NotFoundError, ValidationError
from cyberbill.models import Product
from cyberbill.schemas.billing import SaleDraft, SaleLine
from cyberbill.schemas.customer import CustomerCreate, CustomerUpdate
from cyberbill.schemas.product import ProductCreate, ProductUpdate
from cyberbill.schemas.supplier import SupplierCreate
from cyberbill.services.customer_service import CustomerService
from cyberbill.services.inventory_service import InventoryService
from cyberbill.services.sales_service import SalesService
from cyberbill.services.supplier_service import SupplierService


def test_low_stock_after_sale_crosses_reorder_level(db, owner, make_product):
    product = make_product(price="50.00", stock=10, reorder_level=10)
    healthy = make_product(stock=50, reorder_level=10)

    SalesService().create_sale(db, owner.id, SaleDraft(lines=[SaleLine(product_id=product.id, quantity=3)]))

    low = InventoryService().list_low_stock(db, owner.id)
    assert [p.id for p in low] == [product.id]
    assert low[0].stock == 7
    assert low[0].shortfall == 4
    assert healthy.id not in [p.id for p in low]


def test_low_stock_matches_exactly_stock_at_or_below_reorder_level(db, owner, make_product):
    rng = random.Random(11)
    expected = set()
    for index in range(40):
        stock = rng.randint(0, 30)
        reorder_level = rng.randint(0, 30)
        product = make_product(name=f"Item {index:02d}", stock=stock, reorder_level=reorder_level)
        if stock <= reorder_level:
            expected.add(product.id)

    low = InventoryService().list_low_stock(db, owner.id)

    assert {p.id for p in low} == expected
    stocks = [(p.stock, p.name) for p in low]
    assert stocks == sorted(stocks)


def test_low_stock_is_scoped_to_owner(db, owner, other_owner, make_product):
    make_product(stock=0, owner_id=other_owner.id)

    assert InventoryService().list_low_stock(db, owner.id) == []


def test_product_crud_allocates_codes(db, owner, supplier):
    service = InventoryService()
    product = service.create_product(db, owner.id, ProductCreate(
        name="Basmati Rice 5kg", category="Grocery", price=Decimal("450.00"), stock=20, supplier_id=supplier.id
    ))
    assert product.product_id == "PROD0001"
    assert product.supplier_id == supplier.id
    assert not product.is_low_stock

    updated = service.update_product(db, owner.id, product.id, ProductUpdate(stock=5, price=Decimal("440")))
    assert updated.stock == 5
    assert updated.price == Decimal("440.00")
    assert updated.is_low_stock

    page = service.get_products(db, owner.id, search="basmati")
    assert page["total"] == 1


def test_product_update_rejects_negative_stock(db, owner, make_product):
    product = make_product(stock=5)

    with pytest.raises(ValidationError):
        InventoryService().update_product(db, owner.id, product.id, ProductUpdate.model_construct(stock=-1))
    assert db.query(Product.stock).filter(Product.id == product.id).scalar() == 5


def test_product_with_unknown_supplier(db, owner):
    with pytest.raises(NotFoundError):
        InventoryService().create_product(db, owner.id, ProductCreate(
            name="Soap", category="Personal care", price=Decimal("35"), supplier_id=404
        ))


def test_billed_product_cannot_be_deleted(db, owner, make_product):
    billed = make_product(stock=5)
    unused = make_product(stock=5)
    SalesService().create_sale(db, owner.id, SaleDraft(lines=[SaleLine(product_id=billed.id, quantity=1)]))
    service = InventoryService()

    with pytest.raises(DeleteRestrictedError) as exc_info:
        service.delete_product(db, owner.id, billed.id)
    assert exc_info.value.status_code == 409
    assert not exc_info.value.retryable

    service.delete_product(db, owner.id, unused.id)
    assert db.query(Product).count() == 1


def test_customer_crud_and_delete_restriction(db, owner, make_product):
    service = CustomerService()
    customer = service.create_customer(db, owner.id, CustomerCreate(name="Asha Patel", phone="9876543210"))
    idle = service.create_customer(db, owner.id, CustomerCreate(name="Ravi Kumar", phone="9123456780"))
    assert (customer.customer_id, idle.customer_id) == ("CUST0001", "CUST0002")
    assert customer.total_due == Decimal("0.00")

    updated = service.update_customer(db, owner.id, customer.id, CustomerUpdate(address="12 MG Road"))
    assert updated.address == "12 MG Road"
    assert updated.name == "Asha Patel"

    product = make_product(stock=5)
    SalesService().create_sale(db, owner.id, SaleDraft(
        customer_id=customer.id, lines=[SaleLine(product_id=product.id, quantity=1)]
    ))

    with pytest.raises(DeleteRestrictedError):
        service.delete_customer(db, owner.id, customer.id)
    service.delete_customer(db, owner.id, idle.id)

    with pytest.raises(NotFoundError):
        service.get_customer(db, owner.id, idle.id)
    assert service.get_customers(db, owner.id, search="asha")["total"] == 1


def test_supplier_delete_detaches_products(db, owner):
    supplier = SupplierService().create_supplier(db, owner.id, SupplierCreate(
        name="Metro Traders", phone="0442345678", gst_number="33AAACM1234F1Z5"
    ))
    assert supplier.supplier_id == "SUP0001"
    product = InventoryService().create_product(db, owner.id, ProductCreate(
        name="Sugar 1kg", category="Grocery", price=Decimal("48"), stock=30, supplier_id=supplier.id
    ))

    detached = SupplierService().delete_supplier(db, owner.id, supplier.id)

    assert detached == 1
    db.refresh(product)
    assert product.supplier_id is None
