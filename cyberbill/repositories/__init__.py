from .base import CRUDBase, paginate
from .customer_repo import CustomerRepository
from .supplier_repo import SupplierRepository
from .product_repo import ProductRepository
from .bill_repo import BillRepository
from .payment_repo import PaymentRepository
from .ledger_repo import SequenceRepository, IdempotencyRepository

__all__ = [
    "CRUDBase",
    "paginate",
    "CustomerRepository",
    "SupplierRepository",
    "ProductRepository",
    "BillRepository",
    "PaymentRepository",
    "SequenceRepository",
    "IdempotencyRepository",
]
