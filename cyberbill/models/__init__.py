from .base import BaseModel, Money
from .user import User
from .customer import Customer, CustomerCredential
from .supplier import Supplier
from .product import Product
from .billing import Bill, BillItem, Payment, BillStatus, PaymentMode
from .ledger import EntityKind, IdSequence, IdempotencyKey

__all__ = [
    "BaseModel",
    "Money",
    "User",
    "Customer",
    "CustomerCredential",
    "Supplier",
    "Product",
    "Bill",
    "BillItem",
    "Payment",
    "BillStatus",
    "PaymentMode",
    "EntityKind",
    "IdSequence",
    "IdempotencyKey",
]
