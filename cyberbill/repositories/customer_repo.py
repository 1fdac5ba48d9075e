from decimal import Decimal
from typing import Optional

from sqlalchemy import case
from sqlalchemy.orm import Session

from ..models.customer import Customer, CustomerCredential
from ..models.billing import Bill
from .base import CRUDBase


class CustomerRepository(CRUDBase[Customer]):
    search_fields = ["name", "phone", "email", "customer_id"]

    def __init__(self):
        super().__init__(Customer)

    def add_due(self, db: Session, customer_id: int, amount: Decimal) -> int:
        """Atomically increase the running balance"""
        return (
            db.query(Customer)
            .filter(Customer.id == customer_id)
            .update({Customer.total_due: Customer.total_due + amount}, synchronize_session=False)
        )

    def settle_due(self, db: Session, customer_id: int, amount: Decimal) -> int:
        """Atomically decrease the running balance, floored at zero"""
        remaining = Customer.total_due - amount
        return (
            db.query(Customer)
            .filter(Customer.id == customer_id)
            .update(
                {Customer.total_due: case((remaining < 0, Decimal("0")), else_=remaining)},
                synchronize_session=False
            )
        )

    def has_bills(self, db: Session, customer_id: int) -> bool:
        return db.query(Bill.id).filter(Bill.customer_id == customer_id).first() is not None

    def get_credential(self, db: Session, customer_id: int) -> Optional[CustomerCredential]:
        return db.query(CustomerCredential).filter(CustomerCredential.customer_id == customer_id).first()

    def get_credential_by_username(self, db: Session, username: str) -> Optional[CustomerCredential]:
        return db.query(CustomerCredential).filter(CustomerCredential.username == username).first()
