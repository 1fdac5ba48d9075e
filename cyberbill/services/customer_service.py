from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from ..config.database import unit_of_work
from ..config.logging import get_logger
from ..core.exceptions import DeleteRestrictedError, NotFoundError, ValidationError
from ..core.security import get_password_hash
from ..models.customer import Customer, CustomerCredential
from ..models.ledger import EntityKind
from ..repositories.customer_repo import CustomerRepository
from ..schemas.customer import CustomerCreate, CustomerCredentialCreate, CustomerUpdate
from .id_generator import id_generator

logger = get_logger("services.customers")


class CustomerService:
    def __init__(self):
        self.customer_repo = CustomerRepository()

    def create_customer(self, db: Session, owner_id: int, customer_data: CustomerCreate) -> Customer:
        """Create a new customer with the next CUST code"""
        with unit_of_work(db, "create_customer"):
            code = id_generator.next_id(db, owner_id, EntityKind.CUSTOMER)
            customer = self.customer_repo.create(db, owner_id=owner_id, obj_in=customer_data, customer_id=code)

        db.refresh(customer)
        logger.info(f"Created customer {customer.customer_id} for owner {owner_id}")
        return customer

    def get_customer(self, db: Session, owner_id: int, customer_id: int) -> Customer:
        """Get customer by ID"""
        customer = self.customer_repo.get(db, customer_id, owner_id)
        if not customer:
            raise NotFoundError("Customer", customer_id)
        return customer

    def get_customers(
        self,
        db: Session,
        owner_id: int,
        *,
        skip: int = 0,
        limit: int = 100,
        search: Optional[str] = None,
        sort_by: Optional[str] = None,
        sort_order: str = "desc"
    ) -> Dict[str, Any]:
        """Get customers with search and pagination"""
        return self.customer_repo.get_multi(
            db, owner_id,
            skip=skip,
            limit=limit,
            search_term=search,
            search_fields=self.customer_repo.search_fields,
            sort_by=sort_by,
            sort_order=sort_order
        )

    def update_customer(
        self, db: Session, owner_id: int, customer_id: int, customer_data: CustomerUpdate
    ) -> Customer:
        """Update contact details; the running balance is not editable here"""
        update_data = customer_data.dict(exclude_unset=True)
        update_data.pop("total_due", None)

        with unit_of_work(db, "update_customer"):
            customer = self.get_customer(db, owner_id, customer_id)
            self.customer_repo.update(db, db_obj=customer, obj_in=update_data)

        db.refresh(customer)
        return customer

    def delete_customer(self, db: Session, owner_id: int, customer_id: int) -> None:
        """Delete a customer that has never been billed"""
        with unit_of_work(db, "delete_customer"):
            customer = self.get_customer(db, owner_id, customer_id)
            if self.customer_repo.has_bills(db, customer.id):
                raise DeleteRestrictedError("Customer", customer.customer_id, "customer has bills")
            self.customer_repo.delete(db, db_obj=customer)

        logger.info(f"Deleted customer {customer_id} for owner {owner_id}")

    # Portal credentials

    def set_credentials(
        self,
        db: Session,
        owner_id: int,
        customer_id: int,
        credential_data: CustomerCredentialCreate
    ) -> CustomerCredential:
        """Create or replace the portal login of a customer"""
        with unit_of_work(db, "set_customer_credentials"):
            customer = self.get_customer(db, owner_id, customer_id)

            taken = self.customer_repo.get_credential_by_username(db, credential_data.username)
            if taken is not None and taken.customer_id != customer.id:
                raise ValidationError("Username is already taken", field="username")

            credential = self.customer_repo.get_credential(db, customer.id)
            if credential is None:
                credential = CustomerCredential(customer_id=customer.id)
                db.add(credential)

            credential.username = credential_data.username
            credential.password_hash = get_password_hash(credential_data.password)
            credential.is_active = credential_data.is_active
            db.flush()

        db.refresh(credential)
        logger.info(f"Portal credentials set for customer {customer.customer_id}")
        return credential

    def get_credentials(self, db: Session, owner_id: int, customer_id: int) -> CustomerCredential:
        customer = self.get_customer(db, owner_id, customer_id)
        credential = self.customer_repo.get_credential(db, customer.id)
        if credential is None:
            raise NotFoundError("Customer credentials", customer_id)
        return credential
