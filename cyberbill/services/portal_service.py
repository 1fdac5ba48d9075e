from datetime import datetime, timezone
from typing import List

from sqlalchemy import desc
from sqlalchemy.orm import Session, selectinload

from ..config.database import unit_of_work
from ..config.logging import get_logger, log_security_event
from ..config.settings import get_settings
from ..core.exceptions import UnauthorizedError
from ..core.security import CUSTOMER_SCOPE, create_access_token, verify_password
from ..models.billing import Bill, Payment
from ..models.customer import Customer
from ..repositories.bill_repo import BillRepository
from ..repositories.customer_repo import CustomerRepository
from ..repositories.payment_repo import PaymentRepository
from ..schemas.auth import Token
from ..schemas.billing import BillOut
from .bill_calculator import ZERO
from .sales_service import build_bill_out

logger = get_logger("services.portal")


class PortalService:
    """Read-only view of the ledger for a logged-in customer"""

    def __init__(self):
        self.customer_repo = CustomerRepository()
        self.bill_repo = BillRepository()
        self.payment_repo = PaymentRepository()

    def login(self, db: Session, username: str, password: str, ip_address: str = None) -> Token:
        credential = self.customer_repo.get_credential_by_username(db, username)

        # Unknown usernames and wrong passwords get the same answer
        if credential is None or not verify_password(password, credential.password_hash):
            log_security_event("PORTAL_LOGIN_FAILED", details=f"username={username}", ip_address=ip_address)
            raise UnauthorizedError("Invalid username or password")
        if not credential.is_active:
            log_security_event("PORTAL_LOGIN_INACTIVE", details=f"username={username}", ip_address=ip_address)
            raise UnauthorizedError("Invalid username or password")

        with unit_of_work(db, "portal_login"):
            credential.last_login = datetime.now(timezone.utc)

        log_security_event("PORTAL_LOGIN_SUCCESS", user_id=str(credential.customer_id), ip_address=ip_address)
        return Token(
            access_token=create_access_token(credential.customer_id, scope=CUSTOMER_SCOPE),
            expires_in=get_settings().JWT_ACCESS_TOKEN_EXPIRES,
            scope=CUSTOMER_SCOPE,
        )

    def get_bills(self, db: Session, customer: Customer) -> List[BillOut]:
        bills = (
            db.query(Bill)
            .options(selectinload(Bill.items))
            .filter(Bill.customer_id == customer.id, Bill.user_id == customer.user_id)
            .order_by(desc(Bill.bill_date), desc(Bill.id))
            .all()
        )
        paid = self.bill_repo.paid_totals(db, [bill.id for bill in bills])
        return [build_bill_out(bill, paid.get(bill.id, ZERO)) for bill in bills]

    def get_payments(self, db: Session, customer: Customer) -> List[Payment]:
        return self.payment_repo.for_customer(db, customer.id)
