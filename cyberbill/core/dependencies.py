# cyberbill/core/dependencies.py
from fastapi import Depends, Header, Query, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from typing import Optional

from ..config.database import get_db
from ..config.settings import get_settings
from ..models.customer import Customer, CustomerCredential
from ..models.user import User
from .exceptions import ForbiddenError, UnauthorizedError
from .security import ADMIN_SCOPE, CUSTOMER_SCOPE, verify_token

settings = get_settings()
security = HTTPBearer(auto_error=False)


def _verified_payload(credentials: Optional[HTTPAuthorizationCredentials], scope: str) -> dict:
    if credentials is None:
        raise UnauthorizedError("Authentication required")

    payload = verify_token(credentials.credentials)
    if not payload:
        raise UnauthorizedError("Invalid authentication credentials")
    if payload.get("scope") != scope:
        raise ForbiddenError(f"Token scope '{payload.get('scope')}' cannot access this resource")
    return payload


def _subject_id(payload: dict) -> int:
    try:
        return int(payload.get("sub"))
    except (TypeError, ValueError):
        raise UnauthorizedError("Invalid token payload")


# Authentication dependencies
def get_current_user(
    request: Request,
    db: Session = Depends(get_db),
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> User:
    """Admin account behind the bearer token; its id owns every record it touches."""
    payload = _verified_payload(credentials, ADMIN_SCOPE)

    user = db.query(User).filter(User.id == _subject_id(payload)).first()
    if not user:
        raise UnauthorizedError("User not found")

    if not user.is_active:
        raise UnauthorizedError("User account is disabled")

    request.state.user_id = user.id
    return user


def get_current_customer(
    db: Session = Depends(get_db),
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> Customer:
    """Customer behind a portal token; the login must still be active."""
    payload = _verified_payload(credentials, CUSTOMER_SCOPE)

    customer_id = _subject_id(payload)
    credential = (
        db.query(CustomerCredential)
        .filter(CustomerCredential.customer_id == customer_id)
        .first()
    )
    if credential is None or not credential.is_active:
        raise UnauthorizedError("Portal access is disabled")

    return credential.customer


def get_idempotency_key(
    idempotency_key: Optional[str] = Header(None, alias="Idempotency-Key", max_length=100)
) -> Optional[str]:
    return idempotency_key or None


# Pagination dependency
class PaginationParams:
    def __init__(
        self,
        page: int = Query(1, ge=1, description="Page number"),
        size: Optional[int] = Query(None, ge=1, description="Page size"),
        sort_by: Optional[str] = Query(None, description="Sort field"),
        sort_order: str = Query("desc", pattern="^(asc|desc)$", description="Sort order")
    ):
        self.page = page
        self.size = min(size or settings.DEFAULT_PAGE_SIZE, settings.MAX_PAGE_SIZE)
        self.sort_by = sort_by
        self.sort_order = sort_order

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.size

    @property
    def limit(self) -> int:
        return self.size


def pagination_params(pagination: PaginationParams = Depends()) -> PaginationParams:
    return pagination
