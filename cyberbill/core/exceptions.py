"""
Custom exceptions for the billing and inventory service.
Business errors raised by services carry an HTTP status, a stable error code
and a retry hint, and are rendered by a single exception handler.
"""

from decimal import Decimal
from typing import Any, Dict, Optional, List

from fastapi import HTTPException, Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from ..config.logging import get_logger

logger = get_logger(__name__)


class ErrorDetail(BaseModel):
    """Standard error detail structure"""
    code: str
    message: str
    field: Optional[str] = None
    details: Optional[Dict[str, Any]] = None


class BaseCustomException(HTTPException):
    """Base class for all custom exceptions"""

    retryable: bool = False

    def __init__(
        self,
        status_code: int,
        detail: str,
        headers: Optional[Dict[str, Any]] = None,
        error_code: Optional[str] = None,
        field: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(status_code=status_code, detail=detail, headers=headers)
        self.error_code = error_code
        self.field = field
        self.details = details

    def __str__(self):
        return self.detail


# =============================================================================
# CLIENT ERRORS
# =============================================================================

class ValidationError(BaseCustomException):
    """Bad input shape or range"""

    def __init__(self, message: str, field: str = None, errors: List[ErrorDetail] = None):
        super().__init__(
            status_code=422,
            detail=message,
            error_code="VALIDATION_ERROR",
            field=field
        )
        self.errors = errors or []


class NotFoundError(BaseCustomException):
    """Resource not found exception"""

    def __init__(self, resource: str, identifier: Any):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"{resource} with identifier '{identifier}' not found",
            error_code="RESOURCE_NOT_FOUND",
            details={"resource": resource, "identifier": str(identifier)}
        )
        self.resource = resource
        self.identifier = identifier


class InsufficientStockError(BaseCustomException):
    """Requested quantity exceeds available stock"""

    def __init__(self, product: str, available: int, requested: int):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Insufficient stock for product {product}. Requested: {requested}, Available: {available}",
            error_code="INSUFFICIENT_STOCK",
            field="quantity",
            details={"product": product, "available": available, "requested": requested}
        )
        self.product = product
        self.available = available
        self.requested = requested


class OverpaymentError(ValidationError):
    """Payment amount exceeds the pending amount of a bill"""

    def __init__(self, bill_number: str, amount: Decimal, pending: Decimal):
        super().__init__(
            message=f"Payment of {amount} exceeds pending amount {pending} for bill {bill_number}",
            field="amount",
            errors=[
                ErrorDetail(
                    code="OVERPAYMENT",
                    message="Payment amount must not exceed the pending amount",
                    field="amount",
                    details={"amount": str(amount), "pending": str(pending)}
                )
            ]
        )
        self.error_code = "OVERPAYMENT"


class UnauthorizedError(BaseCustomException):
    """Unauthorized access exception"""

    def __init__(self, message: str = "Authentication required"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=message,
            error_code="UNAUTHORIZED",
            headers={"WWW-Authenticate": "Bearer"}
        )


class ForbiddenError(BaseCustomException):
    """Forbidden access exception"""

    def __init__(self, message: str = "Access denied"):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=message,
            error_code="FORBIDDEN"
        )


# =============================================================================
# RETRYABLE ERRORS
# =============================================================================

class ConflictError(BaseCustomException):
    """Concurrent modification or conflicting state"""

    retryable = True

    def __init__(self, message: str, resource: str = None):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail=message,
            error_code="RESOURCE_CONFLICT",
            details={"resource": resource} if resource else None
        )


class DeleteRestrictedError(ConflictError):
    """Record is still referenced and cannot be deleted"""

    retryable = False

    def __init__(self, resource: str, identifier: Any, reason: str):
        super().__init__(
            message=f"{resource} '{identifier}' cannot be deleted: {reason}",
            resource=resource
        )
        self.error_code = "DELETE_RESTRICTED"


class StoreUnavailableError(BaseCustomException):
    """Transient store failure"""

    retryable = True

    def __init__(self, operation: str = "database operation"):
        super().__init__(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"Store unavailable during {operation}",
            error_code="STORE_UNAVAILABLE",
            headers={"Retry-After": "1"}
        )


class GenerationError(BaseCustomException):
    """Identifier allocation failed"""

    retryable = True

    def __init__(self, entity_kind: str, reason: str = None):
        message = f"Could not allocate {entity_kind} identifier"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=message,
            error_code="ID_GENERATION_FAILED",
            headers={"Retry-After": "1"}
        )


# =============================================================================
# EXCEPTION HANDLERS
# =============================================================================

def format_error_response(error: BaseCustomException) -> Dict[str, Any]:
    """Format error response for consistent API responses"""
    response = {
        "error": True,
        "error_code": getattr(error, 'error_code', None) or 'UNKNOWN_ERROR',
        "message": error.detail,
        "status_code": error.status_code,
        "retryable": getattr(error, 'retryable', False)
    }

    if getattr(error, 'field', None):
        response["field"] = error.field

    if getattr(error, 'details', None):
        response["details"] = error.details

    if getattr(error, 'errors', None):
        response["errors"] = [err.dict() for err in error.errors]

    return response


async def custom_exception_handler(request: Request, exc: BaseCustomException) -> JSONResponse:
    """Render service errors as JSON"""
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.detail}")
    else:
        logger.info(f"{request.method} {request.url.path} rejected: {exc.error_code}")

    return JSONResponse(
        status_code=exc.status_code,
        content=format_error_response(exc),
        headers=exc.headers
    )
