# cyberbill/core/security.py
from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any, Union
import jwt
from passlib.context import CryptContext

from ..config.settings import get_settings
from ..config.logging import get_logger, log_security_event

logger = get_logger("security")
settings = get_settings()

# Password hashing context
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

ADMIN_SCOPE = "admin"
CUSTOMER_SCOPE = "customer"


# Password security
def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash."""
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except (ValueError, TypeError) as e:
        logger.error(f"Password verification error: {e}")
        return False


def get_password_hash(password: str) -> str:
    """Generate password hash."""
    return pwd_context.hash(password)


def validate_password_strength(password: str) -> Dict[str, Union[bool, list]]:
    """Validate password strength for admin accounts."""
    errors = []

    if len(password) < 8:
        errors.append("Password must be at least 8 characters long")

    if not any(c.isalpha() for c in password):
        errors.append("Password must contain at least one letter")

    if not any(c.isdigit() for c in password):
        errors.append("Password must contain at least one digit")

    common_passwords = [
        "password", "12345678", "password123", "admin123", "qwerty123",
        "letmein1", "welcome1", "billing1"
    ]

    if password.lower() in common_passwords:
        errors.append("Password is too common")

    return {
        "is_valid": len(errors) == 0,
        "errors": errors
    }


# JWT Token handling
def create_access_token(
    subject: Union[int, str],
    scope: str = ADMIN_SCOPE,
    expires_delta: Optional[timedelta] = None,
    extra: Optional[Dict[str, Any]] = None
) -> str:
    """Create JWT access token for an admin user or a portal customer."""
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(seconds=settings.JWT_ACCESS_TOKEN_EXPIRES))

    to_encode = dict(extra or {})
    to_encode.update({
        "sub": str(subject),
        "scope": scope,
        "exp": expire,
        "iat": now,
        "type": "access"
    })

    return jwt.encode(to_encode, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def verify_token(token: str, scope: Optional[str] = None) -> Optional[Dict[str, Any]]:
    """Verify and decode JWT token; None when invalid, expired or of another scope."""
    try:
        payload = jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except jwt.ExpiredSignatureError:
        log_security_event("TOKEN_EXPIRED", details="JWT token has expired")
        return None
    except jwt.InvalidTokenError as e:
        log_security_event("INVALID_TOKEN", details=f"Invalid JWT token: {str(e)}")
        return None

    if payload.get("type") != "access":
        return None
    if scope is not None and payload.get("scope") != scope:
        log_security_event("SCOPE_MISMATCH", user_id=payload.get("sub"),
                           details=f"expected {scope}, got {payload.get('scope')}")
        return None
    return payload

