from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.orm import Session

from ..config.database import unit_of_work
from ..config.logging import get_logger, log_security_event
from ..config.settings import get_settings
from ..core.exceptions import ConflictError, UnauthorizedError, ValidationError
from ..core.security import (
    ADMIN_SCOPE, create_access_token, get_password_hash, validate_password_strength, verify_password
)
from ..models.user import User
from ..schemas.auth import Token, UserCreate
from .id_generator import id_generator

logger = get_logger("services.auth")


class AuthService:
    def get_user_by_email(self, db: Session, email: str) -> Optional[User]:
        return db.query(User).filter(User.email == email.lower()).first()

    def register(self, db: Session, user_data: UserCreate) -> User:
        """Create an admin account together with its display-code counters"""
        strength = validate_password_strength(user_data.password)
        if not strength["is_valid"]:
            raise ValidationError("; ".join(strength["errors"]), field="password")

        if self.get_user_by_email(db, user_data.email):
            raise ConflictError("An account with this email already exists", "User")

        with unit_of_work(db, "register_user"):
            user = User(
                email=user_data.email.lower(),
                full_name=user_data.full_name,
                hashed_password=get_password_hash(user_data.password),
                is_active=True,
            )
            db.add(user)
            db.flush()
            id_generator.seed(db, user.id)

        db.refresh(user)
        log_security_event("USER_REGISTERED", user_id=str(user.id))
        return user

    def authenticate_user(self, db: Session, email: str, password: str) -> Optional[User]:
        """Authenticate user with email and password"""
        user = self.get_user_by_email(db, email)
        if not user or not verify_password(password, user.hashed_password):
            return None
        if not user.is_active:
            return None

        with unit_of_work(db, "user_login"):
            user.last_login = datetime.now(timezone.utc)
        return user

    def login(self, db: Session, email: str, password: str, ip_address: str = None) -> Token:
        user = self.authenticate_user(db, email, password)
        if user is None:
            log_security_event("LOGIN_FAILED", details=f"email={email}", ip_address=ip_address)
            raise UnauthorizedError("Incorrect email or password")

        log_security_event("LOGIN_SUCCESS", user_id=str(user.id), ip_address=ip_address)
        return Token(
            access_token=create_access_token(user.id, scope=ADMIN_SCOPE),
            expires_in=get_settings().JWT_ACCESS_TOKEN_EXPIRES,
            scope=ADMIN_SCOPE,
        )
