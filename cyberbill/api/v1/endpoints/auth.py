# cyberbill/api/v1/endpoints/auth.py
from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from ....config.database import get_db
from ....core.dependencies import get_current_user
from ....models.user import User
from ....schemas.auth import Token, UserCreate, UserLogin, UserOut
from ....services.auth_service import AuthService

router = APIRouter()


@router.post("/register", response_model=UserOut, status_code=status.HTTP_201_CREATED)
def register_user(user: UserCreate, db: Session = Depends(get_db)):
    """Register a new admin account"""
    return AuthService().register(db, user)


@router.post("/login", response_model=Token)
def login_for_access_token(credentials: UserLogin, request: Request, db: Session = Depends(get_db)):
    """Authenticate and return a bearer token"""
    client_host = request.client.host if request.client else None
    return AuthService().login(db, credentials.email, credentials.password, ip_address=client_host)


@router.get("/me", response_model=UserOut)
def read_users_me(current_user: User = Depends(get_current_user)):
    """Get current user info"""
    return current_user
