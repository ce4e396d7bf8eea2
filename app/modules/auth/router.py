from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.database.database import get_db
from app.modules.auth.dependencies import get_current_user
from app.modules.auth.models import User
from app.modules.auth.schemas import LoginRequest, RefreshTokenRequest, TokenResponse, UserOut
from app.modules.auth.service import AuthService

auth_router = APIRouter()


@auth_router.post("/login", response_model=TokenResponse)
def login(body: LoginRequest, db: Session = Depends(get_db)):
    """Login con email o cédula."""
    return AuthService(db).login(body.identifier or body.email, body.password)


@auth_router.post("/refresh", response_model=TokenResponse)
def refresh_token(body: RefreshTokenRequest, db: Session = Depends(get_db)):
    return AuthService(db).refresh_access_token(body.refresh_token)


@auth_router.get("/me", response_model=UserOut)
def get_current_user_info(current_user: User = Depends(get_current_user)):
    return current_user
