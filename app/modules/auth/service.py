import logging
from uuid import UUID
from fastapi import HTTPException, status
from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from app.modules.auth.models import User
from app.modules.auth.schemas import UserOut, TokenResponse
from app.modules.auth.utils import (
    verify_password, create_access_token, create_refresh_token, verify_token
)
from app.core.config import settings

logger = logging.getLogger(__name__)


class AuthService:
    """
    Servicio de autenticación por email o cédula.
    """

    def __init__(self, db: Session):
        self.db = db

    def _issue_tokens(self, user: User) -> TokenResponse:
        token_data = {
            "sub": str(user.id),
            "email": user.email,
            "role": user.role.value
        }
        return TokenResponse(
            access_token=create_access_token(token_data),
            refresh_token=create_refresh_token(str(user.id)),
            token_type="bearer",
            expires_in=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
            user=UserOut.model_validate(user)
        )

    def login(self, identifier: str, password: str) -> TokenResponse:
        """
        Login con email (sin distinguir mayúsculas) o cédula.

        Args:
            identifier: Email o cédula
            password: Contraseña en texto plano

        Returns:
            TokenResponse: access/refresh token y el usuario
        """
        identifier = (identifier or "").strip()
        if not identifier:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="email o identifier es requerido"
            )

        user = self.db.query(User).filter(
            or_(
                func.lower(User.email) == identifier.lower(),
                User.cedula == identifier
            )
        ).first()

        if not user:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Credenciales inválidas"
            )

        if user.blocked:
            logger.info(f"Login rechazado para usuario bloqueado {user.id}")
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Usuario bloqueado"
            )

        if not verify_password(password, user.password_hash):
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Credenciales inválidas"
            )

        return self._issue_tokens(user)

    def refresh_access_token(self, refresh_token: str) -> TokenResponse:
        """Generar un nuevo par de tokens a partir de un refresh token válido."""
        payload = verify_token(refresh_token)
        if payload.get("type") != "refresh":
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token no es de tipo refresh")

        try:
            user_id = UUID(str(payload.get("sub")))
        except ValueError:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Refresh token inválido")

        user = self.db.query(User).filter(User.id == user_id).first()
        if not user or user.blocked:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Usuario inválido")

        return self._issue_tokens(user)
