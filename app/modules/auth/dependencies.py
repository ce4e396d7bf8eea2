"""
Dependencias de autenticación para FastAPI.
"""
from uuid import UUID
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
import jwt

from app.database.database import get_db
from app.modules.auth.models import User
from app.core.config import settings

# Security scheme
security = HTTPBearer(auto_error=False)

class AuthDependencies:
    """Dependencias de autenticación reutilizables."""

    @staticmethod
    def get_current_user(
        credentials: HTTPAuthorizationCredentials = Depends(security),
        db: Session = Depends(get_db)
    ) -> User:
        """
        Obtener usuario actual desde token JWT.
        Los usuarios bloqueados o eliminados no pasan.
        """
        credentials_exception = HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="No se pudieron validar las credenciales",
            headers={"WWW-Authenticate": "Bearer"},
        )

        if credentials is None:
            raise credentials_exception

        try:
            payload = jwt.decode(
                credentials.credentials,
                settings.APP_SECRET_STRING,
                algorithms=[settings.ALGORITHM]
            )
            user_id: str = payload.get("sub")
            if user_id is None or payload.get("type", "access") != "access":
                raise credentials_exception
            user_uuid = UUID(user_id)
        except (jwt.PyJWTError, ValueError):
            raise credentials_exception

        user = db.query(User).filter(User.id == user_uuid).first()

        if user is None or user.blocked:
            raise credentials_exception

        return user

    @staticmethod
    def require_role(allowed_roles: list[str]):
        """
        Dependencia para requerir roles específicos.
        """
        def role_checker(current_user: User = Depends(AuthDependencies.get_current_user)) -> User:
            if current_user.role.value not in allowed_roles:
                raise HTTPException(
                    status_code=status.HTTP_403_FORBIDDEN,
                    detail=f"Se requiere uno de estos roles: {', '.join(allowed_roles)}"
                )
            return current_user
        return role_checker

    @staticmethod
    def require_admin():
        """Dependencia para requerir rol ADMIN."""
        return AuthDependencies.require_role(["ADMIN"])

# Instancias de dependencias
get_current_user = AuthDependencies.get_current_user
require_admin = AuthDependencies.require_admin
