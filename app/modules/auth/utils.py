"""
Hash de contraseñas (bcrypt) y tokens JWT de acceso y refresh.
"""
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from fastapi import HTTPException, status
from passlib.context import CryptContext

from app.core.config import settings

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain: str, hashed: Optional[str]) -> bool:
    """Un hash vacío o malformado nunca coincide."""
    if not hashed:
        return False
    try:
        return pwd_context.verify(plain, hashed)
    except ValueError:
        return False


def _encode(claims: dict, token_type: str, lifetime: timedelta) -> str:
    payload = dict(claims)
    payload["type"] = token_type
    payload["exp"] = datetime.now(timezone.utc) + lifetime
    return jwt.encode(payload, settings.APP_SECRET_STRING, algorithm=settings.ALGORITHM)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """
    Token de acceso con {sub, email, role}.
    Sin expires_delta dura ACCESS_TOKEN_EXPIRE_MINUTES.
    """
    lifetime = expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    return _encode(data, "access", lifetime)


def create_refresh_token(user_id: str) -> str:
    return _encode({"sub": user_id}, "refresh", timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS))


def verify_token(token: str) -> dict:
    """Decodifica y valida firma y expiración; cualquier fallo es 401."""
    try:
        return jwt.decode(token, settings.APP_SECRET_STRING, algorithms=[settings.ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token expirado")
    except jwt.PyJWTError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token inválido")
