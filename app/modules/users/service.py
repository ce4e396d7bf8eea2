import logging
from datetime import date
from uuid import UUID
from typing import List, Optional

from fastapi import HTTPException, status
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.common.dates import rd_today
from app.modules.auth.models import User
from app.modules.auth.utils import hash_password
from app.modules.users.schemas import UserCreate, UserUpdate, SelfUpdate, BirthdayGreeting

logger = logging.getLogger(__name__)


def next_birthday(born: date, today: date) -> date:
    """Próximo cumpleaños; el 29 de febrero se celebra el 28 en años no bisiestos."""
    def on_year(year: int) -> date:
        try:
            return born.replace(year=year)
        except ValueError:
            return date(year, 2, 28)

    candidate = on_year(today.year)
    if candidate < today:
        candidate = on_year(today.year + 1)
    return candidate


def build_birthday_greeting(user: User, today: date) -> BirthdayGreeting:
    first_name = (user.nombre_completo or "").strip().split(" ")[0] or "colaborador"

    if not user.fecha_nacimiento:
        return BirthdayGreeting(
            user_id=user.id,
            nombre_completo=user.nombre_completo,
            fecha_nacimiento=None,
            is_birthday_today=False,
            days_until_birthday=None,
            message=f"{first_name} no tiene fecha de nacimiento registrada."
        )

    upcoming = next_birthday(user.fecha_nacimiento, today)
    days = (upcoming - today).days
    if days == 0:
        message = f"¡Feliz cumpleaños, {first_name}! Todo el equipo te desea un excelente día."
    elif days == 1:
        message = f"Mañana es el cumpleaños de {first_name}."
    else:
        message = f"Faltan {days} días para el cumpleaños de {first_name}."

    return BirthdayGreeting(
        user_id=user.id,
        nombre_completo=user.nombre_completo,
        fecha_nacimiento=user.fecha_nacimiento,
        is_birthday_today=days == 0,
        days_until_birthday=days,
        message=message
    )


class UserService:
    """Servicio para gestión de usuarios"""

    def __init__(self, db: Session):
        self.db = db

    def _ensure_unique(self, email: Optional[str], cedula: Optional[str], exclude_id: Optional[UUID] = None):
        if email:
            query = self.db.query(User).filter(func.lower(User.email) == email.lower())
            if exclude_id:
                query = query.filter(User.id != exclude_id)
            if query.first():
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail="El email ya está en uso"
                )
        if cedula:
            query = self.db.query(User).filter(User.cedula == cedula)
            if exclude_id:
                query = query.filter(User.id != exclude_id)
            if query.first():
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail="La cédula ya está en uso"
                )

    def create_user(self, data: UserCreate) -> User:
        """
        Crear usuario

        Args:
            data: Datos del usuario con contraseña en texto plano

        Returns:
            User: Usuario creado

        Raises:
            HTTPException: Si el email o la cédula ya existen
        """
        try:
            email = data.email.strip().lower()
            cedula = data.cedula.strip()
            self._ensure_unique(email, cedula)

            values = data.model_dump(exclude={"password", "email", "cedula"})
            user = User(
                **values,
                email=email,
                cedula=cedula,
                password_hash=hash_password(data.password)
            )
            self.db.add(user)
            self.db.commit()
            self.db.refresh(user)
            logger.info(f"Usuario creado {user.id} ({user.role.value})")
            return user

        except HTTPException:
            raise
        except IntegrityError:
            self.db.rollback()
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Error de integridad en base de datos"
            )

    def list_users(self) -> List[User]:
        return self.db.query(User).order_by(User.created_at.desc()).all()

    def get_user(self, user_id: UUID) -> User:
        user = self.db.query(User).filter(User.id == user_id).first()
        if not user:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Usuario no encontrado"
            )
        return user

    def _apply_update(self, user: User, values: dict) -> User:
        try:
            if "email" in values and values["email"]:
                values["email"] = values["email"].strip().lower()
            if "cedula" in values and values["cedula"]:
                values["cedula"] = values["cedula"].strip()
            self._ensure_unique(values.get("email"), values.get("cedula"), exclude_id=user.id)

            password = values.pop("password", None)
            if password:
                user.password_hash = hash_password(password)

            for field, value in values.items():
                if field in ("email", "cedula", "nombre_completo", "telefono", "role", "habilidades", "blocked") and value is None:
                    continue
                setattr(user, field, value)

            self.db.commit()
            self.db.refresh(user)
            return user

        except HTTPException:
            raise
        except IntegrityError:
            self.db.rollback()
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Error de integridad en base de datos"
            )

    def update_user(self, user_id: UUID, data: UserUpdate) -> User:
        user = self.get_user(user_id)
        return self._apply_update(user, data.model_dump(exclude_unset=True))

    def update_self(self, user: User, data: SelfUpdate) -> User:
        return self._apply_update(user, data.model_dump(exclude_unset=True))

    def set_blocked(self, user_id: UUID, blocked: Optional[bool]) -> User:
        """Bloquea o desbloquea; sin valor explícito alterna el estado."""
        user = self.get_user(user_id)
        user.blocked = (not user.blocked) if blocked is None else blocked
        self.db.commit()
        self.db.refresh(user)
        logger.info(f"Usuario {user.id} blocked={user.blocked}")
        return user

    def delete_user(self, user_id: UUID) -> dict:
        user = self.get_user(user_id)
        try:
            self.db.delete(user)
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="El usuario tiene registros asociados; bloquéalo en lugar de eliminarlo"
            )
        return {"ok": True}

    def birthday_greeting(self, user_id: UUID) -> BirthdayGreeting:
        return build_birthday_greeting(self.get_user(user_id), rd_today())
