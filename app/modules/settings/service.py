from typing import Optional

from sqlalchemy.orm import Session

from app.core.config import settings
from app.modules.auth.models import User, Role
from app.modules.settings.models import AppConfig, GLOBAL_CONFIG_ID, DEFAULT_OPENAI_MODEL
from app.modules.settings.schemas import SettingsUpdate, SettingsOut


def _clean(value: Optional[str]) -> str:
    return (value or "").strip()


def _clean_nullable(value: Optional[str]) -> Optional[str]:
    return _clean(value) or None


class SettingsService:
    """Servicio de configuración general"""

    def __init__(self, db: Session):
        self.db = db

    def ensure_config(self) -> AppConfig:
        """Obtiene la fila global, creándola si no existe."""
        config = self.db.get(AppConfig, GLOBAL_CONFIG_ID)
        if config is None:
            config = AppConfig(id=GLOBAL_CONFIG_ID)
            self.db.add(config)
            self.db.commit()
            self.db.refresh(config)
        return config

    def _to_response(self, config: AppConfig, actor: Optional[User]) -> SettingsOut:
        is_admin = actor is not None and actor.role == Role.ADMIN
        source = settings.products_source
        return SettingsOut(
            company_name=config.company_name or "",
            rnc=config.rnc or "",
            phone=config.phone or "",
            address=config.address or "",
            logo_base64=config.logo_base64,
            openai_model=config.openai_model or DEFAULT_OPENAI_MODEL,
            has_openai_api_key=bool(config.openai_api_key),
            openai_api_key=config.openai_api_key if is_admin else None,
            products_source=source,
            products_read_only=source == "FULLPOS",
            updated_at=config.updated_at
        )

    def get_settings(self, actor: Optional[User] = None) -> SettingsOut:
        return self._to_response(self.ensure_config(), actor)

    def update_settings(self, data: SettingsUpdate, actor: Optional[User] = None) -> SettingsOut:
        config = self.ensure_config()
        values = data.model_dump(exclude_unset=True, exclude_none=True)

        for field in ("company_name", "rnc", "phone", "address"):
            if field in values:
                setattr(config, field, _clean(values[field]))
        if "logo_base64" in values:
            config.logo_base64 = _clean_nullable(values["logo_base64"])
        if "openai_api_key" in values:
            config.openai_api_key = _clean_nullable(values["openai_api_key"])
        if "openai_model" in values:
            config.openai_model = _clean(values["openai_model"]) or DEFAULT_OPENAI_MODEL

        self.db.commit()
        self.db.refresh(config)
        return self._to_response(config, actor)
