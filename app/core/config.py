from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional
from pydantic import field_validator

class Settings(BaseSettings):
    # Database settings
    DATABASE_URL: Optional[str] = None
    POSTGRES_USER: str = 'negocio_user'
    POSTGRES_PASSWORD: str = 'negocio_pass'
    POSTGRES_DB: str = 'negocio_db'
    POSTGRES_HOST: str = 'postgres'
    POSTGRES_PORT: int = 5432

    # JWT settings
    APP_SECRET_STRING: str = 'dev-secret-change-in-production'
    ALGORITHM: str = 'HS256'
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 720
    REFRESH_TOKEN_EXPIRE_DAYS: int = 7

    # CORS
    CORS_ORIGIN: str = 'http://localhost:3000'

    # Uploads
    UPLOAD_DIR: Optional[str] = None
    PUBLIC_BASE_URL: Optional[str] = None
    API_BASE_URL: Optional[str] = None

    # Catálogo de productos (LOCAL o FULLPOS)
    PRODUCTS_SOURCE: Optional[str] = None
    FULLPOS_INTEGRATION_BASE_URL: Optional[str] = None
    FULLPOS_INTEGRATION_TOKEN: Optional[str] = None
    FULLPOS_INTEGRATION_TIMEOUT_MS: int = 8000

    # OpenAI
    OPENAI_API_KEY: Optional[str] = None
    OPENAI_MODEL: Optional[str] = None
    OPENAI_MODEL_CANDIDATES: Optional[str] = None

    # Environment
    ENVIRONMENT: str = "development"
    DEBUG: bool = False
    PORT: int = 4000

    @property
    def database_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"postgresql+psycopg2://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}"
            f"@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
        )

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"

    @property
    def cors_origins(self) -> list[str]:
        raw = (self.CORS_ORIGIN or "").strip()
        if raw == "*":
            return ["*"]
        return [o.strip() for o in raw.split(",") if o.strip()]

    @property
    def products_source(self) -> str:
        """Fuente del catálogo: LOCAL en producción, FULLPOS en otros entornos."""
        raw = (self.PRODUCTS_SOURCE or "").strip().upper()
        if raw in ("LOCAL", "FULLPOS"):
            return raw
        return "LOCAL" if self.is_production else "FULLPOS"

    @property
    def openai_model_candidates(self) -> list[str]:
        raw = (self.OPENAI_MODEL_CANDIDATES or "").strip()
        if not raw:
            return ["gpt-5", "gpt-4.1", "gpt-4o", "gpt-4o-mini"]
        return [m.strip() for m in raw.split(",") if m.strip()]

    model_config = SettingsConfigDict(
        extra="allow",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True
    )

    @field_validator("DEBUG", mode="before")
    @classmethod
    def parse_debug(cls, v):
        if isinstance(v, str):
            return v.lower().strip('"').strip("'") in ("true", "1", "yes", "on")
        return bool(v)

    @field_validator("APP_SECRET_STRING", mode="before")
    @classmethod
    def parse_secret(cls, v):
        # Los secretos copiados desde paneles suelen venir entre comillas
        if isinstance(v, str):
            return v.strip().strip('"').strip("'").strip()
        return v

settings = Settings()
