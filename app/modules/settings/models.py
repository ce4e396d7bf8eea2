from app.database.database import Base
from sqlalchemy import Column, String, Text
from app.common.mixins import TimestampMixin

GLOBAL_CONFIG_ID = "global"
DEFAULT_OPENAI_MODEL = "gpt-4o-mini"

class AppConfig(Base, TimestampMixin):
    """Configuración general de la empresa (una sola fila)"""
    __tablename__ = "app_config"

    id = Column(String(20), primary_key=True, default=GLOBAL_CONFIG_ID)
    company_name = Column(String(200), nullable=False, default="")
    rnc = Column(String(60), nullable=False, default="")
    phone = Column(String(60), nullable=False, default="")
    address = Column(String(500), nullable=False, default="")
    logo_base64 = Column(Text, nullable=True)
    openai_api_key = Column(String(300), nullable=True)
    openai_model = Column(String(100), nullable=False, default=DEFAULT_OPENAI_MODEL)
