from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime

class SettingsUpdate(BaseModel):
    company_name: Optional[str] = Field(None, max_length=200)
    rnc: Optional[str] = Field(None, max_length=60)
    phone: Optional[str] = Field(None, max_length=60)
    address: Optional[str] = Field(None, max_length=500)
    logo_base64: Optional[str] = None
    openai_api_key: Optional[str] = Field(None, max_length=300)
    openai_model: Optional[str] = Field(None, max_length=100)

class SettingsOut(BaseModel):
    company_name: str
    rnc: str
    phone: str
    address: str
    logo_base64: Optional[str] = None
    openai_model: str
    has_openai_api_key: bool
    openai_api_key: Optional[str] = None
    products_source: str
    products_read_only: bool
    updated_at: Optional[datetime] = None
