"""
schemas/company.py
------------------
Pydantic request/response models for the current company.

Naming convention:
  CompanyUpdate → inbound request body
  CompanyRead   → outbound response body
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field, field_validator


class CompanyUpdate(BaseModel):
    name: str = Field(..., min_length=2, max_length=255)
    address: Optional[str] = None
    default_currency: Optional[str] = Field(None, min_length=3, max_length=10)
    logo_url: Optional[str] = Field(None, max_length=1024)
    bank_account: Optional[str] = Field(None, max_length=255)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=50)
    website: Optional[str] = Field(None, max_length=255)
    tax_number: Optional[str] = Field(None, max_length=100)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        return v.strip()

    @field_validator("default_currency")
    @classmethod
    def upper_currency(cls, v: Optional[str]) -> Optional[str]:
        return v.upper() if v else v


class CompanyRead(BaseModel):
    id: str
    name: str
    address: Optional[str] = None
    default_currency: str
    logo_url: Optional[str] = None
    bank_account: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    website: Optional[str] = None
    tax_number: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
