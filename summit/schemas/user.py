"""
schemas/user.py
---------------
Pydantic models for signup, login, and staff user management.

Security note:
  - hashed_password is NEVER included in any response schema.
  - Passwords require min 8 chars; enforce stronger rules in production.
"""

from datetime import datetime
from typing import Dict, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

from summit.core.permissions import Role


class RegisterRequest(BaseModel):
    """Public signup: creates a company and its first admin."""
    company_name: str = Field(..., min_length=2, max_length=255, examples=["Acme Corp"])
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=128)

    @field_validator("company_name", "name")
    @classmethod
    def strip_text(cls, v: str) -> str:
        return v.strip()


class UserCreate(BaseModel):
    """Used by admins to add a user to their own company."""
    name: Optional[str] = Field(None, max_length=255)
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=128)
    role: Role = Role.staff


class UserUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    role: Optional[Role] = None


class UserRead(BaseModel):
    id: str
    name: Optional[str] = None
    email: str
    role: str
    company_id: str
    created_at: datetime

    model_config = {"from_attributes": True}


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int  # seconds
    user: UserRead


class MeResponse(BaseModel):
    user: UserRead
    permissions: Dict[str, bool]
