"""
schemas/access.py
-----------------
API tokens and client-portal sessions.

Security note:
  - token_hash is never serialised; full_token appears only in the
    creation response.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field


class ApiTokenCreate(BaseModel):
    name: str = Field(..., min_length=3, max_length=50)
    expires_at: Optional[datetime] = None


class ApiTokenRead(BaseModel):
    id: str
    name: str
    token_prefix: str
    expires_at: Optional[datetime] = None
    last_used_at: Optional[datetime] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class ApiTokenCreated(ApiTokenRead):
    full_token: str


class MagicLinkRequest(BaseModel):
    email: EmailStr


class VerifyRequest(BaseModel):
    token: str = Field(..., min_length=1)


class PortalSession(BaseModel):
    client_id: str
    client_user_id: str
    email: str
    name: Optional[str] = None
    expires_at: datetime
