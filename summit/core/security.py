"""
core/security.py
----------------
Password hashing, API token material and JWT utilities.

Design decisions:
  - bcrypt work factor 12 for passwords, 10 for API token secrets
    (tokens are verified on every API request).
  - API tokens are `skt_<8 hex>_<32 hex>`. Only the prefix is stored in
    clear (indexed, used for lookup); the secret is stored as a bcrypt hash
    and is never recoverable from the database.
  - Staff session JWT payload contains sub (user_id), company_id and role;
    the user is still re-loaded from the DB on every request.
  - Portal (client) JWTs are signed with a separate secret so a staff token
    can never be replayed against the portal and vice versa.
"""

import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional, Tuple

from jose import jwt
from passlib.context import CryptContext

from summit.core.config import settings

# bcrypt context, rounds=12
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=12)
token_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=10)

API_TOKEN_PREFIX = "skt_"
PREFIX_RANDOM_LENGTH = 8
SECRET_LENGTH = 32


# ── Password Utilities ────────────────────────────────────────────────────────

def hash_password(plain: str) -> str:
    """Return a bcrypt hash of the plain-text password."""
    return pwd_context.hash(plain)


def verify_password(plain: str, hashed: Optional[str]) -> bool:
    """Constant-time comparison of plain password against stored hash."""
    if not hashed:
        return False
    try:
        return pwd_context.verify(plain, hashed)
    except ValueError:
        return False


# ── API Token Utilities ───────────────────────────────────────────────────────

@dataclass(frozen=True)
class ApiTokenParts:
    prefix: str
    secret: str
    full_token: str


def _random_hex(length: int) -> str:
    return secrets.token_hex((length + 1) // 2)[:length]


def generate_api_token_parts() -> ApiTokenParts:
    """
    Produce a fresh API token.

    The prefix is non-secret and indexable; the secret carries 128 bits of
    entropy. The caller shows `full_token` to the user exactly once.
    """
    prefix = f"{API_TOKEN_PREFIX}{_random_hex(PREFIX_RANDOM_LENGTH)}"
    secret = _random_hex(SECRET_LENGTH)
    return ApiTokenParts(prefix=prefix, secret=secret, full_token=f"{prefix}_{secret}")


def parse_api_token(full_token: str) -> Optional[Tuple[str, str]]:
    """Split `skt_<prefix>_<secret>` into (prefix, secret), or None if malformed."""
    if not full_token.startswith(API_TOKEN_PREFIX):
        return None
    parts = full_token.split("_")
    if len(parts) < 3:
        return None
    prefix = f"{parts[0]}_{parts[1]}"
    secret = "_".join(parts[2:])
    if len(prefix) != len(API_TOKEN_PREFIX) + PREFIX_RANDOM_LENGTH or not secret:
        return None
    return prefix, secret


def hash_token_secret(secret: str) -> str:
    return token_context.hash(secret)


def verify_token_secret(secret: str, hashed: str) -> bool:
    """Constant-time check of a token secret; malformed hashes never verify."""
    try:
        return token_context.verify(secret, hashed)
    except ValueError:
        return False


# ── Staff session JWT ─────────────────────────────────────────────────────────

def create_access_token(
    subject: str,
    company_id: str,
    role: str,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """
    Mint a staff session token.

    Args:
        subject: User UUID (stored in 'sub' claim).
        company_id: Company UUID of the user.
        role: 'admin' | 'accountant' | 'staff'
        expires_delta: Optional custom expiry; defaults to settings value.
    """
    now = datetime.now(timezone.utc)
    expire = now + (
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    payload: Dict[str, Any] = {
        "sub": subject,
        "company_id": company_id,
        "role": role,
        "exp": expire,
        "iat": now,
    }
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_access_token(token: str) -> Dict[str, Any]:
    """
    Decode and validate a staff session token.

    Raises:
        JWTError: If the token is invalid, expired, or tampered with.
    """
    return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])


# ── Portal JWT ────────────────────────────────────────────────────────────────

def create_client_token(
    client_id: str,
    client_user_id: str,
    email: str,
    token_version: int,
    name: Optional[str] = None,
) -> Tuple[str, datetime]:
    now = datetime.now(timezone.utc)
    expire = now + timedelta(days=settings.CLIENT_TOKEN_EXPIRE_DAYS)
    payload: Dict[str, Any] = {
        "jti": secrets.token_hex(16),
        "client_id": client_id,
        "client_user_id": client_user_id,
        "email": email,
        "name": name,
        "token_version": token_version,
        "exp": expire,
        "iat": now,
    }
    token = jwt.encode(payload, settings.CLIENT_AUTH_SECRET, algorithm=settings.ALGORITHM)
    return token, expire


def decode_client_token(token: str) -> Dict[str, Any]:
    return jwt.decode(
        token, settings.CLIENT_AUTH_SECRET, algorithms=[settings.ALGORITHM]
    )


def generate_login_token() -> str:
    """Single-use magic-link token."""
    return secrets.token_hex(32)
