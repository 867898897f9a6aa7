"""
models/access.py
----------------
Credentials that are not passwords: API tokens for staff users, and the
client-portal identities with their single-use magic-link tokens.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from summit.db.base import (
    Base,
    CompanyScoped,
    SoftDeleteMixin,
    TimestampMixin,
    UUIDPrimaryKey,
)


class ApiToken(Base, UUIDPrimaryKey, CompanyScoped, TimestampMixin):
    __tablename__ = "api_tokens"

    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    # skt_ + 8 hex chars; the only part of the token stored in clear
    token_prefix: Mapped[str] = mapped_column(
        String(12), unique=True, nullable=False, index=True
    )
    token_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    expires_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    last_used_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    revoked_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))

    user: Mapped["User"] = relationship("User", back_populates="api_tokens")  # noqa: F821

    def __repr__(self) -> str:
        return f"<ApiToken id={self.id} prefix={self.token_prefix}>"


class ClientUser(Base, UUIDPrimaryKey, TimestampMixin, SoftDeleteMixin):
    __tablename__ = "client_users"
    __table_args__ = (
        UniqueConstraint("client_id", "email", name="uq_client_users_client_email"),
    )

    client_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("clients.id"), nullable=False, index=True
    )
    email: Mapped[str] = mapped_column(String(320), nullable=False)
    name: Mapped[Optional[str]] = mapped_column(String(255))
    last_login_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    # bumped to invalidate every outstanding portal session of this user
    token_version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)


class ClientLoginToken(Base, UUIDPrimaryKey, TimestampMixin):
    __tablename__ = "client_login_tokens"

    client_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("clients.id"), nullable=False, index=True
    )
    email: Mapped[str] = mapped_column(String(320), nullable=False)
    token: Mapped[str] = mapped_column(String(64), unique=True, nullable=False, index=True)
    expires: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    used_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
