"""
models/user.py
--------------
Staff user bound to exactly one company.

Users are soft-deleted only: invoices, payments and tokens keep pointing at
them for audit history. The hashed_password column stores bcrypt hashes
only; plain text is never stored and never logged.
"""

from typing import Optional

from sqlalchemy import ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from summit.core.permissions import Role
from summit.db.base import Base, SoftDeleteMixin, TimestampMixin, UUIDPrimaryKey


class User(Base, UUIDPrimaryKey, TimestampMixin, SoftDeleteMixin):
    __tablename__ = "users"

    name: Mapped[Optional[str]] = mapped_column(String(255))
    email: Mapped[str] = mapped_column(
        String(320), unique=True, nullable=False, index=True
    )
    hashed_password: Mapped[Optional[str]] = mapped_column(String(255))
    role: Mapped[str] = mapped_column(
        String(20), nullable=False, default=Role.staff.value
    )
    company_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("companies.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    company: Mapped["Company"] = relationship("Company", back_populates="users")  # noqa: F821
    api_tokens: Mapped[list["ApiToken"]] = relationship(  # noqa: F821
        "ApiToken", back_populates="user"
    )

    def __repr__(self) -> str:
        return f"<User id={self.id} email={self.email} role={self.role}>"
