"""
models/company.py
-----------------
Company (tenant) ORM model.

Each company is an isolated organisational unit. All data belonging to a
company is scoped by company_id at the query level; always include
company_id in WHERE clauses.
"""

from typing import Optional

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from summit.db.base import Base, SoftDeleteMixin, TimestampMixin, UUIDPrimaryKey


class Company(Base, UUIDPrimaryKey, TimestampMixin, SoftDeleteMixin):
    __tablename__ = "companies"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    address: Mapped[Optional[str]] = mapped_column(Text)
    default_currency: Mapped[str] = mapped_column(String(10), nullable=False, default="IDR")
    logo_url: Mapped[Optional[str]] = mapped_column(String(1024))
    bank_account: Mapped[Optional[str]] = mapped_column(String(255))
    email: Mapped[Optional[str]] = mapped_column(String(320))
    phone: Mapped[Optional[str]] = mapped_column(String(50))
    website: Mapped[Optional[str]] = mapped_column(String(255))
    tax_number: Mapped[Optional[str]] = mapped_column(String(100))

    users: Mapped[list["User"]] = relationship(  # noqa: F821
        "User", back_populates="company"
    )

    def __repr__(self) -> str:
        return f"<Company id={self.id} name={self.name}>"
