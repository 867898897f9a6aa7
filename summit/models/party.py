"""
models/party.py
---------------
Counterparties of a company: clients (who receive invoices) and vendors
(who issue expenses). Client email is unique among the company's active
clients; the check lives in ClientRepository so a soft-deleted client does
not block re-creating one with the same address.
"""

from typing import Optional

from sqlalchemy import Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from summit.db.base import (
    Base,
    CompanyScoped,
    SoftDeleteMixin,
    TimestampMixin,
    UUIDPrimaryKey,
)


class Client(Base, UUIDPrimaryKey, CompanyScoped, TimestampMixin, SoftDeleteMixin):
    __tablename__ = "clients"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[Optional[str]] = mapped_column(String(320), index=True)
    phone: Mapped[Optional[str]] = mapped_column(String(50))
    address: Mapped[Optional[str]] = mapped_column(Text)
    payment_terms: Mapped[int] = mapped_column(Integer, nullable=False, default=30)

    invoices: Mapped[list["Invoice"]] = relationship(  # noqa: F821
        "Invoice", back_populates="client"
    )

    def __repr__(self) -> str:
        return f"<Client id={self.id} name={self.name}>"


class Vendor(Base, UUIDPrimaryKey, CompanyScoped, TimestampMixin, SoftDeleteMixin):
    __tablename__ = "vendors"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    contact_name: Mapped[Optional[str]] = mapped_column(String(255))
    email: Mapped[Optional[str]] = mapped_column(String(320))
    phone: Mapped[Optional[str]] = mapped_column(String(50))
    address: Mapped[Optional[str]] = mapped_column(Text)
    website: Mapped[Optional[str]] = mapped_column(String(255))
    notes: Mapped[Optional[str]] = mapped_column(Text)

    def __repr__(self) -> str:
        return f"<Vendor id={self.id} name={self.name}>"
