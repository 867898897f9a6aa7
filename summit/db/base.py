"""
db/base.py
----------
Declarative base and shared mixins.

TimestampMixin:   created_at / updated_at columns.
UUIDPrimaryKey:   36-char UUID string primary key. UUIDs are preferable over
                  integer sequences in multi-tenant systems because they
                  prevent tenant enumeration attacks.
CompanyScoped:    non-null, indexed company_id FK; every tenant-owned table
                  mixes this in.
SoftDeleteMixin:  soft_delete flag for rows that carry financial history.
"""

import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, Numeric, String, false, func
from sqlalchemy.orm import DeclarativeBase, Mapped, declared_attr, mapped_column

# Money columns: 14 digits, 2 decimals
Money = Numeric(14, 2, asdecimal=True)


class Base(DeclarativeBase):
    """Base class for all ORM models."""
    pass


def generate_uuid() -> str:
    return str(uuid.uuid4())


class UUIDPrimaryKey:
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)


class TimestampMixin:
    """
    Adds created_at and updated_at timestamps.

    Values are generated client-side so they are populated on the instance
    after flush; an async session cannot lazily reload expired columns.
    """

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: utcnow(),
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: utcnow(),
        onupdate=lambda: utcnow(),
        server_default=func.now(),
        nullable=False,
    )


class SoftDeleteMixin:
    soft_delete: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=false()
    )


class CompanyScoped:
    @declared_attr
    def company_id(cls) -> Mapped[str]:
        return mapped_column(
            String(36),
            ForeignKey("companies.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        )


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """SQLite hands back naive datetimes; everything stored is UTC."""
    if value is None:
        return value
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc)
    return value.replace(tzinfo=timezone.utc)


def to_money(value) -> Decimal:
    """Normalise an aggregate result (None, float, str, Decimal) to 2dp Decimal."""
    if value is None:
        return Decimal("0.00")
    return Decimal(str(value)).quantize(Decimal("0.01"))
