"""Declarative base, timestamps and id generation shared by all models."""

from __future__ import annotations

import uuid
from datetime import datetime  # noqa: TC003 - SQLAlchemy needs this at runtime for Mapped[datetime]
from decimal import Decimal
from typing import Any

from sqlalchemy import JSON, DateTime, Numeric, String, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator

# 0x + 40 hex characters
ADDRESS_LENGTH = 42
ID_LENGTH = 32
# Idena amounts carry 18 fractional digits
AMOUNT_PRECISION = 36
AMOUNT_SCALE = 18


def new_id() -> str:
    """Return a fresh opaque entity id."""
    return uuid.uuid4().hex


def canonical_amount(value: Decimal) -> str:
    """Render *value* without exponent or trailing zeros (``10.50`` -> ``10.5``)."""
    text = format(value, "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return "0" if text in ("-0", "") else text


class DecimalAmount(TypeDecorator):
    """Lossless decimal column.

    PostgreSQL stores ``NUMERIC(36, 18)``. SQLite has no decimal type and
    would round-trip through float, so there the canonical string is stored
    instead; equal amounts always share one string form.
    """

    impl = Numeric(AMOUNT_PRECISION, AMOUNT_SCALE, asdecimal=True)
    cache_ok = True

    def load_dialect_impl(self, dialect: Any) -> Any:
        if dialect.name == "sqlite":
            return dialect.type_descriptor(String(AMOUNT_PRECISION + 2))
        return dialect.type_descriptor(Numeric(AMOUNT_PRECISION, AMOUNT_SCALE, asdecimal=True))

    def process_bind_param(self, value: Any, dialect: Any) -> Any:
        if value is None:
            return None
        amount = value if isinstance(value, Decimal) else Decimal(str(value))
        if dialect.name == "sqlite":
            return canonical_amount(amount)
        return amount

    def process_result_value(self, value: Any, dialect: Any) -> Decimal | None:
        if value is None:
            return None
        return Decimal(value) if isinstance(value, str) else Decimal(str(value))


class Base(DeclarativeBase):
    """SQLAlchemy declarative base for all models."""

    type_annotation_map = {  # noqa: RUF012
        dict[str, Any]: JSON,
        list[str]: JSON,
        Decimal: DecimalAmount(),
    }


class IdMixin:
    """String primary key generated on insert."""

    id: Mapped[str] = mapped_column(String(ID_LENGTH), primary_key=True, default=new_id)


class TimestampMixin:
    """Created / updated timestamps."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
