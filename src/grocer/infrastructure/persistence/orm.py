"""SQLAlchemy ORM tables backing the SQL repositories.

Rows are persistence shapes only; repositories map them to and from the
domain dataclasses.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from decimal import Decimal

from sqlalchemy import (
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Numeric,
    String,
    event,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator

from grocer.domain.exceptions import InfrastructureError


class UTCDateTime(TypeDecorator):
    """Stores aware datetimes as naive UTC, returns them as aware UTC."""

    impl = DateTime
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect) -> datetime | None:
        if value is None:
            return None
        if value.tzinfo is None:
            raise ValueError("Naive datetimes are not stored; attach a timezone")
        return value.astimezone(timezone.utc).replace(tzinfo=None)

    def process_result_value(self, value: datetime | None, dialect) -> datetime | None:
        if value is None:
            return None
        return value.replace(tzinfo=timezone.utc)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    pass


class ProductRow(Base):
    __tablename__ = "products"
    __table_args__ = (
        CheckConstraint("regular_price >= 0", name="check_regular_price_non_negative"),
        CheckConstraint("stock_quantity >= 0", name="check_stock_quantity_non_negative"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    regular_price: Mapped[Decimal] = mapped_column(Numeric(10, 2))
    currency: Mapped[str] = mapped_column(String(3), default="AED")
    stock_quantity: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=Decimal("0"))
    stock_unit: Mapped[str] = mapped_column(String(20))
    status: Mapped[str] = mapped_column(String(20), default="active", index=True)
    updated_by: Mapped[int | None] = mapped_column(nullable=True)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=_utc_now)
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime, default=_utc_now, onupdate=_utc_now
    )


class DiscountRow(Base):
    __tablename__ = "product_discounts"
    __table_args__ = (
        Index("ix_product_discounts_product_status", "product_id", "status"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    product_id: Mapped[int] = mapped_column(ForeignKey("products.id", ondelete="CASCADE"))
    discount_type: Mapped[str] = mapped_column(String(20))
    discount_value: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    start_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    end_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    status: Mapped[str] = mapped_column(String(20), default="active")
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=_utc_now)


class PriceUpdateRow(Base):
    __tablename__ = "price_updates"

    id: Mapped[int] = mapped_column(primary_key=True)
    product_id: Mapped[int] = mapped_column(
        ForeignKey("products.id", ondelete="CASCADE"), index=True
    )
    old_regular_price: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    new_regular_price: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    old_discount_type: Mapped[str] = mapped_column(String(20), default="none")
    new_discount_type: Mapped[str] = mapped_column(String(20), default="none")
    old_discount_value: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    new_discount_value: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    old_stock_quantity: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    new_stock_quantity: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    old_selling_price: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    new_selling_price: Mapped[Decimal] = mapped_column(Numeric(10, 2))
    updated_by: Mapped[int | None] = mapped_column(nullable=True, index=True)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, index=True)


@event.listens_for(PriceUpdateRow, "before_update")
def _refuse_update(mapper, connection, target: PriceUpdateRow) -> None:
    raise InfrastructureError(f"Price update #{target.id} is append-only")


@event.listens_for(PriceUpdateRow, "before_delete")
def _refuse_delete(mapper, connection, target: PriceUpdateRow) -> None:
    raise InfrastructureError(f"Price update #{target.id} is append-only")
