"""Booking model definition."""

from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID

from sqlalchemy import JSON, BigInteger, CheckConstraint, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from ..core.database import Base
from ._types import created_at_column, enum_column, updated_at_column, uuid_pk


class BookingStatus(str, Enum):
    """Booking lifecycle status."""
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    PROCESSING = "PROCESSING"
    READY = "READY"
    DEPARTED = "DEPARTED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class PaymentStatus(str, Enum):
    """Booking payment status, derived from successful payment records."""
    UNPAID = "UNPAID"
    PARTIAL = "PARTIAL"
    PAID = "PAID"
    REFUNDED = "REFUNDED"


class RoomType(str, Enum):
    QUAD = "QUAD"
    TRIPLE = "TRIPLE"
    DOUBLE = "DOUBLE"
    TWIN = "TWIN"
    SINGLE = "SINGLE"


class Booking(Base):
    """Reservation of seats on a departure for one customer's party."""

    __tablename__ = "bookings"

    id: Mapped[UUID] = uuid_pk()
    code: Mapped[str] = mapped_column(String(32), nullable=False, unique=True, index=True)

    customer_id: Mapped[UUID] = mapped_column(ForeignKey("customers.id"), nullable=False, index=True)
    package_id: Mapped[UUID] = mapped_column(ForeignKey("travel_packages.id"), nullable=False, index=True)
    departure_id: Mapped[UUID] = mapped_column(ForeignKey("departures.id"), nullable=False, index=True)

    room_type: Mapped[RoomType] = mapped_column(enum_column(RoomType), nullable=False)
    pax: Mapped[int] = mapped_column(Integer, nullable=False)

    # Price snapshot in minor units
    base_price: Mapped[int] = mapped_column(BigInteger, nullable=False)
    discount: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    additional_fees: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    total_price: Mapped[int] = mapped_column(BigInteger, nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False)

    status: Mapped[BookingStatus] = mapped_column(
        enum_column(BookingStatus),
        nullable=False,
        default=BookingStatus.PENDING,
        index=True
    )
    payment_status: Mapped[PaymentStatus] = mapped_column(
        enum_column(PaymentStatus),
        nullable=False,
        default=PaymentStatus.UNPAID,
        index=True
    )

    add_ons: Mapped[list[dict[str, Any]] | None] = mapped_column(JSON, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Commission recipients
    agent_id: Mapped[UUID | None] = mapped_column(ForeignKey("agents.id"), nullable=True)
    salesperson_id: Mapped[UUID | None] = mapped_column(ForeignKey("salespeople.id"), nullable=True)
    voucher_id: Mapped[UUID | None] = mapped_column(ForeignKey("vouchers.id"), nullable=True)

    cancelled_at: Mapped[datetime | None] = mapped_column(nullable=True)
    cancel_reason: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = created_at_column()
    updated_at: Mapped[datetime] = updated_at_column()

    __table_args__ = (
        CheckConstraint("pax > 0", name="ck_booking_pax_positive"),
        CheckConstraint("base_price >= 0", name="ck_booking_base_price_non_negative"),
        CheckConstraint("discount >= 0", name="ck_booking_discount_non_negative"),
        CheckConstraint("additional_fees >= 0", name="ck_booking_fees_non_negative"),
        CheckConstraint("total_price >= 0", name="ck_booking_total_price_non_negative"),
    )

    def __repr__(self) -> str:
        return (
            f"<Booking(id={self.id}, code='{self.code}', pax={self.pax}, "
            f"status={self.status}, payment_status={self.payment_status})>"
        )
